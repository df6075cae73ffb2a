#!/usr/bin/env python3
"""
Request Body Synthesizer
========================
Documents the request body of one handler from the validation rules it
enforces, without running it.

Pipeline (linear, one pass per handler):
1. ExtractRules: run every rule source extractor and merge their rule maps
2. TransformToParameters: rules → parameters, then promote nested titles
3. DecideShape: request body object, or query parameters for methods that
   must not carry a body
4. Finalize: summary and description from the handler docstring

Failures in steps 2-3 never leave the operation half-written: the operation
is only mutated once the shape is complete. Under ``FailurePolicy.RAISE``
the original exception propagates; under ``FailurePolicy.ANNOTATE`` a
warning is appended to the operation description.

Usage:
    synthesizer = RequestBodySynthesizer(SynthesisConfig.from_env())
    operation = Operation(method=route_info.http_method, path=route_info.path)
    synthesizer.handle(operation, route_info)
"""

import logging
from enum import Enum
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple, Type as ClassType

from .base import CodeNode, ErrorKind, ExtractionResult, RuleMap, StageResult
from .config import SynthesisConfig
from .deterministic.docstring_parser import DocBlock
from .deterministic.form_request_extractor import FormRequestRulesExtractor
from .deterministic.media_type_resolver import MediaTypeResolver
from .deterministic.nested_titles import NestedTitlePromoter
from .deterministic.rule_merger import RuleMerger
from .deterministic.rule_source import RuleSourceExtractor
from .deterministic.rules_to_parameters import RulesToParameters
from .deterministic.title_resolver import TitleResolver
from .deterministic.validate_call_extractor import ValidateCallExtractor
from .openapi import ObjectType, Operation, Parameter, ParameterLocation, RequestBodyObject, Schema
from .route_info import RouteInfo

logger = logging.getLogger("body_scanner.request_body")

WARNING_PREFIX = "⚠️Cannot generate request documentation: "

# Priority order: later extractors override earlier ones per path
DEFAULT_EXTRACTORS: Tuple[ClassType[RuleSourceExtractor], ...] = (
    FormRequestRulesExtractor,
    ValidateCallExtractor,
)


class FailurePolicy(Enum):
    RAISE = "raise"        # test context: propagate the original exception
    ANNOTATE = "annotate"  # write a warning into the operation description


class Shape(NamedTuple):
    """What DecideShape wants attached to the operation."""
    request_body: Optional[RequestBodyObject] = None
    parameters: Tuple[Parameter, ...] = ()


class RequestBodySynthesizer:
    """
    Synthesizes request documentation for one handler at a time.

    Holds only read-only collaborators; one instance can document any number
    of handlers.
    """

    def __init__(
        self,
        config: Optional[SynthesisConfig] = None,
        failure_policy: Optional[FailurePolicy] = None,
        extractors: Optional[Sequence[ClassType[RuleSourceExtractor]]] = None,
        transformer: Optional[Callable[[RuleMap, List[CodeNode]], RulesToParameters]] = None,
    ):
        self.config = config or SynthesisConfig()
        if failure_policy is None:
            failure_policy = FailurePolicy.RAISE if self.config.is_testing else FailurePolicy.ANNOTATE
        self.failure_policy = failure_policy
        self.extractors = list(extractors) if extractors is not None else list(DEFAULT_EXTRACTORS)
        self.transformer = transformer or RulesToParameters
        self.title_resolver = TitleResolver(self.config.request_base_classes)

    def handle(self, operation: Operation, route_info: RouteInfo) -> None:
        doc = route_info.doc()
        description = doc.description

        try:
            result = self._synthesize(operation, route_info, doc)
        except Exception as e:
            result = StageResult.failed(ErrorKind.PIPELINE, e)

        if not result.is_success():
            description = self._recover(result, route_info, description)

        # Finalize
        operation.summary = doc.summary.rstrip(".")
        operation.description = description

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    def _synthesize(self, operation: Operation, route_info: RouteInfo, doc: DocBlock) -> StageResult:
        rules, nodes = self.extract_rules(route_info)

        transformed = self.transform(rules, nodes)
        if not transformed.is_success():
            return transformed

        shape = self.decide_shape(operation, route_info, doc, transformed.value)
        if not shape.is_success():
            return shape

        self._apply(operation, shape.value)
        return StageResult.ok(operation)

    def extract_rules(self, route_info: RouteInfo) -> Tuple[RuleMap, List[CodeNode]]:
        results: List[ExtractionResult] = [
            extractor_class(route_info, self.config).run() for extractor_class in self.extractors
        ]
        for result in results:
            if result.error is not None:
                logger.debug(
                    f"{route_info.handler_name}: {result.source} {result.error.error_kind.value} "
                    f"failure contained: {result.error.message}"
                )
        rules, nodes = RuleMerger.merge(results)
        logger.debug(f"{route_info.handler_name}: {len(rules)} rules from {len(nodes)} rule tables")
        return rules, nodes

    def transform(self, rules: RuleMap, nodes: List[CodeNode]) -> StageResult:
        try:
            parameters = self.transformer(rules, nodes).handle()
            NestedTitlePromoter.apply(parameters)
        except Exception as e:
            return StageResult.failed(ErrorKind.TRANSFORMATION, e)
        return StageResult.ok(parameters)

    def decide_shape(
        self,
        operation: Operation,
        route_info: RouteInfo,
        doc: DocBlock,
        parameters: List[Parameter],
    ) -> StageResult:
        try:
            allows_body = self.config.allows_request_body(operation.method)

            if parameters and not allows_body:
                for param in parameters:
                    param.in_ = ParameterLocation.QUERY
                return StageResult.ok(Shape(parameters=tuple(parameters)))

            if not allows_body:
                return StageResult.ok(Shape())

            media_type = MediaTypeResolver.resolve(
                doc.first_tag_value("@requestMediaType"),
                operation.method,
                parameters,
            )

            if parameters:
                schema = Schema.from_parameters(parameters).set_title(
                    self.title_resolver.resolve(doc, route_info)
                )
            else:
                schema = Schema.from_type(ObjectType())

            return StageResult.ok(Shape(request_body=RequestBodyObject().set_content(media_type, schema)))
        except Exception as e:
            return StageResult.failed(ErrorKind.PIPELINE, e)

    @staticmethod
    def _apply(operation: Operation, shape: Shape) -> None:
        if shape.request_body is not None:
            operation.add_request_body_object(shape.request_body)
        elif shape.parameters:
            operation.add_parameters(list(shape.parameters))

    def _recover(self, result: StageResult, route_info: RouteInfo, description: str) -> str:
        logger.warning(
            f"Cannot generate request documentation for {route_info.handler_name} "
            f"({result.error_kind.value}): {result.message}"
        )
        if self.failure_policy == FailurePolicy.RAISE:
            raise result.exception
        return description + WARNING_PREFIX + result.message
