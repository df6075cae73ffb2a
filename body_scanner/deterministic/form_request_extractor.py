#!/usr/bin/env python3
"""
Form Request Rules Extractor
============================
Declared-request-type strategy: the handler accepts a parameter annotated
with a validated request class, and that class declares its rules.

    class StoreUserRequest(FormRequest):
        def rules(self):
            return {"name": "required|string"}

    class UserController:
        def store(self, request: StoreUserRequest):
            ...
"""

import ast
import logging
from typing import Optional

from ..base import RuleMap
from .rule_source import DynamicRuleTable, RuleSourceExtractor, RuleTableReader, collect_assignments

logger = logging.getLogger("body_scanner.deterministic.form_request_extractor")


class FormRequestRulesExtractor(RuleSourceExtractor):
    """Extract the static rule table of the handler's request class."""

    name = "form_request"

    def request_class_name(self) -> Optional[str]:
        types = self.route_info.request_parameter_types(self.config.request_base_classes)
        return types[0] if types else None

    def _matches(self) -> bool:
        return self.request_class_name() is not None

    def _extract(self) -> RuleMap:
        class_name = self.request_class_name()
        if class_name is None:
            return {}

        found = self.route_info.index.find_method(class_name, self.config.rules_method_name)
        if found is None:
            logger.debug(f"{class_name} has no {self.config.rules_method_name}() method")
            return {}

        method, lines = found
        table = self._returned_table(method)
        if table is None:
            raise DynamicRuleTable(f"{class_name}.{method.name}() does not return a value")

        reader = RuleTableReader(
            lines,
            local_names=collect_assignments(method),
            constants=self.route_info.index.constants,
        )
        rules, node = reader.read(table)
        self._node = node
        return rules

    @staticmethod
    def _returned_table(method: ast.AST) -> Optional[ast.expr]:
        """Value of the first ``return`` statement of the rules method."""
        for node in ast.walk(method):
            if isinstance(node, ast.Return) and node.value is not None:
                return node.value
        return None
