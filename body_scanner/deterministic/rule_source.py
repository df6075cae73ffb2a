#!/usr/bin/env python3
"""
Rule Source Extractors
======================
Common base for the strategies that recover validation rule tables from a
handler's AST, plus the reader for literal rule tables.

A rule table is a dict literal mapping dotted field paths to rules:

    {
        # Display name shown on the profile page
        "name": "required|string|max:255",
        "tags.*": ["string", Rule.in_(["a", "b"])],
        "address": ADDRESS_RULES,
    }

Extraction never raises: a table that cannot be read statically (spread
entries, computed keys, unresolvable names) yields an empty rule map.
"""

import ast
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from ..base import CodeNode, ErrorKind, ExtractionResult, RuleMap, RuleObject, RuleToken, StageResult

if TYPE_CHECKING:
    from ..config import SynthesisConfig
    from ..route_info import RouteInfo

logger = logging.getLogger("body_scanner.deterministic.rule_source")

MAX_RESOLVE_DEPTH = 8


class DynamicRuleTable(Exception):
    """The rule table is not a static literal."""


def collect_assignments(func: ast.AST) -> Dict[str, ast.expr]:
    """Simple ``name = value`` assignments inside a function body."""
    assignments: Dict[str, ast.expr] = {}
    for node in ast.walk(func):
        if isinstance(node, ast.Assign) and len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
            assignments[node.targets[0].id] = node.value
        elif isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name) and node.value is not None:
            assignments[node.target.id] = node.value
    return assignments


def call_name(node: ast.expr) -> str:
    """Dotted name of a callee: ``Rule.in_``, ``validate``."""
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        prefix = call_name(node.value)
        return f"{prefix}.{node.attr}" if prefix else node.attr
    return ""


class RuleTableReader:
    """
    Reads a literal rule table into a ``RuleMap``.

    Names are resolved through the handler-local assignments first, then
    through the module-level constants of the index.
    """

    def __init__(
        self,
        lines: List[str],
        local_names: Optional[Dict[str, ast.expr]] = None,
        constants: Optional[Dict[str, Tuple[ast.expr, List[str]]]] = None,
    ):
        self.lines = lines
        self.local_names = local_names or {}
        self.constants = constants or {}

    def read(self, table: ast.expr) -> Tuple[RuleMap, CodeNode]:
        """
        Read ``table`` and return the rules and the dict node they came from.

        Raises ``DynamicRuleTable`` when the table is not a static dict.
        """
        table, lines = self._resolve(table, self.lines)
        if not isinstance(table, ast.Dict):
            raise DynamicRuleTable(f"rule table is {type(table).__name__}, not a dict literal")

        rules: RuleMap = {}
        for key, value in zip(table.keys, table.values):
            if key is None:
                raise DynamicRuleTable("rule table contains a ** spread")
            if not isinstance(key, ast.Constant) or not isinstance(key.value, str):
                raise DynamicRuleTable(f"rule key at line {getattr(key, 'lineno', '?')} is not a string")
            rules[key.value] = self._tokens(value)

        return rules, CodeNode(table, lines)

    def _resolve(self, node: ast.expr, lines: List[str]) -> Tuple[ast.expr, List[str]]:
        """Follow ``Name`` references to the value they are bound to."""
        depth = 0
        while isinstance(node, ast.Name) and depth < MAX_RESOLVE_DEPTH:
            depth += 1
            if node.id in self.local_names:
                node = self.local_names[node.id]
            elif node.id in self.constants:
                node, lines = self.constants[node.id]
            else:
                break
        return node, lines

    def _tokens(self, value: ast.expr, depth: int = 0) -> List[RuleToken]:
        if isinstance(value, ast.Name) and depth < MAX_RESOLVE_DEPTH:
            resolved, _ = self._resolve(value, self.lines)
            if resolved is not value:
                return self._tokens(resolved, depth + 1)

        if isinstance(value, ast.Constant) and isinstance(value.value, str):
            return [part.strip() for part in value.value.split("|") if part.strip()]

        if isinstance(value, (ast.List, ast.Tuple)):
            tokens: List[RuleToken] = []
            for element in value.elts:
                if isinstance(element, ast.Constant) and isinstance(element.value, str):
                    if element.value.strip():
                        tokens.append(element.value.strip())
                elif isinstance(element, ast.Name):
                    tokens.extend(self._tokens(element, depth + 1))
                else:
                    tokens.append(self._rule_object(element))
            return tokens

        return [self._rule_object(value)]

    @staticmethod
    def _rule_object(node: ast.expr) -> RuleObject:
        expression = ast.unparse(node)
        if isinstance(node, ast.Call):
            args: List[Any] = []
            for arg in node.args:
                try:
                    args.append(ast.literal_eval(arg))
                except (ValueError, TypeError, SyntaxError):
                    args.append(ast.unparse(arg))
            return RuleObject(name=call_name(node.func) or expression, args=tuple(args), expression=expression)
        return RuleObject(name=expression, expression=expression)


class RuleSourceExtractor(ABC):
    """
    Abstract base class for rule extraction strategies.

    Usage:
        extractor = ValidateCallExtractor(route_info, config)
        if extractor.should_handle():
            rules = extractor.extract()
            node = extractor.node()
    """

    name = "rule_source"

    def __init__(self, route_info: "RouteInfo", config: "SynthesisConfig"):
        self.route_info = route_info
        self.config = config
        self._node: Optional[CodeNode] = None
        # Last contained extraction failure, if any
        self.error: Optional[StageResult] = None

    @abstractmethod
    def _matches(self) -> bool:
        """Structural check for the idiom this strategy understands."""

    @abstractmethod
    def _extract(self) -> RuleMap:
        """Extract the rule table; may raise, ``extract()`` contains it."""

    def should_handle(self) -> bool:
        try:
            return self._matches()
        except Exception as e:
            logger.debug(f"{self.name}: structural check failed for {self.route_info.handler_name}: {e}")
            return False

    def extract(self) -> RuleMap:
        self.error = None
        try:
            rules = self._extract()
        except DynamicRuleTable as e:
            self.error = StageResult.failed(ErrorKind.EXTRACTION, e)
            logger.debug(f"{self.name}: dynamic rule table in {self.route_info.handler_name}: {e}")
            return {}
        except Exception as e:
            self.error = StageResult.failed(ErrorKind.EXTRACTION, e)
            logger.debug(f"{self.name}: extraction failed for {self.route_info.handler_name}: {e}")
            return {}

        if rules:
            logger.debug(f"{self.name}: extracted {len(rules)} rules from {self.route_info.handler_name}")
        return rules

    def node(self) -> Optional[CodeNode]:
        return self._node

    def run(self) -> ExtractionResult:
        if not self.should_handle():
            return ExtractionResult(source=self.name)

        rules = self.extract()
        node = self.node()
        nodes = (node,) if rules and node is not None else ()
        return ExtractionResult(rules=rules, nodes=nodes, source=self.name, error=self.error)
