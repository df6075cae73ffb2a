#!/usr/bin/env python3
"""
Validate Call Extractor
=======================
Inline-call strategy: the handler validates its input on the spot.

    def store(self, request):
        data = request.validate({"name": "required|string"})

Recognized call shapes (callee name configurable, ``validate`` by default):
- ``request.validate({...})``
- ``self.validate(request, {...})``
- ``validate(request, rules={...})``
"""

import ast
import logging
from typing import Optional

from ..base import RuleMap
from .rule_source import DynamicRuleTable, RuleSourceExtractor, RuleTableReader

logger = logging.getLogger("body_scanner.deterministic.validate_call_extractor")


class ValidateCallExtractor(RuleSourceExtractor):
    """Extract the literal rule table passed to the first validate call."""

    name = "validate_call"

    def find_call(self) -> Optional[ast.Call]:
        """First validate call in source order, however deeply nested."""
        names = self.config.validate_call_names
        found = None
        body = ast.Module(body=self.route_info.method_node().body, type_ignores=[])
        for node in ast.walk(body):
            if not isinstance(node, ast.Call):
                continue
            func = node.func
            callee = func.attr if isinstance(func, ast.Attribute) else getattr(func, "id", None)
            if callee in names and (found is None or (node.lineno, node.col_offset) < (found.lineno, found.col_offset)):
                found = node
        return found

    def _matches(self) -> bool:
        return self.find_call() is not None

    def _extract(self) -> RuleMap:
        call = self.find_call()
        if call is None:
            return {}

        table = self._rules_argument(call)
        if table is None:
            raise DynamicRuleTable(f"no rule table argument at line {call.lineno}")

        reader = RuleTableReader(
            self.route_info.lines,
            local_names=self.route_info.local_assignments(),
            constants=self.route_info.index.constants,
        )
        rules, node = reader.read(table)
        self._node = node
        return rules

    @staticmethod
    def _rules_argument(call: ast.Call) -> Optional[ast.expr]:
        for keyword in call.keywords:
            if keyword.arg == "rules":
                return keyword.value

        # The table is the first dict literal; otherwise the last name
        # argument (``self.validate(request, RULES)``).
        names = []
        for arg in call.args:
            if isinstance(arg, ast.Dict):
                return arg
            if isinstance(arg, ast.Name):
                names.append(arg)
        return names[-1] if names else None
