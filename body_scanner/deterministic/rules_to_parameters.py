#!/usr/bin/env python3
"""
Rules To Parameters
===================
Transforms a merged rule map into request parameters.

- One parameter per top-level field, in first-seen order.
- Dotted paths become nested schema nodes: ``address.city`` is a property of
  the ``address`` object, ``tags.*`` is the element of the ``tags`` array.
  Parents without rules of their own are created implicitly.
- ``#`` comments directly above a rule key become the field description.

Rule tokens are interpreted by ``RuleTypeMapper``.
"""

import ast
import logging
from typing import Dict, List, Optional, Sequence

from ..base import CodeNode, RuleMap, RuleToken
from ..errors import RuleTransformationError
from ..openapi import ArrayType, ObjectType, Parameter, Schema, Type
from .rule_grammar import RuleTypeMapper

logger = logging.getLogger("body_scanner.deterministic.rules_to_parameters")

ARRAY_ELEMENT = "*"


class _Field:
    """A node of the path tree built from dotted rule keys."""

    def __init__(self, name: str):
        self.name = name
        self.tokens: Optional[List[RuleToken]] = None
        self.children: Dict[str, "_Field"] = {}

    @property
    def rules(self) -> List[RuleToken]:
        return self.tokens or []


class RulesToParameters:
    """
    Build ``Parameter`` objects from a rule map.

    Usage:
        params = RulesToParameters(rules, nodes).handle()
    """

    def __init__(
        self,
        rules: RuleMap,
        nodes: Sequence[CodeNode] = (),
        type_mapper: Optional[RuleTypeMapper] = None,
    ):
        self.rules = rules
        self.nodes = list(nodes)
        self.type_mapper = type_mapper or RuleTypeMapper()
        self._descriptions: Dict[str, str] = {}

    def handle(self) -> List[Parameter]:
        tree = self._build_tree()
        self._descriptions = self._collect_descriptions()

        parameters = []
        for name, field in tree.items():
            parameters.append(Parameter(
                name=name,
                schema=Schema.from_type(self._build_type(field, name)),
                required=self.type_mapper.is_required(field.rules),
                description=self._descriptions.get(name, ""),
            ))

        logger.debug(f"Built {len(parameters)} parameters from {len(self.rules)} rules")
        return parameters

    def _build_tree(self) -> Dict[str, _Field]:
        tree: Dict[str, _Field] = {}

        for path, tokens in self.rules.items():
            segments = path.split(".")
            if any(not segment.strip() for segment in segments):
                raise RuleTransformationError(f"Invalid rule path {path!r}")

            level = tree
            field = None
            for segment in segments:
                field = level.setdefault(segment, _Field(segment))
                level = field.children
            field.tokens = list(tokens)

        return tree

    def _build_type(self, field: _Field, path: str) -> Type:
        if not field.children:
            return self.type_mapper.map(field.rules)

        if ARRAY_ELEMENT in field.children:
            ignored = [name for name in field.children if name != ARRAY_ELEMENT]
            if ignored:
                logger.debug(f"{path}: ignoring keyed rules next to '*': {', '.join(ignored)}")
            item_path = f"{path}.{ARRAY_ELEMENT}"
            items = self._build_type(field.children[ARRAY_ELEMENT], item_path)
            self._describe(items, item_path)
            return self.type_mapper.map(field.rules, ArrayType(items=items))

        node = ObjectType()
        for name, child in field.children.items():
            child_path = f"{path}.{name}"
            child_type = self._build_type(child, child_path)
            self._describe(child_type, child_path)
            node.add_property(name, child_type, required=self.type_mapper.is_required(child.rules))
        return self.type_mapper.map(field.rules, node)

    def _describe(self, node: Type, path: str) -> None:
        description = self._descriptions.get(path)
        if description:
            node.description = description

    def _collect_descriptions(self) -> Dict[str, str]:
        """
        Comment blocks above rule keys, later nodes overriding earlier ones.

        Only keys that start their own line inside the table are described:
        a comment above the line that opens the table belongs to the
        surrounding statement.
        """
        descriptions: Dict[str, str] = {}
        for code_node in self.nodes:
            table = code_node.node
            if not isinstance(table, ast.Dict):
                continue
            claimed_lines = {table.lineno}
            for key in table.keys:
                if not isinstance(key, ast.Constant) or not isinstance(key.value, str):
                    continue
                if key.lineno in claimed_lines:
                    continue
                claimed_lines.add(key.lineno)
                comment = self._comment_above(code_node.lines, key.lineno, table.lineno)
                if comment:
                    descriptions[key.value] = comment
        return descriptions

    @staticmethod
    def _comment_above(lines: List[str], lineno: int, floor: int = 0) -> str:
        collected = []
        index = lineno - 2
        while floor <= index < len(lines):
            stripped = lines[index].strip()
            if not stripped.startswith("#"):
                break
            collected.append(stripped.lstrip("#").strip())
            index -= 1
        return " ".join(reversed(collected)).strip()
