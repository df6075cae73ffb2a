#!/usr/bin/env python3
"""
Rule Type Mapper
================
Turns a field's validation rule tokens into an OpenAPI schema node.

Rule grammar (Laravel-style tokens):
- Type rules: string, integer/int, numeric, boolean/bool, array
- Format rules: file/image/mimes/mimetypes (binary), email, url, uuid, date, ip
- Constraint rules: min:N, max:N, between:A,B, size:N, in:a,b,c, nullable
- Structured rules: Rule.in_([...]) (enum), File.image() (binary)

Unknown tokens are ignored: a rule the grammar does not understand never
aborts the mapping.
"""

import logging
import math
from typing import Any, List, Optional, Sequence, Tuple

from ..base import RuleObject, RuleToken
from ..openapi import ArrayType, ObjectType, Type

logger = logging.getLogger("body_scanner.deterministic.rule_grammar")


class RuleTypeMapper:
    """Map rule tokens to schema nodes."""

    # Rule name → (OpenAPI type, format)
    TYPE_RULES = {
        'string': ('string', None),
        'integer': ('integer', None),
        'int': ('integer', None),
        'numeric': ('number', None),
        'decimal': ('number', None),
        'boolean': ('boolean', None),
        'bool': ('boolean', None),
    }

    # Rule name → string format
    FORMAT_RULES = {
        'file': 'binary',
        'image': 'binary',
        'mimes': 'binary',
        'mimetypes': 'binary',
        'email': 'email',
        'url': 'uri',
        'active_url': 'uri',
        'uuid': 'uuid',
        'date': 'date-time',
        'ip': 'ipv4',
        'ipv4': 'ipv4',
        'ipv6': 'ipv6',
    }

    ARRAY_RULES = {'array', 'list'}

    @staticmethod
    def parse_token(token: str) -> Tuple[str, List[str]]:
        """
        Split a rule string into name and parameters.

        Example:
            >>> RuleTypeMapper.parse_token("in:draft,published")
            ('in', ['draft', 'published'])
        """
        name, _, params = token.partition(':')
        parameters = [p.strip() for p in params.split(',')] if params else []
        return name.strip().lower(), parameters

    @staticmethod
    def rule_names(tokens: Sequence[RuleToken]) -> List[str]:
        names = []
        for token in tokens:
            if isinstance(token, str):
                names.append(RuleTypeMapper.parse_token(token)[0])
        return names

    @staticmethod
    def is_required(tokens: Sequence[RuleToken]) -> bool:
        return 'required' in RuleTypeMapper.rule_names(tokens)

    def map(self, tokens: Sequence[RuleToken], node: Optional[Type] = None) -> Type:
        """
        Build the schema node for ``tokens``.

        When ``node`` is given its shape was already decided by nested paths;
        only constraints are applied to it.
        """
        if node is None:
            node = self._base_type(tokens)

        for token in tokens:
            try:
                if isinstance(token, RuleObject):
                    self._apply_rule_object(node, token)
                else:
                    name, params = self.parse_token(token)
                    self._apply_constraint(node, name, params)
            except (ValueError, TypeError, IndexError, OverflowError) as e:
                logger.debug(f"Ignoring rule {token!s}: {e}")

        return node

    def _base_type(self, tokens: Sequence[RuleToken]) -> Type:
        kind, fmt = 'string', None
        is_array = False

        for token in tokens:
            if isinstance(token, RuleObject):
                if self._is_file_rule(token):
                    fmt = 'binary'
                continue

            name, _ = self.parse_token(token)
            if name in self.ARRAY_RULES:
                is_array = True
            elif name in self.TYPE_RULES:
                kind, type_format = self.TYPE_RULES[name]
                fmt = type_format or fmt
            elif name in self.FORMAT_RULES:
                fmt = self.FORMAT_RULES[name]

        if is_array:
            return ArrayType()
        if fmt and kind == 'string':
            return Type(kind='string', format=fmt)
        return Type(kind=kind)

    @staticmethod
    def _number(value: str) -> float:
        number = float(value)
        if not math.isfinite(number):
            raise ValueError(f"not a finite number: {value!r}")
        return int(number) if number.is_integer() else number

    def _apply_constraint(self, node: Type, name: str, params: List[str]) -> None:
        if name == 'nullable':
            node.nullable = True
        elif name == 'in' and params:
            node.enum = [self._enum_value(node, p) for p in params]
        elif name == 'min' and params:
            self._set_bounds(node, low=self._number(params[0]))
        elif name == 'max' and params:
            self._set_bounds(node, high=self._number(params[0]))
        elif name == 'between' and len(params) >= 2:
            self._set_bounds(node, low=self._number(params[0]), high=self._number(params[1]))
        elif name == 'size' and params:
            size = self._number(params[0])
            self._set_bounds(node, low=size, high=size)

    def _apply_rule_object(self, node: Type, rule: RuleObject) -> None:
        short = rule.name.split('.')[-1].lower().strip('_')

        if short == 'in' and rule.args and isinstance(rule.args[0], (list, tuple)):
            node.enum = list(rule.args[0])
        elif self._is_file_rule(rule) and node.kind == 'string':
            node.format = 'binary'

    @staticmethod
    def _is_file_rule(rule: RuleObject) -> bool:
        segments = {segment.lower() for segment in rule.name.split('.')}
        return bool(segments & {'file', 'image'})

    @staticmethod
    def _enum_value(node: Type, value: str) -> Any:
        if node.kind in ('integer', 'number'):
            try:
                return RuleTypeMapper._number(value)
            except ValueError:
                return value
        return value

    @staticmethod
    def _set_bounds(node: Type, low=None, high=None) -> None:
        if isinstance(node, ArrayType):
            if low is not None:
                node.min_items = int(low)
            if high is not None:
                node.max_items = int(high)
        elif isinstance(node, ObjectType):
            return
        elif node.kind in ('integer', 'number'):
            if low is not None:
                node.minimum = low
            if high is not None:
                node.maximum = high
        elif node.kind == 'string' and node.format != 'binary':
            if low is not None:
                node.min_length = int(low)
            if high is not None:
                node.max_length = int(high)
