#!/usr/bin/env python3
"""
Deterministic Request Body Analysis
===================================
AST-based components that recover request documentation from handler
source code without running it.

**Rule extraction:**
- Declared request classes (``def store(self, request: StoreUserRequest)``)
- Inline validate calls (``request.validate({...})``)
- Rule merging with per-path precedence

**Schema building:**
- Rule tokens → OpenAPI types (``RuleTypeMapper``)
- Rule maps → parameters (``RulesToParameters``)
- Nested titles, media types and schema titles

**Documentation:**
- Docstring summary, description and ``@tags``
"""

from .docstring_parser import DocBlock, DocstringParser, DocTag
from .rule_source import RuleSourceExtractor, RuleTableReader
from .form_request_extractor import FormRequestRulesExtractor
from .validate_call_extractor import ValidateCallExtractor
from .rule_merger import RuleMerger
from .rule_grammar import RuleTypeMapper
from .rules_to_parameters import RulesToParameters
from .media_type_resolver import MediaTypeResolver
from .title_resolver import TitleResolver
from .nested_titles import NestedTitlePromoter

__all__ = [
    # Documentation
    'DocBlock',
    'DocTag',
    'DocstringParser',
    # Rule extraction
    'RuleSourceExtractor',
    'RuleTableReader',
    'FormRequestRulesExtractor',
    'ValidateCallExtractor',
    'RuleMerger',
    # Schema building
    'RuleTypeMapper',
    'RulesToParameters',
    'MediaTypeResolver',
    'TitleResolver',
    'NestedTitlePromoter',
]
