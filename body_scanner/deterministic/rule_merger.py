#!/usr/bin/env python3
"""
Rule Merger
===========
Combines the per-strategy rule maps into one.

Results are folded in extractor order with path-level overwrite: when two
strategies declare the same path, the later strategy's rule list replaces the
earlier one as a whole. Paths declared by only one strategy are kept.
"""

import logging
from typing import List, Sequence, Set, Tuple

from ..base import CodeNode, ExtractionResult, RuleMap

logger = logging.getLogger("body_scanner.deterministic.rule_merger")


class RuleMerger:

    @staticmethod
    def merge(results: Sequence[ExtractionResult]) -> Tuple[RuleMap, List[CodeNode]]:
        rules: RuleMap = {}
        nodes: List[CodeNode] = []
        seen: Set[int] = set()

        for result in results:
            if result.is_empty():
                continue

            overridden = [path for path in result.rules if path in rules]
            if overridden:
                logger.debug(f"{result.source} overrides rules for: {', '.join(overridden)}")

            rules.update({path: list(tokens) for path, tokens in result.rules.items()})

            for code_node in result.nodes:
                if id(code_node.node) not in seen:
                    seen.add(id(code_node.node))
                    nodes.append(code_node)

        return rules, nodes
