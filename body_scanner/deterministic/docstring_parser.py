#!/usr/bin/env python3
"""
Docstring Parser
=================
Extract summary, description and ``@tags`` from handler docstrings using AST.

Handlers document their request body with tag lines inside the docstring:

    def store(self, request):
        \"\"\"
        Create a user.

        Stores the user and sends a welcome mail.

        @request CreateUser
        @requestMediaType application/x-www-form-urlencoded
        \"\"\"

Tag lines are removed from the description. Google/NumPy/Sphinx sections
(``Args:``, ``Returns:``, ``:param x:``) end the description.
"""

import ast
import logging
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

logger = logging.getLogger("body_scanner.deterministic.docstring_parser")

TAG_PATTERN = re.compile(r'^\s*(@[A-Za-z_][\w-]*)(?:\s+(.*))?$')

SECTION_HEADERS = [
    'Args:', 'Arguments:', 'Parameters:', 'Returns:', 'Return:',
    'Yields:', 'Raises:', 'Note:', 'Example:', 'Examples:',
]


@dataclass
class DocTag:
    name: str
    value: str = ""


@dataclass
class DocBlock:
    """Parsed documentation node of a handler."""
    summary: str = ""
    description: str = ""
    tags: List[DocTag] = field(default_factory=list)

    def get_tags_by_name(self, name: str) -> List[DocTag]:
        return [tag for tag in self.tags if tag.name == name]

    def first_tag_value(self, name: str) -> Optional[str]:
        tags = self.get_tags_by_name(name)
        return tags[0].value if tags else None

    def to_dict(self) -> Dict[str, object]:
        return {
            "summary": self.summary,
            "description": self.description,
            "tags": {tag.name: tag.value for tag in self.tags},
        }


class DocstringParser:
    """
    Extract structured information from Python docstrings.

    Uses Python AST to get docstrings without executing code.
    """

    @staticmethod
    def extract_from_node(node: Optional[ast.AST]) -> DocBlock:
        """Parse the docstring of a function or class node."""
        if not isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            return DocBlock()

        docstring = ast.get_docstring(node)
        if not docstring:
            logger.debug(f"No docstring found for {getattr(node, 'name', '<node>')}")
            return DocBlock()

        return DocstringParser.parse_docstring(docstring)

    @staticmethod
    def parse_docstring(docstring: str) -> DocBlock:
        """
        Parse docstring text.

        The summary is the first paragraph (joined into one line), the
        description is the remaining text before any section header, with
        tag lines removed.
        """
        if not docstring or not docstring.strip():
            return DocBlock()

        tags: List[DocTag] = []
        text_lines: List[str] = []

        for line in docstring.strip().split('\n'):
            match = TAG_PATTERN.match(line)
            if match:
                tags.append(DocTag(name=match.group(1), value=(match.group(2) or "").strip()))
            else:
                text_lines.append(line.rstrip())

        body = DocstringParser._strip_sections('\n'.join(text_lines)).strip()
        paragraphs = [p for p in re.split(r'\n\s*\n', body) if p.strip()]

        summary = ""
        description = ""
        if paragraphs:
            summary = ' '.join(line.strip() for line in paragraphs[0].split('\n'))
            description = '\n\n'.join(p.strip() for p in paragraphs[1:])

        return DocBlock(summary=summary, description=description, tags=tags)

    @staticmethod
    def _strip_sections(text: str) -> str:
        """Cut the text at the first Google, NumPy or Sphinx section."""
        pattern = r'^\s*(?:' + '|'.join(re.escape(h) for h in SECTION_HEADERS) + r')\s*$'
        cut = len(text)

        match = re.search(pattern, text, re.MULTILINE | re.IGNORECASE)
        if match:
            cut = min(cut, match.start())

        # NumPy style: "Parameters\n----------"
        match = re.search(r'^\s*\w+\s*\n\s*-{3,}\s*$', text, re.MULTILINE)
        if match:
            cut = min(cut, match.start())

        # Sphinx style: ":param name:", ":return:"
        match = re.search(r'^\s*:(?:param|returns?|raises?|type|rtype)\b', text, re.MULTILINE)
        if match:
            cut = min(cut, match.start())

        return text[:cut]
