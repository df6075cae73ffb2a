#!/usr/bin/env python3
"""
Nested Title Promoter
=====================
Promotes ``type:<Identifier>`` hints in parameter descriptions to schema
titles of object parameters:

    # The user's address. type:Address extra notes
    "address": "required|array",

gives the ``address`` schema the title ``Address`` and the description
``The user's address. extra notes``.
"""

import logging
import re
from typing import Iterable

from ..openapi import ObjectType, Parameter

logger = logging.getLogger("body_scanner.deterministic.nested_titles")

TYPE_TAG = re.compile(r'type:[a-zA-Z_][a-zA-Z0-9_]+')
MULTIPLE_SPACES = re.compile(r'  +')


class NestedTitlePromoter:

    @staticmethod
    def apply(parameters: Iterable[Parameter]) -> None:
        for param in parameters:
            if not isinstance(param.schema.type, ObjectType):
                continue

            match = TYPE_TAG.search(param.description or "")
            if not match:
                continue

            title = match.group(0)[len("type:"):]
            param.schema.set_title(title)
            param.schema.type.set_title(title)

            description = TYPE_TAG.sub("", param.description).strip()
            param.description = MULTIPLE_SPACES.sub(" ", description)

            logger.debug(f"Promoted nested title {title} for {param.name}")
