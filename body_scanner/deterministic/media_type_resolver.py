#!/usr/bin/env python3
"""
Media Type Resolver
===================
Decides the request content type, first match wins:

1. ``@requestMediaType`` docstring tag (non-empty, trimmed) verbatim
2. GET requests → application/json
3. Any binary (file upload) parameter → multipart/form-data
4. application/json
"""

import logging
from typing import Optional, Sequence

from ..openapi import Parameter

logger = logging.getLogger("body_scanner.deterministic.media_type_resolver")

JSON_MEDIA_TYPE = "application/json"
MULTIPART_MEDIA_TYPE = "multipart/form-data"


class MediaTypeResolver:

    @staticmethod
    def resolve(override: Optional[str], http_method: str, parameters: Sequence[Parameter]) -> str:
        if override and override.strip():
            return override.strip()

        if http_method.upper() == "GET":
            return JSON_MEDIA_TYPE

        if MediaTypeResolver.has_binary(parameters):
            logger.debug("Binary parameter found, using multipart/form-data")
            return MULTIPART_MEDIA_TYPE

        return JSON_MEDIA_TYPE

    @staticmethod
    def has_binary(parameters: Sequence[Parameter]) -> bool:
        return any(getattr(p.schema.type, "format", None) == "binary" for p in parameters)
