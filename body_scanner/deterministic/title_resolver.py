#!/usr/bin/env python3
"""
Title Resolver
==============
Names the request body schema. Fallback chain, first hit wins:

1. ``@request CreateUser`` docstring tag → ``CreateUser``
2. Handler parameter typed with a request class → ``UpdateUserRequest``
3. Declaring class name → ``UserApiController`` → ``UserRequest``
"""

import re
from typing import TYPE_CHECKING, Iterable, Optional

from .docstring_parser import DocBlock

if TYPE_CHECKING:
    from ..route_info import RouteInfo

CONTROLLER_SUFFIX = re.compile(r'(Api)?Controller$')


class TitleResolver:

    def __init__(self, request_base_classes: Iterable[str] = ("FormRequest",)):
        self.request_base_classes = set(request_base_classes)

    def resolve(self, doc: DocBlock, route_info: "RouteInfo") -> str:
        return (
            self.title_from_doc(doc)
            or self.title_from_parameters(route_info)
            or self.title_from_class_name(self.declaring_name(route_info))
        )

    @staticmethod
    def title_from_doc(doc: DocBlock) -> Optional[str]:
        value = doc.first_tag_value("@request")
        if not value or not value.split():
            return None
        return value.split()[0]

    def title_from_parameters(self, route_info: "RouteInfo") -> Optional[str]:
        types = route_info.request_parameter_types(self.request_base_classes)
        return types[0].split(".")[-1] if types else None

    @staticmethod
    def title_from_class_name(class_name: str) -> str:
        short = class_name.split(".")[-1]
        return CONTROLLER_SUFFIX.sub("", short) + "Request"

    @staticmethod
    def declaring_name(route_info: "RouteInfo") -> str:
        """Declaring class, or the CamelCased function name for plain functions."""
        class_name = route_info.class_name()
        if class_name:
            return class_name
        return "".join(part[:1].upper() + part[1:] for part in route_info.method_node().name.split("_"))
