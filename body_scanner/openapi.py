"""
OpenAPI Generator Objects
=========================
Schema nodes, parameters, request bodies and operations produced by the
synthesis pipeline. Every object renders itself to an OpenAPI 3.0 fragment
via ``to_dict()``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# =============================================================================
# SCHEMA NODES
# =============================================================================

@dataclass
class Type:
    """Primitive schema node (string, integer, number, boolean)."""
    kind: str = "string"
    format: Optional[str] = None
    description: str = ""
    nullable: bool = False
    enum: Optional[List[Any]] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": self.kind}
        if self.format:
            result["format"] = self.format
        if self.description:
            result["description"] = self.description
        if self.nullable:
            result["nullable"] = True
        if self.enum is not None:
            result["enum"] = list(self.enum)
        for key, value in (
            ("minimum", self.minimum),
            ("maximum", self.maximum),
            ("minLength", self.min_length),
            ("maxLength", self.max_length),
        ):
            if value is not None:
                result[key] = value
        return result


@dataclass
class ObjectType(Type):
    """Object schema node with named child nodes. The only titled node."""
    kind: str = "object"
    properties: Dict[str, Type] = field(default_factory=dict)
    required: List[str] = field(default_factory=list)
    title: Optional[str] = None

    def add_property(self, name: str, node: Type, required: bool = False) -> None:
        self.properties[name] = node
        if required and name not in self.required:
            self.required.append(name)

    def set_title(self, title: str) -> "ObjectType":
        self.title = title
        return self

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        if self.title:
            result["title"] = self.title
        if self.properties:
            result["properties"] = {name: node.to_dict() for name, node in self.properties.items()}
        if self.required:
            result["required"] = list(self.required)
        return result


@dataclass
class ArrayType(Type):
    """Array schema node; ``items`` is the element node when known."""
    kind: str = "array"
    items: Optional[Type] = None
    min_items: Optional[int] = None
    max_items: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["items"] = self.items.to_dict() if self.items is not None else {}
        if self.min_items is not None:
            result["minItems"] = self.min_items
        if self.max_items is not None:
            result["maxItems"] = self.max_items
        return result


@dataclass
class Schema:
    """A schema wrapper carrying the root node and the schema title."""
    type: Type
    title: Optional[str] = None

    @classmethod
    def from_type(cls, node: Type) -> "Schema":
        return cls(type=node)

    @classmethod
    def from_parameters(cls, parameters: List["Parameter"]) -> "Schema":
        """Build an object schema whose properties are the parameters."""
        root = ObjectType()
        for param in parameters:
            node = param.schema.type
            if param.description and not node.description:
                node.description = param.description
            root.add_property(param.name, node, required=param.required)
        return cls(type=root)

    def set_title(self, title: str) -> "Schema":
        self.title = title
        return self

    def to_dict(self) -> Dict[str, Any]:
        result = self.type.to_dict()
        if self.title:
            result["title"] = self.title
        return result


# =============================================================================
# PARAMETERS / REQUEST BODY / OPERATION
# =============================================================================

class ParameterLocation(Enum):
    BODY = "body"
    QUERY = "query"


@dataclass
class Parameter:
    """A typed, named unit of request input derived from validation rules."""
    name: str
    schema: Schema
    required: bool = False
    description: str = ""
    in_: ParameterLocation = ParameterLocation.BODY

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "name": self.name,
            "in": self.in_.value,
            "required": self.required,
            "schema": self.schema.to_dict(),
        }
        if self.description:
            result["description"] = self.description
        return result


@dataclass
class RequestBodyObject:
    content: Dict[str, Schema] = field(default_factory=dict)

    def set_content(self, media_type: str, schema: Schema) -> "RequestBodyObject":
        self.content[media_type] = schema
        return self

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": {
                media_type: {"schema": schema.to_dict()}
                for media_type, schema in self.content.items()
            }
        }


@dataclass
class Operation:
    """
    Target documentation object for one endpoint.

    The synthesizer writes ``summary``, ``description`` and exactly one of
    ``request_body`` / ``parameters``.
    """
    method: str
    path: str = ""
    summary: str = ""
    description: str = ""
    request_body: Optional[RequestBodyObject] = None
    parameters: List[Parameter] = field(default_factory=list)

    def __post_init__(self):
        self.method = self.method.upper()

    def add_request_body_object(self, body: RequestBodyObject) -> "Operation":
        self.request_body = body
        return self

    def add_parameters(self, parameters: List[Parameter]) -> "Operation":
        self.parameters.extend(parameters)
        return self

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "summary": self.summary,
            "description": self.description,
        }
        if self.parameters:
            result["parameters"] = [p.to_dict() for p in self.parameters]
        if self.request_body is not None:
            result["requestBody"] = self.request_body.to_dict()
        return result
