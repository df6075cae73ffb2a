"""
Request Body Scanner.

Synthesizes OpenAPI request body documentation for Python endpoint handlers
from the validation rules they declare, using static analysis only.
"""

from .base import (
    CodeNode,
    ErrorKind,
    ExtractionResult,
    RuleMap,
    RuleObject,
    StageResult,
    StageStatus,
)
from .config import SynthesisConfig
from .errors import BodyScannerError, HandlerNotFoundError, RuleTransformationError
from .openapi import (
    ArrayType,
    ObjectType,
    Operation,
    Parameter,
    ParameterLocation,
    RequestBodyObject,
    Schema,
    Type,
)
from .route_info import ModuleIndex, RouteInfo
from .request_body import FailurePolicy, RequestBodySynthesizer

__version__ = "1.0.0"

__all__ = [
    # Data models
    "CodeNode",
    "ErrorKind",
    "ExtractionResult",
    "RuleMap",
    "RuleObject",
    "StageResult",
    "StageStatus",
    # OpenAPI objects
    "ArrayType",
    "ObjectType",
    "Operation",
    "Parameter",
    "ParameterLocation",
    "RequestBodyObject",
    "Schema",
    "Type",
    # Pipeline
    "FailurePolicy",
    "ModuleIndex",
    "RequestBodySynthesizer",
    "RouteInfo",
    "SynthesisConfig",
    # Errors
    "BodyScannerError",
    "HandlerNotFoundError",
    "RuleTransformationError",
]
