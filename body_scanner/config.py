"""
Synthesis configuration.

Read-only settings consumed by the request body synthesizer. Can be loaded
from environment variables (``BODY_SCANNER_*``) or a JSON/YAML file.
"""

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

import yaml

DEFAULT_DISALLOW_REQUEST_BODY: FrozenSet[str] = frozenset({"GET", "HEAD"})
DEFAULT_REQUEST_BASE_CLASSES: FrozenSet[str] = frozenset({"FormRequest"})
DEFAULT_VALIDATE_CALL_NAMES: FrozenSet[str] = frozenset({"validate"})

TESTING_ENVIRONMENT = "testing"


def _split_list(value: Optional[str]) -> Optional[FrozenSet[str]]:
    if value is None:
        return None
    return frozenset(item.strip() for item in value.split(",") if item.strip())


def _methods(values: Iterable[str]) -> FrozenSet[str]:
    return frozenset(v.upper() for v in values)


@dataclass(frozen=True)
class SynthesisConfig:
    """
    Configuration with sensible defaults.

    ``disallow_request_body`` lists the HTTP methods whose rules are
    documented as query parameters instead of a request body.
    """
    disallow_request_body: FrozenSet[str] = DEFAULT_DISALLOW_REQUEST_BODY
    environment: str = "production"
    request_base_classes: FrozenSet[str] = DEFAULT_REQUEST_BASE_CLASSES
    rules_method_name: str = "rules"
    validate_call_names: FrozenSet[str] = DEFAULT_VALIDATE_CALL_NAMES

    def __post_init__(self):
        # Normalize collections passed as lists/sets and methods to upper case
        object.__setattr__(self, "disallow_request_body", _methods(self.disallow_request_body))
        object.__setattr__(self, "request_base_classes", frozenset(self.request_base_classes))
        object.__setattr__(self, "validate_call_names", frozenset(self.validate_call_names))

    @property
    def is_testing(self) -> bool:
        return self.environment.lower() == TESTING_ENVIRONMENT

    def allows_request_body(self, method: str) -> bool:
        return method.upper() not in self.disallow_request_body

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "SynthesisConfig":
        """Load configuration from environment variables."""
        env = os.environ if environ is None else environ
        return cls(
            disallow_request_body=_split_list(env.get("BODY_SCANNER_DISALLOW_REQUEST_BODY"))
            or DEFAULT_DISALLOW_REQUEST_BODY,
            environment=env.get("BODY_SCANNER_ENV", "production"),
            request_base_classes=_split_list(env.get("BODY_SCANNER_REQUEST_BASES"))
            or DEFAULT_REQUEST_BASE_CLASSES,
            rules_method_name=env.get("BODY_SCANNER_RULES_METHOD", "rules"),
            validate_call_names=_split_list(env.get("BODY_SCANNER_VALIDATE_CALLS"))
            or DEFAULT_VALIDATE_CALL_NAMES,
        )

    @classmethod
    def from_file(cls, path: str) -> "SynthesisConfig":
        """Load configuration from JSON or YAML file."""
        with open(path, "r", encoding="utf-8") as f:
            if path.endswith((".yaml", ".yml")):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)

        for key in ("disallow_request_body", "request_base_classes", "validate_call_names"):
            if key in data and isinstance(data[key], str):
                data[key] = _split_list(data[key])

        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "disallow_request_body": sorted(self.disallow_request_body),
            "environment": self.environment,
            "request_base_classes": sorted(self.request_base_classes),
            "rules_method_name": self.rules_method_name,
            "validate_call_names": sorted(self.validate_call_names),
        }
