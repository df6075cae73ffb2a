"""Tests for request media type resolution."""

from body_scanner import Parameter, Schema, Type
from body_scanner.deterministic import MediaTypeResolver


def param(name, fmt=None):
    return Parameter(name=name, schema=Schema.from_type(Type(kind="string", format=fmt)))


FILE = [param("title"), param("avatar", "binary")]
PLAIN = [param("title"), param("email", "email")]


def test_override_wins():
    assert MediaTypeResolver.resolve("text/plain", "POST", FILE) == "text/plain"
    assert MediaTypeResolver.resolve("  application/xml ", "GET", PLAIN) == "application/xml"


def test_blank_override_is_ignored():
    assert MediaTypeResolver.resolve("   ", "POST", FILE) == "multipart/form-data"


def test_get_is_json_even_with_files():
    assert MediaTypeResolver.resolve(None, "GET", FILE) == "application/json"
    assert MediaTypeResolver.resolve(None, "get", FILE) == "application/json"


def test_binary_parameter_selects_multipart():
    assert MediaTypeResolver.resolve(None, "POST", FILE) == "multipart/form-data"


def test_default_is_json():
    assert MediaTypeResolver.resolve(None, "POST", PLAIN) == "application/json"
    assert MediaTypeResolver.resolve(None, "PUT", []) == "application/json"
