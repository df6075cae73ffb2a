"""End-to-end tests for request body synthesis."""

import pytest

from body_scanner import (
    ArrayType,
    ObjectType,
    Operation,
    ParameterLocation,
    RequestBodySynthesizer,
    RouteInfo,
    RuleTransformationError,
    SynthesisConfig,
)
from body_scanner.request_body import WARNING_PREFIX, FailurePolicy


def document(route, config=None, policy=FailurePolicy.ANNOTATE, **kwargs):
    operation = Operation(method=route.http_method, path=route.path)
    RequestBodySynthesizer(config, failure_policy=policy, **kwargs).handle(operation, route)
    return operation


def body_schema(operation):
    assert operation.request_body is not None
    ((media_type, schema),) = operation.request_body.content.items()
    return media_type, schema


class FailingTransformer:
    def __init__(self, rules, nodes):
        pass

    def handle(self):
        raise RuntimeError("boom")


class TestRequestBody:

    def test_handler_without_rules_or_docs(self):
        route = RouteInfo.from_source("def handler(request):\n    return {}\n", "handler", http_method="POST")

        operation = document(route)

        assert operation.summary == ""
        assert operation.description == ""
        assert operation.parameters == []
        media_type, schema = body_schema(operation)
        assert media_type == "application/json"
        assert isinstance(schema.type, ObjectType)
        assert schema.type.properties == {}
        assert schema.title is None

    def test_inline_rules(self, flask_route):
        operation = document(flask_route("create_user"))

        assert operation.method == "POST"
        assert operation.path == "/api/users"
        assert operation.summary == "Create a user"
        assert operation.description == "Registers the account and sends a welcome mail."
        assert operation.parameters == []

        media_type, schema = body_schema(operation)
        assert media_type == "application/json"
        assert schema.title == "CreateUserRequest"

        root = schema.type
        assert list(root.properties) == ["name", "age", "role", "address", "tags"]
        assert root.required == ["name", "role", "address"]
        assert root.properties["name"].description == "Full display name"
        assert root.properties["age"].minimum == 18
        assert root.properties["role"].enum == ["admin", "member"]
        assert isinstance(root.properties["tags"], ArrayType)

    def test_nested_title_is_promoted(self, flask_route):
        _, schema = body_schema(document(flask_route("create_user")))

        address = schema.type.properties["address"]
        assert isinstance(address, ObjectType)
        assert address.title == "Address"
        assert address.description == "The user's address. extra notes"
        assert address.required == ["city"]

    def test_file_upload_is_multipart(self, flask_route):
        media_type, schema = body_schema(document(flask_route("upload_avatar")))

        assert media_type == "multipart/form-data"
        assert schema.type.properties["avatar"].format == "binary"

    def test_get_rules_become_query_parameters(self, flask_route):
        operation = document(flask_route("list_users"))

        assert operation.request_body is None
        assert [p.name for p in operation.parameters] == ["page", "per_page"]
        assert all(p.in_ == ParameterLocation.QUERY for p in operation.parameters)
        assert operation.parameters[1].schema.type.maximum == 100

    def test_get_without_rules_documents_nothing(self, flask_route):
        operation = document(flask_route("health"))

        assert operation.request_body is None
        assert operation.parameters == []

    def test_configured_disallowed_method(self, flask_route):
        config = SynthesisConfig(disallow_request_body={"post"})

        operation = document(flask_route("login"), config)

        assert operation.request_body is None
        assert [p.name for p in operation.parameters] == ["email", "password"]

    def test_dynamic_rules_give_empty_body(self, flask_route):
        operation = document(flask_route("update_settings"))

        _, schema = body_schema(operation)
        assert schema.type.properties == {}
        assert WARNING_PREFIX not in operation.description

    def test_non_finite_bound_keeps_body(self):
        source = (
            "def store(request):\n"
            "    request.validate({'name': 'string|max:inf', 'age': 'integer|max:1e400'})\n"
        )
        route = RouteInfo.from_source(source, "store", http_method="POST")

        operation = document(route, policy=FailurePolicy.RAISE)

        _, schema = body_schema(operation)
        assert list(schema.type.properties) == ["name", "age"]
        assert schema.type.properties["age"].maximum is None
        assert WARNING_PREFIX not in operation.description

    def test_statement_comment_is_not_promoted(self):
        source = (
            "def store(request):\n"
            "    # Validate then persist. type:Leaked\n"
            "    data = request.validate({'address': 'array', 'address.city': 'string'})\n"
        )
        route = RouteInfo.from_source(source, "store", http_method="POST")

        _, schema = body_schema(document(route))

        address = schema.type.properties["address"]
        assert address.title is None
        assert address.description == ""

    def test_summary_trailing_period_is_stripped(self, flask_route):
        assert document(flask_route("login")).summary == "Log in with email and password"


class TestMergedSources:

    def test_request_class_and_inline_rules_are_merged(self, controller_route):
        operation = document(controller_route("update", "PUT"))

        assert operation.summary == "Update a user"
        assert operation.description == "Replaces the profile fields."

        media_type, schema = body_schema(operation)
        assert media_type == "multipart/form-data"
        assert schema.title == "UpdateUserRequest"

        root = schema.type
        assert list(root.properties) == ["name", "email", "nickname", "avatar"]
        # inline rules override the request class per path
        assert root.properties["email"].format is None
        assert root.properties["nickname"].nullable
        assert root.properties["name"].description == "Public display name"

    def test_doc_tags_override_title_and_media_type(self, controller_route):
        operation = document(controller_route("store"))

        assert operation.summary == "Store a user"
        assert operation.description == ""
        media_type, schema = body_schema(operation)
        assert media_type == "text/plain"
        assert schema.title == "CreateUser"

    def test_extract_rules_stage(self, controller_route):
        rules, nodes = RequestBodySynthesizer().extract_rules(controller_route("update"))

        assert rules["email"] == ["required", "string"]
        assert rules["avatar"] == ["file"]
        assert len(nodes) == 2


class TestFailurePolicy:

    def test_annotate_appends_warning(self, flask_route):
        operation = document(flask_route("create_user"), transformer=FailingTransformer)

        assert operation.request_body is None
        assert operation.parameters == []
        assert operation.summary == "Create a user"
        assert operation.description == (
            "Registers the account and sends a welcome mail." + WARNING_PREFIX + "boom"
        )
        assert "Cannot generate request documentation: boom" in operation.description

    def test_raise_propagates_original_exception(self, flask_route):
        with pytest.raises(RuntimeError, match="boom"):
            document(flask_route("create_user"), policy=FailurePolicy.RAISE, transformer=FailingTransformer)

    def test_invalid_rule_path(self):
        source = (
            "def store(request):\n"
            "    request.validate({'address..city': 'string'})\n"
        )
        route = RouteInfo.from_source(source, "store", http_method="POST")

        operation = document(route)
        assert operation.request_body is None
        assert "Invalid rule path" in operation.description

        with pytest.raises(RuleTransformationError):
            document(route, policy=FailurePolicy.RAISE)

    def test_testing_environment_selects_raise(self):
        synthesizer = RequestBodySynthesizer(SynthesisConfig(environment="testing"))
        assert synthesizer.failure_policy == FailurePolicy.RAISE

    def test_default_policy_annotates(self):
        assert RequestBodySynthesizer().failure_policy == FailurePolicy.ANNOTATE

    def test_failures_are_logged(self, flask_route, caplog):
        with caplog.at_level("WARNING", logger="body_scanner.request_body"):
            document(flask_route("create_user"), transformer=FailingTransformer)

        assert "create_user" in caplog.text
        assert "transformation" in caplog.text


def test_operation_to_dict(flask_route):
    rendered = document(flask_route("create_user")).to_dict()

    schema = rendered["requestBody"]["content"]["application/json"]["schema"]
    assert schema["title"] == "CreateUserRequest"
    assert schema["type"] == "object"
    assert schema["properties"]["address"]["title"] == "Address"
    assert schema["properties"]["tags"] == {"type": "array", "items": {"type": "string"}}
    assert "parameters" not in rendered
