"""Tests for the rule source extractors and the rule table reader."""

import ast

import pytest

from body_scanner import CodeNode, ErrorKind, RouteInfo, RuleObject, SynthesisConfig
from body_scanner.deterministic import (
    FormRequestRulesExtractor,
    RuleTableReader,
    ValidateCallExtractor,
)
from body_scanner.deterministic.rule_source import DynamicRuleTable


class TestValidateCallExtractor:

    def test_request_validate_call(self, flask_route, config):
        extractor = ValidateCallExtractor(flask_route("login"), config)

        assert extractor.should_handle()
        assert extractor.extract() == {
            "email": ["required", "email"],
            "password": ["required", "string", "min:8"],
        }
        assert isinstance(extractor.node(), CodeNode)
        assert isinstance(extractor.node().node, ast.Dict)

    def test_function_validate_call_resolves_constants_and_rule_objects(self, flask_route, config):
        rules = ValidateCallExtractor(flask_route("create_user"), config).extract()

        assert list(rules) == ["name", "age", "role", "address", "address.city", "address.zip", "tags.*"]
        assert rules["address"] == ["required", "array"]
        assert rules["age"] == ["integer", "min:18", "max:130"]

        required, rule = rules["role"]
        assert required == "required"
        assert isinstance(rule, RuleObject)
        assert rule.name == "Rule.in_"
        assert rule.args == (["admin", "member"],)

    def test_self_validate_call(self, controller_route, config):
        rules = ValidateCallExtractor(controller_route("update"), config).extract()
        assert rules == {"email": ["required", "string"], "avatar": ["file"]}

    def test_handler_without_call_is_not_handled(self, flask_route, config):
        extractor = ValidateCallExtractor(flask_route("health"), config)

        assert not extractor.should_handle()
        result = extractor.run()
        assert result.is_empty()
        assert result.nodes == ()
        assert result.source == "validate_call"

    def test_dynamic_table_yields_empty_map(self, flask_route, config):
        extractor = ValidateCallExtractor(flask_route("update_settings"), config)

        assert extractor.should_handle()
        assert extractor.extract() == {}
        assert extractor.node() is None
        assert extractor.error.error_kind == ErrorKind.EXTRACTION

        result = extractor.run()
        assert result.nodes == ()
        assert result.error.error_kind == ErrorKind.EXTRACTION
        assert result.to_dict()["error"]["error_kind"] == "extraction"

    def test_successful_extraction_has_no_error(self, flask_route, config):
        result = ValidateCallExtractor(flask_route("login"), config).run()
        assert result.error is None

    def test_first_call_in_source_order(self, config):
        source = (
            "def store(request):\n"
            "    if request.is_json:\n"
            "        request.validate({'title': 'required|string'})\n"
            "    request.validate({'body': 'string'})\n"
        )
        route = RouteInfo.from_source(source, "store", http_method="POST")

        rules = ValidateCallExtractor(route, config).extract()

        assert rules == {"title": ["required", "string"]}

    def test_decorator_named_validate_is_ignored(self, config):
        source = (
            "@validate({'ignored': 'string'})\n"
            "def store(request):\n"
            "    request.validate({'title': 'string'})\n"
        )
        route = RouteInfo.from_source(source, "store", http_method="POST")

        assert ValidateCallExtractor(route, config).extract() == {"title": ["string"]}

    def test_rules_keyword(self, config):
        source = (
            "def store(request):\n"
            "    check(request, rules={'title': 'required|string'})\n"
        )
        route = RouteInfo.from_source(source, "store", http_method="POST")
        extractor = ValidateCallExtractor(route, SynthesisConfig(validate_call_names={"check"}))

        assert extractor.extract() == {"title": ["required", "string"]}


class TestFormRequestRulesExtractor:

    def test_rules_of_annotated_request_class(self, controller_route, config):
        extractor = FormRequestRulesExtractor(controller_route("update"), config)

        assert extractor.should_handle()
        assert extractor.request_class_name() == "UpdateUserRequest"
        assert extractor.extract() == {
            "name": ["required", "string", "max:255"],
            "email": ["required", "email"],
            "nickname": ["nullable", "string"],
        }
        assert isinstance(extractor.node().node, ast.Dict)

    def test_rules_inherited_from_base_request(self, controller_route, config):
        extractor = FormRequestRulesExtractor(controller_route("inherited"), config)

        assert extractor.request_class_name() == "InheritedRulesRequest"
        assert extractor.extract() == {"email": ["required", "email"]}

    def test_spread_table_yields_empty_map(self, controller_route, config):
        extractor = FormRequestRulesExtractor(controller_route("dynamic"), config)

        assert extractor.should_handle()
        assert extractor.extract() == {}

    def test_unannotated_request_is_not_handled(self, controller_route, config):
        assert not FormRequestRulesExtractor(controller_route("store"), config).should_handle()
        assert not FormRequestRulesExtractor(controller_route("ping"), config).should_handle()

    def test_request_class_from_extra_source(self, config):
        handler = (
            "class PostController:\n"
            "    def store(self, request: StorePostRequest):\n"
            "        return {}\n"
        )
        requests = (
            "class StorePostRequest(FormRequest):\n"
            "    def rules(self):\n"
            "        return {'title': 'required|string|max:100'}\n"
        )
        route = RouteInfo.from_source(handler, "PostController.store", http_method="POST", extra_sources=[requests])

        rules = FormRequestRulesExtractor(route, config).extract()
        assert rules == {"title": ["required", "string", "max:100"]}

    def test_structural_check_failure_is_contained(self, controller_route, config, monkeypatch):
        route = controller_route("update")

        def broken(bases):
            raise RuntimeError("index unavailable")

        monkeypatch.setattr(route, "request_parameter_types", broken)
        extractor = FormRequestRulesExtractor(route, config)

        assert not extractor.should_handle()
        assert extractor.extract() == {}


class TestRuleTableReader:

    def _table(self, source):
        tree = ast.parse(source)
        return tree.body[0].value, source.splitlines()

    def test_list_rules_and_names(self):
        table, lines = self._table("RULES = {'tags': ['array', MIN_ONE], 'code': 'string'}")
        constants = {"MIN_ONE": (ast.parse("'min:1'", mode="eval").body, lines)}

        rules, node = RuleTableReader(lines, constants=constants).read(table)

        assert rules == {"tags": ["array", "min:1"], "code": ["string"]}
        assert node.node is table

    def test_non_string_key_is_dynamic(self):
        table, lines = self._table("RULES = {name_key: 'string'}")

        with pytest.raises(DynamicRuleTable):
            RuleTableReader(lines).read(table)

    def test_non_literal_argument_keeps_expression(self):
        table, lines = self._table("RULES = {'avatar': [File.image(max_size=MAX)]}")

        rules, _ = RuleTableReader(lines).read(table)

        (rule,) = rules["avatar"]
        assert rule.name == "File.image"
        assert rule.args == ()
        assert str(rule) == "File.image(max_size=MAX)"
