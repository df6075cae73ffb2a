"""
Test Suite for the Request Body Scanner
=======================================

Test Structure:
    - test_rule_sources.py: Form request / validate call extraction
    - test_rule_merger.py: Rule map merging
    - test_rule_grammar.py: Rule token → schema node mapping
    - test_rules_to_parameters.py: Nested paths, descriptions
    - test_media_type.py, test_title_resolver.py, test_nested_titles.py
    - test_request_body.py: End-to-end synthesis and failure policies
    - test_route_info.py, test_docstring_parser.py, test_config.py, test_cli.py
"""
