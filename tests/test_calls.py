"""Tests for call-site classification."""

from codegraph_extractor.calls import chain_depth, describe_call, find_function_calls
from codegraph_extractor.models import CALL_TYPES

MIXED_CALLS = """async function f() {
  foo(1, 2);
  obj.method();
  new Widget(1);
  new ns.Widget();
  tag`hello`;
  maybe?.call();
  handlers[name]();
  make()();
  await load();
  (function () {})();
}
"""


def _calls(tree):
    return find_function_calls(tree.root_node.named_children[0])


class TestChainDepth:
    """Chained method calls."""

    def test_chained_call(self, parse_js):
        tree = parse_js("function f() { a.b().c(); }")
        records = _calls(tree)

        assert [(r.function_name, r.call_type) for r in records] == [
            ("c", "chained_call"),
            ("b", "method_call"),
        ]
        assert records[0].chain_depth == 1
        assert records[1].chain_depth is None

    def test_plain_method_call(self, parse_js):
        tree = parse_js("function f() { a.b(); }")
        records = _calls(tree)

        assert len(records) == 1
        assert records[0].call_type == "method_call"
        assert records[0].chain_depth is None
        assert records[0].receiver == "a"

    def test_deeper_chain(self, parse_js):
        tree = parse_js("function f() { a.b().c().d(); }")
        records = _calls(tree)

        assert records[0].function_name == "d"
        assert records[0].chain_depth == 2

    def test_chain_depth_helper(self, parse_js, find_node):
        tree = parse_js("a.b().c();")
        outer = find_node(tree, "call_expression")

        assert chain_depth(outer.child_by_field_name("function")) == 1
        assert chain_depth(None) == 0


class TestClassification:
    """One record per call site, first matching rule wins."""

    def test_mixed_call_types(self, parse_js):
        tree = parse_js(MIXED_CALLS)
        records = _calls(tree)

        assert [(r.function_name, r.call_type) for r in records] == [
            ("foo", "function_call"),
            ("method", "method_call"),
            ("Widget", "constructor_call"),
            ("Widget", "constructor_call"),
            ("tag", "tagged_template"),
            ("call", "optional_chaining_call"),
            ("handlers[name]", "dynamic_call"),
            ("make()", "higher_order_call"),
            ("make", "function_call"),
            ("load", "function_call"),
            ("(function () {})", "function_call"),
        ]
        assert {r.call_type for r in records} <= set(CALL_TYPES)

    def test_arguments(self, parse_js):
        records = _calls(parse_js(MIXED_CALLS))

        assert [a.type for a in records[0].arguments] == ["number", "number"]
        assert len(records[2].arguments) == 1
        assert records[3].receiver == "ns"
        assert records[4].arguments == ()

    def test_await_sets_async(self, parse_js):
        records = _calls(parse_js(MIXED_CALLS))
        by_name = {r.function_name: r for r in records}

        assert by_name["load"].is_async is True
        assert by_name["foo"].is_async is False

    def test_positions_are_one_based(self, parse_js):
        tree = parse_js("function f() {\n  foo();\n}\n")
        record = _calls(tree)[0]

        assert record.line == 2
        assert record.column == 3

    def test_describe_single_call(self, parse_js, find_node):
        tree = parse_js("new Map();")
        record = describe_call(find_node(tree, "new_expression"))

        assert record.call_type == "constructor_call"
        assert record.function_name == "Map"
        assert record.arguments == ()


class TestBodySelection:
    """Which sub-tree is searched."""

    def test_arrow_expression_body(self, parse_js):
        tree = parse_js("const g = () => compute(x);\n")
        records = _calls(tree)

        assert [r.function_name for r in records] == ["compute"]

    def test_nested_functions_included(self, parse_js):
        tree = parse_js("function outer() {\n  function inner() { deep(); }\n  shallow();\n}\n")
        names = [r.function_name for r in _calls(tree)]

        assert names == ["deep", "shallow"]

    def test_export_wrapper(self, parse_js):
        tree = parse_js("export function run() { go(); }\n")
        assert [r.function_name for r in _calls(tree)] == ["go"]

    def test_only_the_given_function(self, parse_js):
        tree = parse_js("function a() { one(); }\nfunction b() { two(); }\n")
        assert [r.function_name for r in _calls(tree)] == ["one"]

    def test_no_body(self, parse_js, find_node):
        tree = parse_js("foo();\n")

        assert find_function_calls(find_node(tree, "identifier", "foo")) == []
        assert find_function_calls(None) == []
