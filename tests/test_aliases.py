"""Tests for alias tracing."""

from codegraph_extractor.aliases import trace_callee_to_definition


def test_alias_resolves_to_function(parse_js):
    tree = parse_js("const handler = process; function process(){ return 1; }")
    chain = trace_callee_to_definition(tree, "handler")

    assert len(chain) == 2
    assert [hop.name for hop in chain.hops] == ["handler", "process"]
    assert chain.hops[0].kind == "variable"
    assert chain.hops[0].assigned_from == "process"
    assert chain.hops[1].kind == "function"
    assert chain.hops[1].assigned_from is None
    assert chain.final_definition.kind == "function"
    assert chain.final_definition.parent_node.type == "function_declaration"


def test_bare_assignment_cycle_terminates(parse_js):
    """Plain assignments are not declarations, so nothing is found."""
    tree = parse_js("a = b; b = a;")
    chain = trace_callee_to_definition(tree, "a")

    assert len(chain) <= 2
    assert chain.final_definition is None


def test_declared_cycle_terminates(parse_js):
    tree = parse_js("var a = b; var b = a;")
    chain = trace_callee_to_definition(tree, "a")

    assert len(chain) == 2
    assert [hop.name for hop in chain.hops] == ["a", "b"]
    assert chain.final_definition.kind == "variable"


def test_self_alias(parse_js):
    tree = parse_js("var x = x;")
    chain = trace_callee_to_definition(tree, "x")

    assert len(chain) == 1


def test_three_hops(parse_js):
    tree = parse_js("const a = b;\nconst b = c;\nfunction c() {}\n")
    chain = trace_callee_to_definition(tree, "a")

    assert [hop.name for hop in chain.hops] == ["a", "b", "c"]
    assert chain.final_definition.node.start_point[0] == 2


def test_non_identifier_initializer_stops(parse_js):
    tree = parse_js("const h = () => 1;\n")
    chain = trace_callee_to_definition(tree, "h")

    assert len(chain) == 1
    assert chain.final_definition.kind == "variable"


def test_alias_to_import(parse_js):
    tree = parse_js("import { run } from './r';\nconst go = run;\n")
    chain = trace_callee_to_definition(tree, "go")

    assert [hop.kind for hop in chain.hops] == ["variable", "import"]


def test_unknown_name(parse_js):
    tree = parse_js("foo();\n")
    chain = trace_callee_to_definition(tree, "foo")

    assert len(chain) == 0
    assert chain.hops == ()
    assert chain.final_definition is None


def test_alias_to_typescript_class(parse_ts):
    tree = parse_ts("class Foo { run() {} }\nconst Alias = Foo;\n")
    chain = trace_callee_to_definition(tree, "Alias")

    assert [hop.name for hop in chain.hops] == ["Alias", "Foo"]
    assert chain.final_definition.kind == "class"
    assert chain.final_definition.parent_node.type == "class_declaration"
