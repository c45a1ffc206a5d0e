"""Tests for class member enumeration."""

from codegraph_extractor.members import get_all_class_members
from codegraph_extractor.models import MEMBER_TYPES

CART = """class Cart {
  static count = 0;
  #items = [];
  onChange = async () => {};
  static {
    Cart.count = 1;
  }
  constructor(owner) { this.owner = owner; }
  static create() { return new Cart(); }
  async checkout() {}
  #recalc() {}
  name;
}
"""


def _members(parse_js):
    tree = parse_js(CART)
    return get_all_class_members(tree.root_node.named_children[0])


def test_member_order_and_types(parse_js):
    members = _members(parse_js)

    assert [(m.name, m.member_type) for m in members] == [
        ("count", "field"),
        ("#items", "field"),
        ("onChange", "field"),
        ("static", "static_block"),
        ("constructor", "method"),
        ("create", "method"),
        ("checkout", "method"),
        ("#recalc", "method"),
        ("name", "field"),
    ]
    assert {m.member_type for m in members} == set(MEMBER_TYPES)


def test_member_signatures(parse_js):
    signatures = {m.name: m.signature for m in _members(parse_js)}

    assert signatures["count"] == "count = number"
    assert signatures["#items"] == "#items = array"
    assert signatures["onChange"] == "onChange = async () =>"
    assert signatures["static"] == "static { }"
    assert signatures["constructor"] == "constructor(owner)"
    assert signatures["create"] == "static create()"
    assert signatures["checkout"] == "async checkout()"
    assert signatures["#recalc"] == "#recalc()"
    assert signatures["name"] == "name"


def test_member_flags(parse_js):
    members = {m.name: m for m in _members(parse_js)}

    assert members["count"].is_static is True
    assert members["#items"].is_private is True
    assert members["onChange"].is_async is True
    assert members["static"].is_static is True
    assert members["constructor"].is_constructor is True
    assert members["create"].is_static is True
    assert members["create"].is_constructor is False
    assert members["checkout"].is_async is True
    assert members["#recalc"].is_private is True
    assert members["name"].is_private is False


def test_member_lines_are_one_based(parse_js):
    members = {m.name: m for m in _members(parse_js)}

    assert members["count"].start_line == 2
    assert members["static"].start_line == 5
    assert members["static"].end_line == 7


def test_class_expression_binding(parse_js):
    tree = parse_js("const Foo = class {\n  bar() {}\n};\n")
    members = get_all_class_members(tree.root_node.named_children[0])

    assert [m.name for m in members] == ["bar"]


def test_non_class_input(parse_js):
    tree = parse_js("function f() {}\n")

    assert get_all_class_members(tree.root_node.named_children[0]) == []
    assert get_all_class_members(tree.root_node) == []
    assert get_all_class_members(None) == []


def test_typescript_members(parse_ts):
    tree = parse_ts(
        "class S {\n"
        "  private name: string;\n"
        "  public static make(): S { return new S(); }\n"
        "  abstract_like(): void {}\n"
        "}\n"
    )
    members = {m.name: m for m in get_all_class_members(tree.root_node.named_children[0])}

    assert members["name"].member_type == "field"
    assert members["name"].signature == "private name"
    assert members["make"].is_static is True
    assert members["make"].signature == "public static make(): S"
    assert members["abstract_like"].signature == "abstract_like(): void"
