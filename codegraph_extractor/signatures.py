"""Canonical one-line signatures for function, method and class declarations.

Modifiers (``async``, ``static`` and the TypeScript accessibility keywords)
are detected by substring search over the declaration *header*: the source
text between the start of the declaration and its name. Text inside the body
never contributes a modifier.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

from .syntax import field, first_field, first_named_child, has_child_of_type, node_text

FUNCTION_DECLARATION_KINDS = ("function_declaration", "generator_function_declaration")
FUNCTION_EXPRESSION_KINDS = ("function_expression", "function", "generator_function")
FUNCTION_VALUE_KINDS = ("arrow_function",) + FUNCTION_EXPRESSION_KINDS
CLASS_DEFINITION_KINDS = ("class_declaration", "abstract_class_declaration", "class")
DECLARATION_LIST_KINDS = ("lexical_declaration", "variable_declaration")

# Nodes that bind a name to a function or class value held in one of their fields.
WRAPPER_FIELDS = {
    "variable_declarator": ("name", "value"),
    "pair": ("key", "value"),
    "assignment_expression": ("left", "right"),
    "field_definition": ("property", "value"),
    "public_field_definition": ("name", "value"),
}

MODIFIER_TOKENS = ("public ", "private ", "protected ", "static ", "async ")

STATIC_BLOCK_SIGNATURE = "static { }"


def _first_line(node: Any) -> str:
    lines = node_text(node).strip().splitlines()
    return lines[0].strip() if lines else ""


def anonymous_name(node: Any) -> str:
    row, column = node.start_point
    return f"anonymous_{row}_{column}"


def _unwrap_once(node: Any) -> Any:
    """The node one wrapper level down, or ``None`` when *node* wraps nothing useful."""
    kind = node.type
    if kind in WRAPPER_FIELDS:
        value = field(node, WRAPPER_FIELDS[kind][1])
        if value is None or value.type not in FUNCTION_VALUE_KINDS + CLASS_DEFINITION_KINDS:
            return None
        return value
    if kind == "export_statement":
        return first_field(node, "declaration", "value")
    if kind in DECLARATION_LIST_KINDS:
        return first_named_child(node, "variable_declarator")
    if kind == "parenthesized_expression" and node.named_child_count:
        return node.named_children[0]
    return None


def unwrap_definition(node: Any) -> Any:
    """The function or class value behind a binding, export or parenthesised wrapper."""
    current = node
    while current is not None and current.is_named:
        inner = _unwrap_once(current)
        if inner is None:
            return current
        current = inner
    return current if current is not None else node


def _wrapper_name(node: Any) -> str:
    fields = WRAPPER_FIELDS.get(node.type)
    if fields is None:
        return ""
    name_node = field(node, fields[0])
    if name_node is None or name_node.type not in (
        "identifier",
        "property_identifier",
        "private_property_identifier",
        "shorthand_property_identifier",
        "member_expression",
        "string",
    ):
        return ""
    return node_text(name_node)


def function_name(node: Any, name_node: Any = None) -> str:
    """Best available name for a function-like node.

    Order: explicit capture, own ``name`` field, the binding that wraps the
    value (variable, object key, assignment target, class field), then a
    position-derived ``anonymous_<row>_<column>``.
    """
    if name_node is not None:
        return node_text(name_node)
    own = field(node, "name")
    if own is not None:
        return node_text(own)
    bound = _wrapper_name(node)
    if bound:
        return bound
    parent = node.parent
    if parent is not None and parent.type in WRAPPER_FIELDS:
        bound = _wrapper_name(parent)
        if bound:
            return bound
    return anonymous_name(node)


def declaration_header(node: Any, name_node: Any) -> str:
    """Source text of *node* that precedes its name."""
    if name_node is None or node.text is None:
        return ""
    offset = name_node.start_byte - node.start_byte
    return node.text[:max(offset, 0)].decode("utf-8", errors="replace")


def detect_modifiers(node: Any, name_node: Any = None) -> Tuple[str, ...]:
    """Modifier keywords found in the header, in canonical order."""
    header = declaration_header(node, name_node if name_node is not None else field(node, "name"))
    return tuple(token.strip() for token in MODIFIER_TOKENS if token in header)


def _modifier_prefix(node: Any, name_node: Any = None) -> str:
    return "".join(f"{m} " for m in detect_modifiers(node, name_node))


def _parameters(node: Any) -> str:
    params = field(node, "parameters")
    if params is not None:
        return node_text(params)
    return node_text(field(node, "parameter")) or "()"


def _return_type(node: Any) -> str:
    return node_text(field(node, "return_type"))


def _async_prefix(node: Any) -> str:
    return "async " if has_child_of_type(node, "async") else ""


def _declaration_signature(node: Any, name: Optional[str]) -> str:
    star = "*" if node.type == "generator_function_declaration" else ""
    fname = node_text(field(node, "name")) or name or anonymous_name(node)
    return f"{_async_prefix(node)}function{star} {fname}{_parameters(node)}{_return_type(node)}"


def _method_signature(node: Any) -> str:
    name_node = field(node, "name")
    accessor = ""
    for token in ("get", "set"):
        if has_child_of_type(node, token):
            accessor = f"{token} "
    star = "*" if has_child_of_type(node, "*") else ""
    return (
        f"{_modifier_prefix(node, name_node)}{accessor}{star}"
        f"{node_text(name_node)}{_parameters(node)}{_return_type(node)}"
    )


def _arrow_signature(node: Any, name: Optional[str]) -> str:
    bound = f"{name} = " if name else ""
    return f"{bound}{_async_prefix(node)}{_parameters(node)}{_return_type(node)} =>"


def _function_expression_signature(node: Any, name: Optional[str]) -> str:
    bound = f"{name} = " if name else ""
    star = "*" if node.type == "generator_function" else ""
    own = node_text(field(node, "name"))
    if not own and not name:
        own = anonymous_name(node)
    label = f" {own}" if own else ""
    return (
        f"{bound}{_async_prefix(node)}function{star}{label}"
        f"{_parameters(node)}{_return_type(node)}"
    )


def extract_class_signature(class_node: Any) -> str:
    """Class header with an empty body, e.g. ``class Cart extends Base { }``."""
    body = field(class_node, "body")
    if body is None:
        return _first_line(class_node)
    header = declaration_header(class_node, body).strip()
    return f"{header} {{ }}"


def build_signature(node: Any, name: Optional[str] = None) -> str:
    """Render a one-line signature for a declaration node.

    *name* is the bound name captured by the caller (``const handler = ...``).
    Unknown node kinds yield the first line of their source text.
    """
    if node is None:
        return ""
    kind = node.type

    inner = _unwrap_once(node) if node.is_named else None
    if inner is not None:
        return build_signature(inner, name or _wrapper_name(node) or None)

    if kind in FUNCTION_DECLARATION_KINDS:
        return _declaration_signature(node, name)
    if kind == "method_definition":
        return _method_signature(node)
    if kind == "arrow_function":
        return _arrow_signature(node, name)
    if kind in FUNCTION_EXPRESSION_KINDS and node.is_named:
        return _function_expression_signature(node, name)
    if kind in CLASS_DEFINITION_KINDS and node.is_named:
        return extract_class_signature(node)
    return _first_line(node)


def field_signature(node: Any) -> str:
    """Signature of a class field; function-valued fields render like methods."""
    name_node = first_field(node, "property", "name")
    name = node_text(name_node)
    value = field(node, "value")
    if value is None:
        return f"{_modifier_prefix(node, name_node)}{name}"
    if value.type in FUNCTION_VALUE_KINDS:
        return f"{_modifier_prefix(node, name_node)}{build_signature(value, name)}"
    return f"{name} = {value.type}"
