"""Enumerate the members declared in a class body."""

from __future__ import annotations

from typing import Any, List, Optional

from .models import ClassMember
from .signatures import (
    CLASS_DEFINITION_KINDS,
    FUNCTION_VALUE_KINDS,
    STATIC_BLOCK_SIGNATURE,
    build_signature,
    detect_modifiers,
    field_signature,
    unwrap_definition,
)
from .syntax import end_line, field, first_field, has_child_of_type, node_text, start_line

FIELD_KINDS = ("field_definition", "public_field_definition")


def _is_private(name_node: Any) -> bool:
    if name_node is None:
        return False
    return name_node.type == "private_property_identifier" or node_text(name_node).startswith("#")


def _method_member(node: Any) -> ClassMember:
    name_node = field(node, "name")
    name = node_text(name_node)
    modifiers = detect_modifiers(node, name_node)
    return ClassMember(
        node=node,
        name=name,
        signature=build_signature(node),
        member_type="method",
        is_static="static" in modifiers,
        is_private=_is_private(name_node),
        is_async="async" in modifiers,
        is_constructor=name == "constructor",
        start_line=start_line(node),
        end_line=end_line(node),
    )


def _field_member(node: Any) -> ClassMember:
    name_node = first_field(node, "property", "name")
    value = field(node, "value")
    is_async = (
        value is not None
        and value.type in FUNCTION_VALUE_KINDS
        and has_child_of_type(value, "async")
    )
    return ClassMember(
        node=node,
        name=node_text(name_node),
        signature=field_signature(node),
        member_type="field",
        is_static="static" in detect_modifiers(node, name_node),
        is_private=_is_private(name_node),
        is_async=is_async,
        start_line=start_line(node),
        end_line=end_line(node),
    )


def _static_block_member(node: Any) -> ClassMember:
    return ClassMember(
        node=node,
        name="static",
        signature=STATIC_BLOCK_SIGNATURE,
        member_type="static_block",
        is_static=True,
        start_line=start_line(node),
        end_line=end_line(node),
    )


def _member(node: Any) -> Optional[ClassMember]:
    if node.type == "method_definition":
        return _method_member(node)
    if node.type in FIELD_KINDS:
        return _field_member(node)
    if node.type == "class_static_block":
        return _static_block_member(node)
    return None


def get_all_class_members(class_node: Any) -> List[ClassMember]:
    """Methods, fields and static blocks of a class, in declaration order.

    Anything that is not a class (after unwrapping ``const C = class {}``
    style bindings) yields an empty list.
    """
    if class_node is None:
        return []
    definition = unwrap_definition(class_node)
    if definition is None or not definition.is_named or definition.type not in CLASS_DEFINITION_KINDS:
        return []
    body = field(definition, "body")
    if body is None:
        return []

    members: List[ClassMember] = []
    for child in body.named_children:
        member = _member(child)
        if member is not None:
            members.append(member)
    return members
