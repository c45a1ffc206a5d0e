"""Call-site discovery and classification inside a single function body."""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from .models import CallRecord
from .signatures import unwrap_definition
from .syntax import field, has_child_of_type, node_text, start_column, start_line, walk

CALL_KINDS = ("call_expression", "new_expression")


def chain_depth(member_node: Any) -> int:
    """Number of call expressions on the object spine of a member access.

    ``a.b().c`` has depth 1, ``a.b().c().d`` has depth 2.
    """
    depth = 0
    current = field(member_node, "object")
    while current is not None:
        if current.type == "call_expression":
            depth += 1
            current = field(current, "function")
        elif current.type == "member_expression":
            current = field(current, "object")
        else:
            break
    return depth


def _arguments(call: Any) -> Tuple[Any, ...]:
    args = field(call, "arguments")
    if args is None or args.type == "template_string":
        return ()
    return tuple(args.named_children)


def _callee_name(callee: Any) -> str:
    """Identifier text, or the property of a member access, else raw text."""
    if callee is None:
        return ""
    if callee.type == "member_expression":
        prop = field(callee, "property")
        if prop is not None:
            return node_text(prop)
    return node_text(callee)


def _is_optional(call: Any, callee: Any) -> bool:
    if has_child_of_type(call, "optional_chain"):
        return True
    return callee is not None and callee.type in (
        "member_expression", "subscript_expression",
    ) and has_child_of_type(callee, "optional_chain")


def _receiver(callee: Any) -> Optional[str]:
    if callee is None or callee.type not in ("member_expression", "subscript_expression"):
        return None
    return node_text(field(callee, "object")) or None


def _classify(call: Any) -> Tuple[str, str, Optional[int], Optional[str]]:
    """(call_type, function_name, chain_depth, receiver) for one call node."""
    if call.type == "new_expression":
        ctor = field(call, "constructor")
        if ctor is not None and ctor.type in ("identifier", "member_expression"):
            return "constructor_call", _callee_name(ctor), None, _receiver(ctor)
        return "constructor_call", node_text(ctor) or node_text(call), None, None

    callee = field(call, "function")
    args = field(call, "arguments")

    if args is not None and args.type == "template_string":
        return "tagged_template", _callee_name(callee), None, _receiver(callee)

    if _is_optional(call, callee):
        return "optional_chaining_call", _callee_name(callee), None, _receiver(callee)

    kind = callee.type if callee is not None else ""
    if kind == "identifier":
        return "function_call", node_text(callee), None, None

    if kind == "member_expression":
        obj = field(callee, "object")
        if obj is not None and obj.type == "call_expression":
            return "chained_call", _callee_name(callee), chain_depth(callee), _receiver(callee)
        return "method_call", _callee_name(callee), None, _receiver(callee)

    if kind == "subscript_expression":
        return "dynamic_call", node_text(callee), None, _receiver(callee)

    if kind == "call_expression":
        inner = _callee_name(field(callee, "function"))
        return "higher_order_call", f"{inner}()", None, None

    return "function_call", node_text(callee), None, None


def describe_call(node: Any) -> CallRecord:
    """Classify a single ``call_expression`` or ``new_expression`` node."""
    call_type, name, depth, receiver = _classify(node)
    parent = node.parent
    return CallRecord(
        node=node,
        function_name=name,
        arguments=_arguments(node),
        line=start_line(node),
        column=start_column(node),
        call_type=call_type,
        chain_depth=depth,
        is_async=parent is not None and parent.type == "await_expression",
        receiver=receiver,
    )


def find_function_calls(function_node: Any) -> List[CallRecord]:
    """Every call and ``new`` expression inside the body of *function_node*.

    Binding wrappers (``const f = () => ...``, ``export function``, object
    pairs) are unwrapped first. Nested functions are searched too.
    """
    if function_node is None:
        return []
    definition = unwrap_definition(function_node)
    body = field(definition, "body")
    if body is None:
        return []
    return [describe_call(node) for node in walk(body) if node.type in CALL_KINDS]
