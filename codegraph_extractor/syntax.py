"""Small, total helpers over tree-sitter nodes.

Every function here accepts ``None`` where a node is expected and returns an
absence value instead of raising, so callers can chain field lookups freely.
"""

from __future__ import annotations

from typing import Any, Iterator, Optional


def node_text(node: Any) -> str:
    """Decoded source text of *node* (empty for ``None``)."""
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def same_node(a: Any, b: Any) -> bool:
    """Identity comparison: both handles point at the same tree node.

    Two distinct nodes may carry identical text, so this never compares text.
    """
    if a is None or b is None:
        return False
    return a == b


def field(node: Any, name: str) -> Any:
    if node is None:
        return None
    return node.child_by_field_name(name)


def is_field(node: Any, parent: Any, name: str) -> bool:
    """True when *node* occupies the *name* field slot of *parent*."""
    return same_node(node, field(parent, name))


def iter_ancestors(node: Any, limit: int) -> Iterator[Any]:
    """Yield at most *limit* ancestors of *node*, nearest first."""
    current = node.parent if node is not None else None
    depth = 0
    while current is not None and depth < limit:
        yield current
        current = current.parent
        depth += 1


def root_of(node: Any) -> Any:
    current = node
    while current is not None and current.parent is not None:
        current = current.parent
    return current


def walk(node: Any) -> Iterator[Any]:
    """Pre-order, document-order traversal using an explicit stack."""
    if node is None:
        return
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(current.children))


def first_named_child(node: Any, *types: str) -> Optional[Any]:
    if node is None:
        return None
    for child in node.named_children:
        if not types or child.type in types:
            return child
    return None


def has_child_of_type(node: Any, node_type: str) -> bool:
    if node is None:
        return False
    return any(child.type == node_type for child in node.children)


def is_root_position(node: Any) -> bool:
    if node is None:
        return False
    return tuple(node.start_point) == (0, 0)


# 1-based positions copied out of the tree for records that outlive it.

def start_line(node: Any) -> int:
    return node.start_point[0] + 1


def end_line(node: Any) -> int:
    return node.end_point[0] + 1


def start_column(node: Any) -> int:
    return node.start_point[1] + 1


def end_column(node: Any) -> int:
    return node.end_point[1] + 1


def first_field(node: Any, *names: str) -> Any:
    """Child in the first of *names* that is populated."""
    for name in names:
        child = field(node, name)
        if child is not None:
            return child
    return None
