"""Follow variable-to-variable assignments from a callee name to its definition."""

from __future__ import annotations

from typing import Any, List, Optional, Set

from .models import AliasChain, AliasHop, Declaration
from .references import find_declaration_node
from .syntax import field, node_text


def _aliased_name(declaration: Declaration) -> Optional[str]:
    """Name a variable declaration is initialised from, if it is a bare identifier."""
    if declaration.kind != "variable":
        return None
    value = field(declaration.parent_node, "value")
    if value is None or value.type != "identifier":
        return None
    return node_text(value)


def trace_callee_to_definition(tree: Any, callee_name: str) -> AliasChain:
    """Resolve *callee_name* through ``const a = b`` style aliases.

    Hops are ordered from the name used at the call site to the final binding.
    A name seen twice ends the walk, so cyclic aliasing always terminates.
    """
    hops: List[AliasHop] = []
    visited: Set[str] = set()
    final: Optional[Declaration] = None
    current: Optional[str] = callee_name

    while current is not None and current not in visited:
        visited.add(current)
        declaration = find_declaration_node(tree, current)
        if declaration is None:
            break
        next_name = _aliased_name(declaration)
        hops.append(AliasHop(
            name=current,
            node=declaration.node,
            kind=declaration.kind,
            assigned_from=next_name,
        ))
        final = declaration
        current = next_name

    return AliasChain(hops=tuple(hops), final_definition=final)
