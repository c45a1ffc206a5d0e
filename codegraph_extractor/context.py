"""Context and scope resolution for arbitrary syntax-tree nodes.

Three related walks live here:

- :func:`resolve_context` renders a descriptive label for the construct that
  encloses a node (``"Class Method: Cart.total"``, ``"Function: main"``...).
- :func:`resolve_scope` collapses the enclosing construct to a coarse scope
  kind (module / function / class / block).
- :func:`find_node_scope` returns the concrete scope-defining node and
  distinguishes methods and constructors from plain functions.

All walks are bounded upward traversals. Running out of ancestors is a normal
terminal state: the result falls back to a sentinel context or module scope.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional, Tuple

from .models import (
    TOP_LEVEL_CONTEXT,
    UNKNOWN_CONTEXT,
    NodeContext,
    NodeType,
    ScopeInfo,
)
from .syntax import field, first_named_child, is_root_position, iter_ancestors, node_text, root_of

CONTEXT_MAX_DEPTH = 10
SCOPE_MAX_DEPTH = 50

FUNCTION_KINDS = frozenset({
    "function_declaration",
    "generator_function_declaration",
    "function_expression",
    "function",
    "generator_function",
    "arrow_function",
    "method_definition",
})

CLASS_KINDS = frozenset({
    "class_declaration",
    "abstract_class_declaration",
    "class",
    "class_expression",
})

BLOCK_KINDS = frozenset({"block", "statement_block"})

MODULE_LABEL = "Module/Global Scope"


# ===================================================================
# Descriptive context
# ===================================================================

ContextRule = Callable[[Any, Any], Optional[NodeContext]]


def _method_context(node: Any, ancestor: Any) -> Optional[NodeContext]:
    method_name = node_text(field(ancestor, "name"))
    body = ancestor.parent
    if body is not None and body.type == "class_body":
        class_node = body.parent
        if class_node is not None and class_node.type in ("class_declaration", "class"):
            qualified = f"{node_text(field(class_node, 'name'))}.{method_name}"
            return NodeContext(
                f"Class Method: {qualified}", node, qualified, ancestor, NodeType.MethodDefinition,
            )
    return NodeContext(
        f"Method: {method_name}", node, method_name, ancestor, NodeType.MethodDefinition,
    )


def _function_context(node: Any, ancestor: Any) -> Optional[NodeContext]:
    name_node = field(ancestor, "name")
    if name_node is None:
        return None
    name = node_text(name_node)
    return NodeContext(f"Function: {name}", node, name, ancestor, NodeType.FunctionDeclaration)


def _class_context(node: Any, ancestor: Any) -> Optional[NodeContext]:
    name_node = field(ancestor, "name")
    if name_node is None:
        return None
    name = node_text(name_node)
    return NodeContext(f"Class: {name}", node, name, ancestor, NodeType.ClassDeclaration)


def _constructor_context(node: Any, ancestor: Any) -> Optional[NodeContext]:
    class_node = ancestor.parent
    if class_node is not None and class_node.type == "class_body":
        class_node = class_node.parent
    if class_node is None or class_node.type != NodeType.ClassDeclaration.value:
        return None
    name = node_text(field(class_node, "name"))
    return NodeContext(
        f"Constructor of Class: {name}", node, name, class_node, NodeType.Constructor,
    )


def _declared_name(ancestor: Any) -> str:
    name_node = field(ancestor, "name")
    if name_node is None and ancestor.type == NodeType.VariableDeclaration.value:
        name_node = field(first_named_child(ancestor, "variable_declarator"), "name")
    return node_text(name_node)


def _variable_context(node: Any, ancestor: Any) -> Optional[NodeContext]:
    kind = NodeType(ancestor.type)
    name = _declared_name(ancestor)
    owner = ancestor.parent
    owner_type = owner.type if owner is not None else ""
    if owner_type == NodeType.FunctionDeclaration.value:
        return NodeContext(f"Variable in Function: {name}", node, name, owner, kind)
    if owner_type == NodeType.ClassDeclaration.value:
        return NodeContext(f"Variable in Class: {name}", node, name, owner, kind)
    return NodeContext(
        f"Variable declared outside any specific scope: {name}", node, name, owner, kind,
    )


def _block_context(node: Any, ancestor: Any) -> Optional[NodeContext]:
    owner = ancestor.parent
    if owner is None or not ("function" in owner.type or "method" in owner.type):
        return None
    return NodeContext(
        "Block inside function or method",
        node,
        node_text(field(ancestor, "name")),
        ancestor,
        NodeType.Block,
    )


def _import_context(node: Any, ancestor: Any) -> Optional[NodeContext]:
    source = field(ancestor, "source")
    if source is None:
        statement = next(
            (a for a in iter_ancestors(ancestor, CONTEXT_MAX_DEPTH) if a.type == "import_statement"),
            None,
        )
        source = field(statement, "source")
    text = node_text(source)
    return NodeContext(f"Import: {text}", node, text, ancestor, NodeType(ancestor.type))


def _assignment_context(node: Any, ancestor: Any) -> Optional[NodeContext]:
    left = field(ancestor, "left")
    if left is None or left.type != "identifier":
        return None
    name = node_text(left)
    return NodeContext(
        f"Assignment to Variable: {name}", node, name, ancestor, NodeType.AssignmentExpression,
    )


def _statement_context(node: Any, ancestor: Any) -> Optional[NodeContext]:
    condition = ancestor.type.replace("_statement", "").upper()
    return NodeContext(
        f"{condition} statement inside function or method",
        node,
        condition,
        ancestor.parent,
        NodeType(ancestor.type),
    )


# Fixed category order; the first category whose rule yields a context wins.
_CONTEXT_RULES: Tuple[Tuple[Tuple[str, ...], ContextRule], ...] = (
    ((NodeType.MethodDefinition.value,), _method_context),
    ((NodeType.FunctionDeclaration.value,), _function_context),
    ((NodeType.ClassDeclaration.value,), _class_context),
    ((NodeType.Constructor.value,), _constructor_context),
    ((NodeType.VariableDeclaration.value, NodeType.VariableDeclarator.value), _variable_context),
    ((NodeType.Block.value,), _block_context),
    ((NodeType.ImportStatement.value, NodeType.ImportSpecifier.value), _import_context),
    ((NodeType.AssignmentExpression.value,), _assignment_context),
    (
        (
            NodeType.IfStatement.value,
            NodeType.ForStatement.value,
            NodeType.WhileStatement.value,
        ),
        _statement_context,
    ),
)


def _classify_ancestor(node: Any, ancestor: Any) -> Optional[NodeContext]:
    for kinds, rule in _CONTEXT_RULES:
        if ancestor.type in kinds:
            return rule(node, ancestor)
    return None


def _first_match(candidates: Iterable[Optional[NodeContext]]) -> Optional[NodeContext]:
    return next((c for c in candidates if c is not None), None)


def resolve_context(node: Any) -> NodeContext:
    """Classify the construct enclosing *node*.

    Walks at most ``CONTEXT_MAX_DEPTH`` ancestors. When nothing matches, the
    context is ``"Top-Level"`` if the walk ended at the tree root (or at a
    node starting the file) and ``"Unknown Context"`` otherwise.
    """
    ancestors: List[Any] = list(iter_ancestors(node, CONTEXT_MAX_DEPTH))
    match = _first_match(_classify_ancestor(node, a) for a in ancestors)
    if match is not None:
        return match

    last = ancestors[-1] if ancestors else node
    at_root = last.parent is None or is_root_position(last)
    label = TOP_LEVEL_CONTEXT if at_root else UNKNOWN_CONTEXT
    return NodeContext(
        label, node, "", ancestors[-1] if ancestors else None, NodeType.Unknown,
    )


# ===================================================================
# Scopes
# ===================================================================

def _scope_info(kind: str, name: str, node: Any, label: str) -> ScopeInfo:
    return ScopeInfo(
        kind=kind,
        name=name,
        node=node,
        label=label,
        start_line=node.start_point[0],
        end_line=node.end_point[0],
        start_column=node.start_point[1],
        end_column=node.end_point[1],
    )


def _module_scope(node: Any) -> ScopeInfo:
    return _scope_info("module", "module", node, MODULE_LABEL)


def _bound_name(node: Any) -> str:
    """Own name, else the name of the variable the value is assigned to."""
    name_node = field(node, "name")
    if name_node is not None:
        return node_text(name_node)
    parent = node.parent
    if parent is not None and parent.type == "variable_declarator":
        return node_text(field(parent, "name")) or "<anonymous>"
    return "<anonymous>"


def _coarse_scope(ancestor: Any) -> Optional[ScopeInfo]:
    kind = ancestor.type
    if kind == "program":
        return _module_scope(ancestor)
    if kind in FUNCTION_KINDS:
        name = _bound_name(ancestor)
        return _scope_info("function", name, ancestor, f"Function: {name}")
    if kind in CLASS_KINDS or kind == "class_body":
        owner = ancestor.parent if kind == "class_body" else ancestor
        name = _bound_name(owner) if owner is not None else "<anonymous>"
        return _scope_info("class", name, owner if owner is not None else ancestor, f"Class: {name}")
    if kind in BLOCK_KINDS:
        owner = ancestor.parent
        owner_type = owner.type if owner is not None else ""
        if "function" in owner_type or "method" in owner_type:
            name = _bound_name(owner)
            return _scope_info("function", name, owner, f"Function: {name}")
        if "class" in owner_type:
            name = _bound_name(owner)
            return _scope_info("class", name, owner, f"Class: {name}")
        return _scope_info("block", "block", ancestor, "Block")
    return None


def resolve_scope(node: Any) -> ScopeInfo:
    """Coarse scope (module / function / class / block) of *node*."""
    for ancestor in iter_ancestors(node, SCOPE_MAX_DEPTH):
        scope = _coarse_scope(ancestor)
        if scope is not None:
            return scope
    return _module_scope(root_of(node))


def _enclosing_class_name(method: Any) -> str:
    current = method.parent
    while current is not None:
        if current.type in ("class_declaration", "class"):
            name_node = field(current, "name")
            if name_node is not None:
                return node_text(name_node)
        current = current.parent
    return ""


def find_node_scope(node: Any) -> ScopeInfo:
    """Concrete scope-defining node enclosing *node*, with a readable label."""
    for current in iter_ancestors(node, SCOPE_MAX_DEPTH):
        kind = current.type
        if kind in ("function_declaration", "generator_function_declaration"):
            name = node_text(field(current, "name")) or "<anonymous>"
            return _scope_info("function", name, current, f"Function: {name}")

        if kind == "arrow_function":
            name = _bound_name(current)
            return _scope_info("function", name, current, f"Arrow Function: {name}")

        if kind in ("function_expression", "function", "generator_function"):
            name = _bound_name(current)
            return _scope_info("function", name, current, f"Function Expression: {name}")

        if kind == "method_definition":
            method_name = node_text(field(current, "name")) or "<anonymous>"
            class_name = _enclosing_class_name(current)
            return _scope_info(
                "constructor" if method_name == "constructor" else "method",
                method_name,
                current,
                f"{class_name}.{method_name}" if class_name else method_name,
            )

        if kind in ("class_declaration", "class"):
            name = node_text(field(current, "name")) or "<anonymous>"
            return _scope_info("class", name, current, f"Class: {name}")

        if kind == "program":
            return _module_scope(current)

    return _module_scope(root_of(node))


# ===================================================================
# Misc helpers used by the extraction layer
# ===================================================================

def find_parent_of_type(node: Any, target_type: str, max_depth: int = 5) -> Optional[str]:
    """Text of the nearest node of *target_type*, starting at *node* itself."""
    current = node
    depth = 0
    while current is not None and depth < max_depth:
        if current.type == target_type:
            return node_text(current) or None
        current = current.parent
        depth += 1
    return None


def graph_kind_for(node: Any) -> str:
    """Graph node type for a scope-defining node, ``"unknown"`` otherwise."""
    if node is None:
        return "unknown"
    if node.type == "method_definition":
        return "method"
    if node.type in FUNCTION_KINDS:
        return "function"
    if node.type in CLASS_KINDS:
        return "class"
    if node.type == "program":
        return "module"
    return "unknown"
