"""Reference and declaration lookup by identifier name.

Lookups are name-only and document-ordered: :func:`find_declaration_node`
returns the first declaring occurrence in the file, regardless of lexical
scope. Two same-named declarations in different functions are therefore
indistinguishable and the earlier one wins.
"""

from __future__ import annotations

from typing import Any, List, Optional

from .context import find_node_scope, resolve_context
from .models import Declaration, ImportUsage, Reference
from .syntax import is_field, node_text, same_node, start_column, start_line, walk

IDENTIFIER_KINDS = ("identifier",)
# TypeScript names classes with type_identifier leaves.
TYPE_NAME_KINDS = ("type_identifier",)
METHOD_NAME_KINDS = ("property_identifier", "private_property_identifier")

# TypeScript wraps each parameter; the bound name sits in the "pattern" field.
TYPED_PARAMETER_KINDS = ("required_parameter", "optional_parameter")

CLASS_DECLARATION_KINDS = ("class_declaration", "abstract_class_declaration")
FUNCTION_DECLARATION_KINDS = ("function_declaration", "generator_function_declaration")

# Declaration kinds whose name node counts as a declaring occurrence.
DEFINING_KINDS = frozenset({"function", "variable", "class", "method", "parameter"})

IMPORT_CONSTRUCTS = frozenset({
    "import_statement",
    "import_specifier",
    "namespace_import",
    "import_clause",
    "named_imports",
    "import",
})


def _is_parameter(node: Any, parent: Any) -> bool:
    if parent.type == "formal_parameters":
        return True
    return parent.type in TYPED_PARAMETER_KINDS and is_field(node, parent, "pattern")


def _declaration_kind(node: Any) -> Optional[str]:
    """Declaration kind of an identifier occurrence, ``None`` if it only refers."""
    parent = node.parent
    if parent is None:
        return None
    kind = parent.type

    if node.type in TYPE_NAME_KINDS:
        if kind in CLASS_DECLARATION_KINDS and is_field(node, parent, "name"):
            return "class"
        return None

    if node.type in METHOD_NAME_KINDS:
        if kind == "method_definition" and is_field(node, parent, "name"):
            return "method"
        return None

    if kind in FUNCTION_DECLARATION_KINDS and is_field(node, parent, "name"):
        return "function"
    if kind == "variable_declarator" and is_field(node, parent, "name"):
        return "variable"
    if kind in CLASS_DECLARATION_KINDS and is_field(node, parent, "name"):
        return "class"
    if kind == "method_definition" and is_field(node, parent, "name"):
        return "method"
    if kind == "import_specifier" and (
        is_field(node, parent, "name") or is_field(node, parent, "alias")
    ):
        return "import"
    if kind == "namespace_import":
        return "import"
    if kind == "import_clause" and same_node(node, parent.child(0)):
        return "import"
    if kind == "export_specifier" and is_field(node, parent, "name"):
        return "export"
    if _is_parameter(node, parent):
        return "parameter"
    return None


def is_declaration_node(node: Any) -> bool:
    """True when *node* is the name of a function, variable, class or method, or a parameter."""
    if node is None:
        return False
    return _declaration_kind(node) in DEFINING_KINDS


def determine_node_usage(node: Any) -> str:
    """How an identifier occurrence is used, judged from its immediate parent."""
    parent = node.parent if node is not None else None
    if parent is None:
        return "unknown"
    kind = parent.type

    if kind == "call_expression" and is_field(node, parent, "function"):
        return "function_call"
    if kind == "assignment_expression" and is_field(node, parent, "left"):
        return "assignment_target"
    if (kind == "assignment_expression" and is_field(node, parent, "right")) or (
        kind == "variable_declarator" and is_field(node, parent, "value")
    ):
        return "assignment_source"
    if _is_parameter(node, parent):
        return "parameter"
    if kind == "member_expression" and is_field(node, parent, "object"):
        return "object_access"
    if kind == "return_statement":
        return "return_value"
    return "reference"


def find_references(tree: Any, target_name: str) -> List[Reference]:
    """Every identifier (or TypeScript type name) spelled *target_name*, in document order."""
    references: List[Reference] = []
    for node in walk(tree.root_node):
        if node.type in IDENTIFIER_KINDS + TYPE_NAME_KINDS and node_text(node) == target_name:
            references.append(Reference(
                node=node,
                is_declaration=is_declaration_node(node),
                usage=determine_node_usage(node),
            ))
    return references


def find_declaration_node(tree: Any, target_name: str) -> Optional[Declaration]:
    """First occurrence of *target_name* in a declaring position, or ``None``."""
    for node in walk(tree.root_node):
        if node.type not in IDENTIFIER_KINDS + TYPE_NAME_KINDS + METHOD_NAME_KINDS:
            continue
        if node_text(node) != target_name:
            continue
        kind = _declaration_kind(node)
        if kind is not None:
            return Declaration(node=node, kind=kind, parent_node=node.parent)
    return None


def _inside_import(node: Any) -> bool:
    current = node.parent
    while current is not None:
        if current.type in IMPORT_CONSTRUCTS and current.is_named:
            return True
        current = current.parent
    return False


def find_imported_identifier_usages(tree: Any, imported_name: str) -> List[ImportUsage]:
    """Usages of an imported binding outside the import statement itself."""
    usages: List[ImportUsage] = []
    for ref in find_references(tree, imported_name):
        if _inside_import(ref.node):
            continue
        parent = ref.node.parent
        usages.append(ImportUsage(
            node=ref.node,
            usage=ref.usage,
            line=start_line(ref.node),
            column=start_column(ref.node),
            context=resolve_context(ref.node).context,
            parent_type=parent.type if parent is not None else "unknown",
            scope=find_node_scope(ref.node),
        ))
    return usages
