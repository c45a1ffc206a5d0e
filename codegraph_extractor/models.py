"""Core data models produced by the resolution engine and the extraction layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple


class NodeType(str, Enum):
    """Syntactic constructs a node context can resolve to."""

    MethodDefinition = "method_definition"
    FunctionDeclaration = "function_declaration"
    ClassDeclaration = "class_declaration"
    Constructor = "constructor"
    VariableDeclaration = "variable_declaration"
    VariableDeclarator = "variable_declarator"
    Block = "block"
    ImportStatement = "import_statement"
    ImportSpecifier = "import_specifier"
    AssignmentExpression = "assignment_expression"
    IfStatement = "if_statement"
    ForStatement = "for_statement"
    WhileStatement = "while_statement"
    Unknown = "unknown"


SCOPE_KINDS = ("function", "method", "class", "constructor", "block", "module")

USAGE_KINDS = (
    "function_call",
    "assignment_target",
    "assignment_source",
    "parameter",
    "object_access",
    "return_value",
    "reference",
)

DECLARATION_KINDS = ("function", "class", "variable", "import", "export", "method", "parameter")

CALL_TYPES = (
    "function_call",
    "method_call",
    "constructor_call",
    "tagged_template",
    "chained_call",
    "dynamic_call",
    "higher_order_call",
    "optional_chaining_call",
)

MEMBER_TYPES = ("method", "field", "static_block")

UNKNOWN_CONTEXT = "Unknown Context"
TOP_LEVEL_CONTEXT = "Top-Level"


# ---------------------------------------------------------------------------
# Resolution results (one fresh value per query call)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NodeContext:
    context: str
    node: Any
    name: str = ""
    parent_node: Any = None
    kind: NodeType = NodeType.Unknown


@dataclass(frozen=True)
class ScopeInfo:
    kind: str
    name: str
    node: Any
    label: str
    start_line: int
    end_line: int
    start_column: int
    end_column: int


@dataclass(frozen=True)
class Reference:
    node: Any
    is_declaration: bool
    usage: str


@dataclass(frozen=True)
class Declaration:
    node: Any
    kind: str
    parent_node: Any = None


@dataclass(frozen=True)
class ImportUsage:
    node: Any
    usage: str
    line: int
    column: int
    context: str
    parent_type: str
    scope: ScopeInfo


@dataclass(frozen=True)
class AliasHop:
    name: str
    node: Any
    kind: str
    assigned_from: Optional[str] = None


@dataclass(frozen=True)
class AliasChain:
    hops: Tuple[AliasHop, ...] = ()
    final_definition: Optional[Declaration] = None

    def __len__(self) -> int:
        return len(self.hops)


@dataclass(frozen=True)
class CallRecord:
    node: Any
    function_name: str
    arguments: Tuple[Any, ...]
    line: int
    column: int
    call_type: str = "function_call"
    chain_depth: Optional[int] = None
    is_async: bool = False
    receiver: Optional[str] = None


@dataclass(frozen=True)
class ClassMember:
    node: Any
    name: str
    signature: str
    member_type: str
    is_static: bool = False
    is_private: bool = False
    is_async: bool = False
    is_constructor: bool = False
    start_line: int = 0
    end_line: int = 0


# ---------------------------------------------------------------------------
# Graph records (owned copies handed to storage)
# ---------------------------------------------------------------------------

@dataclass
class Node:
    node_id: str
    node_type: str
    name: str
    qualname: str
    file_path: str
    start_line: int
    end_line: int
    code: str
    signature: str = ""
    docstring: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class Edge:
    src: str
    dst: str
    edge_type: str
    metadata: Dict[str, str] = field(default_factory=dict)


@dataclass
class ExtractionResult:
    file_path: str
    nodes: List[Node] = field(default_factory=list)
    edges: List[Edge] = field(default_factory=list)

    def node_ids(self) -> Set[str]:
        return {n.node_id for n in self.nodes}
