"""Turn a parsed file into graph records.

:class:`GraphExtractor` runs the tree-sitter queries from :mod:`.queries`,
hands every capture to the resolution engine and emits :class:`Node` /
:class:`Edge` records with deterministic ids::

    <kind>:<file path>:<name>:<line>:<column>     (1-based line and column)
    mod:<file path>                               (one per file)

Overlapping query patterns can describe the same declaration more than once;
records are deduplicated by id (first occurrence wins) and edges by
``(src, dst, edge_type)`` before anything reaches storage. A capture that lacks
an expected node is skipped with a debug message and never aborts the file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .aliases import trace_callee_to_definition
from .calls import describe_call, find_function_calls
from .context import find_node_scope, graph_kind_for, resolve_context, resolve_scope
from .members import get_all_class_members
from .models import CallRecord, Edge, ExtractionResult, Node
from .parser import Match, TreeSitterParser
from .queries import CALL_QUERY, CLASS_QUERY, FUNCTION_QUERY, IMPORT_QUERY, METHOD_QUERY, VARIABLE_QUERY
from .references import find_imported_identifier_usages
from .signatures import (
    CLASS_DEFINITION_KINDS,
    FUNCTION_DECLARATION_KINDS,
    FUNCTION_VALUE_KINDS,
    build_signature,
    detect_modifiers,
    extract_class_signature,
    function_name,
    unwrap_definition,
)
from .syntax import end_line, field, has_child_of_type, iter_ancestors, node_text, start_column, start_line

logger = logging.getLogger(__name__)

# Upper bound for the ancestor walk that finds a record's enclosing record.
OWNER_MAX_DEPTH = 50

CALLABLE_KINDS = FUNCTION_DECLARATION_KINDS + FUNCTION_VALUE_KINDS


def node_id(kind: str, file_path: str, name: str, node: Any) -> str:
    """Deterministic record id anchored at *node*'s 1-based start position."""
    return f"{kind}:{file_path}:{name}:{start_line(node)}:{start_column(node)}"


def module_id(file_path: str) -> str:
    return f"mod:{file_path}"


def _key(node: Any) -> Tuple[int, int, str]:
    return (node.start_byte, node.end_byte, node.type)


def _strip_quotes(text: str) -> str:
    if len(text) >= 2 and text[0] in "'\"`" and text[-1] == text[0]:
        return text[1:-1]
    return text


def _statement_of(node: Any) -> Any:
    """Outermost statement that owns *node* (declarations, exports)."""
    current = node
    while current.parent is not None and current.parent.type in (
        "variable_declarator", "lexical_declaration", "variable_declaration", "export_statement",
    ):
        current = current.parent
    return current


def _leading_comment(node: Any) -> str:
    """Comment block directly above the statement holding *node*, markers removed."""
    statement = _statement_of(node)
    prev = statement.prev_sibling
    if prev is None or prev.type != "comment":
        return ""
    if prev.end_point[0] < statement.start_point[0] - 1:
        return ""
    lines = []
    for raw in node_text(prev).splitlines():
        line = raw.strip()
        for marker in ("/**", "/*", "*/", "//"):
            line = line.replace(marker, "")
        line = line.lstrip("*").strip()
        if line:
            lines.append(line)
    return "\n".join(lines)


def _flag(value: bool) -> str:
    return "true" if value else "false"


class _ResultBuilder:
    """Ordered, deduplicating accumulator for one file's records."""

    def __init__(self, file_path: str) -> None:
        self.file_path = file_path
        self._nodes: Dict[str, Node] = {}
        self._edges: Dict[Tuple[str, str, str], Edge] = {}

    def add_node(self, node: Node) -> bool:
        if node.node_id in self._nodes:
            logger.debug("Duplicate record %s ignored", node.node_id)
            return False
        self._nodes[node.node_id] = node
        return True

    def add_edge(self, edge: Edge) -> bool:
        key = (edge.src, edge.dst, edge.edge_type)
        if key in self._edges:
            return False
        self._edges[key] = edge
        return True

    def result(self) -> ExtractionResult:
        return ExtractionResult(
            file_path=self.file_path,
            nodes=list(self._nodes.values()),
            edges=list(self._edges.values()),
        )


def _missing(match: Match, *captures: str) -> bool:
    absent = [name for name in captures if match.get(name) is None]
    if absent:
        logger.debug("Skipping match without capture(s) %s", ", ".join(absent))
        return True
    return False


class _FileExtraction:
    """Per-file state for one :meth:`GraphExtractor.extract_tree` call."""

    def __init__(
        self,
        parser: TreeSitterParser,
        tree: Any,
        source: str,
        file_path: str,
        language: str,
    ) -> None:
        self.parser = parser
        self.tree = tree
        self.source = source
        self.file_path = file_path
        self.language = language
        self.module_id = module_id(file_path)
        self.builder = _ResultBuilder(file_path)
        # definition node key -> record id
        self.records: Dict[Tuple[int, int, str], str] = {}
        self.callables: Dict[Tuple[int, int, str], str] = {}
        self.callable_nodes: List[Tuple[str, Any]] = []
        self.placed: List[Tuple[str, Any]] = []
        self.methods_by_qualname: Dict[str, str] = {}
        self.imports_by_name: Dict[str, str] = {}

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def run(self) -> ExtractionResult:
        self._add_module()
        self._add_classes(self._matches(CLASS_QUERY))
        self._add_functions(self._matches(FUNCTION_QUERY))
        self._add_methods(self._matches(METHOD_QUERY))
        self._add_variables(self._matches(VARIABLE_QUERY))
        self.add_imports(self._matches(IMPORT_QUERY))
        self._add_placement_edges()
        self._add_call_edges()
        return self.builder.result()

    def _matches(self, query_source: str) -> List[Match]:
        return self.parser.run_query(self.tree, query_source, self.language)

    def _register(self, record: Node, definition: Any, callable_: bool = False) -> bool:
        if not self.builder.add_node(record):
            return False
        self.records.setdefault(_key(definition), record.node_id)
        self.placed.append((record.node_id, definition))
        if callable_:
            self.callables.setdefault(_key(definition), record.node_id)
            self.callable_nodes.append((record.node_id, definition))
        return True

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def _add_module(self) -> None:
        root = self.tree.root_node
        first = root.named_children[0] if root.named_child_count else None
        docstring = ""
        if first is not None and first.type == "comment":
            docstring = node_text(first).strip("/* \n")
        self.builder.add_node(Node(
            node_id=self.module_id,
            node_type="module",
            name=Path(self.file_path).name,
            qualname=self.file_path,
            file_path=self.file_path,
            start_line=1,
            end_line=max(len(self.source.splitlines()), 1),
            code=self.source,
            docstring=docstring,
            metadata={"language": self.language},
        ))

    def _add_classes(self, matches: Sequence[Match]) -> None:
        for match in matches:
            if _missing(match, "class", "name"):
                continue
            definition = unwrap_definition(match["class"])
            if definition.type not in CLASS_DEFINITION_KINDS:
                logger.debug("Class capture resolved to %s, skipped", definition.type)
                continue
            name = node_text(match["name"])
            record_id = node_id("class", self.file_path, name, definition)
            members = get_all_class_members(definition)
            heritage = next(
                (c for c in definition.children if c.type == "class_heritage"), None,
            )
            record = Node(
                node_id=record_id,
                node_type=graph_kind_for(definition),
                name=name,
                qualname=name,
                file_path=self.file_path,
                start_line=start_line(definition),
                end_line=end_line(definition),
                code=node_text(match["class"]),
                signature=extract_class_signature(definition),
                docstring=_leading_comment(definition),
                metadata={
                    "heritage": node_text(heritage),
                    "members": ",".join(m.name for m in members),
                    "context": resolve_context(definition).context,
                },
            )
            if not self._register(record, definition):
                continue

            for member in members:
                if member.member_type == "method":
                    continue
                member_id = node_id(member.member_type, self.file_path, member.name, member.node)
                added = self.builder.add_node(Node(
                    node_id=member_id,
                    node_type=member.member_type,
                    name=member.name,
                    qualname=f"{name}.{member.name}",
                    file_path=self.file_path,
                    start_line=member.start_line,
                    end_line=member.end_line,
                    code=node_text(member.node),
                    signature=member.signature,
                    metadata={
                        "is_static": _flag(member.is_static),
                        "is_private": _flag(member.is_private),
                        "is_async": _flag(member.is_async),
                    },
                ))
                if added:
                    self.builder.add_edge(Edge(src=record_id, dst=member_id, edge_type="has_member"))
                    self.builder.add_edge(Edge(src=member_id, dst=record_id, edge_type="defined_in"))

    def _add_functions(self, matches: Sequence[Match]) -> None:
        for match in matches:
            if _missing(match, "function"):
                continue
            captured = match["function"]
            definition = unwrap_definition(captured)
            if definition.type not in CALLABLE_KINDS:
                logger.debug("Function capture resolved to %s, skipped", definition.type)
                continue
            name = function_name(definition, match.get("name"))
            scope = find_node_scope(definition)
            record = Node(
                node_id=node_id("function", self.file_path, name, definition),
                node_type=graph_kind_for(definition),
                name=name,
                qualname=name,
                file_path=self.file_path,
                start_line=start_line(definition),
                end_line=end_line(definition),
                code=node_text(captured),
                signature=build_signature(captured),
                docstring=_leading_comment(definition),
                metadata={
                    "kind": definition.type,
                    "is_async": _flag(has_child_of_type(definition, "async")),
                    "is_generator": _flag("generator" in definition.type),
                    "context": resolve_context(definition).context,
                    "scope": scope.label,
                },
            )
            self._register(record, definition, callable_=True)

    def _enclosing_class(self, method: Any) -> Optional[Any]:
        body = method.parent
        if body is None or body.type != "class_body":
            return None
        owner = body.parent
        if owner is None or owner.type not in CLASS_DEFINITION_KINDS:
            return None
        return owner

    def _add_methods(self, matches: Sequence[Match]) -> None:
        for match in matches:
            if _missing(match, "method", "name"):
                continue
            method = match["method"]
            name_node = match["name"]
            name = node_text(name_node)
            class_node = self._enclosing_class(method)
            class_name = function_name(class_node) if class_node is not None else ""
            qualname = f"{class_name}.{name}" if class_name else name
            modifiers = detect_modifiers(method, name_node)
            record = Node(
                node_id=node_id("method", self.file_path, name, method),
                node_type=graph_kind_for(method),
                name=name,
                qualname=qualname,
                file_path=self.file_path,
                start_line=start_line(method),
                end_line=end_line(method),
                code=node_text(method),
                signature=build_signature(method),
                docstring=_leading_comment(method),
                metadata={
                    "modifiers": " ".join(modifiers),
                    "is_constructor": _flag(name == "constructor"),
                    "is_private": _flag(name_node.type == "private_property_identifier"),
                    "scope": find_node_scope(name_node).label,
                },
            )
            if not self._register(record, method, callable_=True):
                continue
            self.methods_by_qualname.setdefault(qualname, record.node_id)
            class_id = self.records.get(_key(class_node)) if class_node is not None else None
            if class_id is not None:
                self.builder.add_edge(Edge(src=class_id, dst=record.node_id, edge_type="has_member"))

    def _add_variables(self, matches: Sequence[Match]) -> None:
        for match in matches:
            if _missing(match, "declaration", "name"):
                continue
            name_node = match["name"]
            declarator = name_node.parent
            value = field(declarator, "value")
            if value is not None and (
                value.type in CALLABLE_KINDS + CLASS_DEFINITION_KINDS or _is_require(value)
            ):
                continue
            keyword = match["declaration"].child(0)
            name = node_text(name_node)
            metadata = {
                "keyword": node_text(keyword),
                "context": resolve_context(name_node).context,
                "scope": resolve_scope(name_node).kind,
            }
            if value is not None and value.type == "identifier":
                metadata["assigned_from"] = node_text(value)
            record = Node(
                node_id=node_id("variable", self.file_path, name, declarator),
                node_type="variable",
                name=name,
                qualname=name,
                file_path=self.file_path,
                start_line=start_line(declarator),
                end_line=end_line(declarator),
                code=node_text(declarator),
                metadata=metadata,
            )
            self._register(record, declarator)

    def add_imports(self, matches: Sequence[Match]) -> None:
        for match in matches:
            if _missing(match, "import_statement", "name", "source"):
                continue
            statement = match["import_statement"]
            name_node = match["name"]
            name = node_text(name_node)
            record_id = node_id("import", self.file_path, name, statement)
            binding = name_node.parent.type if name_node.parent is not None else ""
            metadata = {
                "source": _strip_quotes(node_text(match["source"])),
                "binding": _IMPORT_BINDINGS.get(binding, "named"),
            }
            if binding == "import_specifier":
                metadata["imported"] = node_text(field(name_node.parent, "name"))
            if self.tree is not None:
                usages = find_imported_identifier_usages(self.tree, name)
                metadata["usages"] = str(len(usages))
            added = self.builder.add_node(Node(
                node_id=record_id,
                node_type="import",
                name=name,
                qualname=name,
                file_path=self.file_path,
                start_line=start_line(statement),
                end_line=end_line(statement),
                code=node_text(statement),
                metadata=metadata,
            ))
            if not added:
                continue
            self.imports_by_name.setdefault(name, record_id)
            self.builder.add_edge(Edge(src=self.module_id, dst=record_id, edge_type="imports"))

    # ------------------------------------------------------------------
    # Edges
    # ------------------------------------------------------------------

    def _owner(self, node: Any, table: Dict[Tuple[int, int, str], str]) -> Optional[str]:
        for ancestor in iter_ancestors(node, OWNER_MAX_DEPTH):
            record_id = table.get(_key(ancestor))
            if record_id is not None:
                return record_id
        return None

    def _add_placement_edges(self) -> None:
        for record_id, definition in self.placed:
            owner = self._owner(definition, self.records) or self.module_id
            self.builder.add_edge(Edge(src=record_id, dst=owner, edge_type="defined_in"))

    def _add_call_edges(self) -> None:
        for record_id, definition in self.callable_nodes:
            for call in find_function_calls(definition):
                if self._owner(call.node, self.callables) != record_id:
                    continue
                self._add_call_edge(record_id, call, definition)

        for match in self._matches(CALL_QUERY):
            node = match.get("call")
            if node is None or self._owner(node, self.callables) is not None:
                continue
            self._add_call_edge(self.module_id, describe_call(node), None)

    def _add_call_edge(self, src: str, call: CallRecord, caller: Any) -> None:
        metadata = {
            "call_type": call.call_type,
            "line": str(call.line),
            "column": str(call.column),
            "is_async": _flag(call.is_async),
        }
        if call.chain_depth is not None:
            metadata["chain_depth"] = str(call.chain_depth)
        if call.receiver:
            metadata["receiver"] = call.receiver
        dst = self._resolve_callee(call, caller, metadata)
        self.builder.add_edge(Edge(src=src, dst=dst, edge_type="calls", metadata=metadata))

    def _resolve_callee(self, call: CallRecord, caller: Any, metadata: Dict[str, str]) -> str:
        name = call.function_name
        if call.receiver is None:
            chain = trace_callee_to_definition(self.tree, name)
            if len(chain) > 1:
                metadata["via"] = " -> ".join(hop.name for hop in chain.hops)
            declaration = chain.final_definition
            if declaration is not None:
                target = self._record_for_declaration(declaration)
                if target is not None:
                    return target
            return name

        if call.receiver == "this" and caller is not None and caller.type == "method_definition":
            class_node = self._enclosing_class(caller)
            if class_node is not None:
                target = self.methods_by_qualname.get(f"{function_name(class_node)}.{name}")
                if target is not None:
                    return target
        if call.call_type == "dynamic_call":
            return name
        return f"{call.receiver}.{name}"

    def _record_for_declaration(self, declaration: Any) -> Optional[str]:
        if declaration.kind == "import":
            return self.imports_by_name.get(node_text(declaration.node))
        parent = declaration.parent_node
        if parent is None:
            return None
        if declaration.kind == "variable":
            parent = unwrap_definition(parent)
        return self.records.get(_key(parent)) or self.imports_by_name.get(node_text(declaration.node))


_IMPORT_BINDINGS = {
    "import_clause": "default",
    "import_specifier": "named",
    "namespace_import": "namespace",
    "variable_declarator": "require",
}


def _is_require(value: Any) -> bool:
    if value.type != "call_expression":
        return False
    callee = field(value, "function")
    return callee is not None and callee.type == "identifier" and node_text(callee) == "require"


class GraphExtractor:
    """Extract graph records from JavaScript / TypeScript sources.

    Example::

        extractor = GraphExtractor(project_root=Path("app"))
        result = extractor.extract_file(Path("app/src/cart.js"))
        store.upsert(result)
    """

    def __init__(
        self,
        parser: Optional[TreeSitterParser] = None,
        project_root: Optional[Path] = None,
    ) -> None:
        self.parser = parser or TreeSitterParser()
        self.project_root = project_root

    def _label(self, file_path: Path) -> str:
        if self.project_root is not None:
            try:
                return file_path.resolve().relative_to(self.project_root.resolve()).as_posix()
            except ValueError:
                pass
        return file_path.as_posix()

    def extract_tree(
        self,
        tree: Any,
        source: str,
        file_path: str,
        language: str = "javascript",
    ) -> ExtractionResult:
        """Records for an already parsed *tree* labelled with *file_path*."""
        result = _FileExtraction(self.parser, tree, source, file_path, language).run()
        logger.debug(
            "Extracted %d nodes, %d edges from %s",
            len(result.nodes), len(result.edges), file_path,
        )
        return result

    def extract_source(
        self,
        source: str,
        file_path: str = "<memory>.js",
        language: str = "javascript",
    ) -> ExtractionResult:
        tree = self.parser.parse_source(source, language)
        return self.extract_tree(tree, source, file_path, language)

    def extract_file(self, file_path: Path) -> ExtractionResult:
        tree, source, language = self.parser.parse_file(file_path)
        return self.extract_tree(tree, source, self._label(file_path), language)

    def extract_imports(self, matches: Sequence[Match], file_path: str) -> ExtractionResult:
        """Import records for pre-computed *matches*, deduplicated by id."""
        extraction = _FileExtraction(self.parser, None, "", file_path, "javascript")
        extraction.add_imports(matches)
        return extraction.builder.result()

    def extract_project(self, project_root: Optional[Path] = None) -> List[ExtractionResult]:
        """Extract every supported file; a failing file is logged and skipped."""
        root = project_root or self.project_root
        if root is None:
            raise ValueError("No project root given")
        if self.project_root is None:
            self.project_root = root

        results: List[ExtractionResult] = []
        for file_path in self.parser.iter_source_files(root):
            try:
                results.append(self.extract_file(file_path))
            except (OSError, ValueError) as exc:
                logger.warning("Failed to extract %s: %s", file_path, exc)
        return results
