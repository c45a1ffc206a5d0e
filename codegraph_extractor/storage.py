"""SQLite persistence for extracted graph records.

Writes are idempotent: nodes are keyed by their deterministic id and written
with ``INSERT OR REPLACE``; edges carry a unique ``(src, dst, edge_type)``
index and are written with ``INSERT OR IGNORE``. Re-extracting a file and
upserting the result again leaves the store unchanged.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import Edge, ExtractionResult, Node

logger = logging.getLogger(__name__)


class GraphStore:
    """Node/edge tables in a single SQLite file."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self.meta_path = db_path.with_suffix(".json")
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(self.db_path))
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "GraphStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Schema
    # ------------------------------------------------------------------

    def _init_schema(self) -> None:
        cur = self.conn.cursor()
        cur.execute("""
            CREATE TABLE IF NOT EXISTS nodes (
                node_id    TEXT PRIMARY KEY,
                node_type  TEXT NOT NULL,
                name       TEXT NOT NULL,
                qualname   TEXT NOT NULL,
                file_path  TEXT NOT NULL,
                start_line INTEGER NOT NULL,
                end_line   INTEGER NOT NULL,
                code       TEXT NOT NULL,
                signature  TEXT,
                docstring  TEXT,
                metadata   TEXT
            )
        """)
        cur.execute("""
            CREATE TABLE IF NOT EXISTS edges (
                src       TEXT NOT NULL,
                dst       TEXT NOT NULL,
                edge_type TEXT NOT NULL,
                metadata  TEXT
            )
        """)
        cur.execute(
            "CREATE UNIQUE INDEX IF NOT EXISTS idx_edges_unique ON edges(src, dst, edge_type)"
        )
        cur.execute("CREATE INDEX IF NOT EXISTS idx_edges_dst ON edges(dst)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_nodes_name ON nodes(name)")
        cur.execute("CREATE INDEX IF NOT EXISTS idx_nodes_file ON nodes(file_path)")
        self.conn.commit()

    # ------------------------------------------------------------------
    # Clear / metadata
    # ------------------------------------------------------------------

    def clear(self) -> None:
        cur = self.conn.cursor()
        cur.execute("DELETE FROM edges")
        cur.execute("DELETE FROM nodes")
        self.conn.commit()

    def set_metadata(self, payload: Dict[str, Any]) -> None:
        self.meta_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")

    def get_metadata(self) -> Dict[str, Any]:
        if not self.meta_path.exists():
            return {}
        try:
            return json.loads(self.meta_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Ignoring corrupt metadata file %s", self.meta_path)
            return {}

    # ------------------------------------------------------------------
    # Insert
    # ------------------------------------------------------------------

    def insert_nodes(self, nodes: Iterable[Node]) -> int:
        rows = [
            (
                node.node_id,
                node.node_type,
                node.name,
                node.qualname,
                node.file_path,
                node.start_line,
                node.end_line,
                node.code,
                node.signature,
                node.docstring,
                json.dumps(node.metadata) if node.metadata else None,
            )
            for node in nodes
        ]
        if not rows:
            return 0
        self.conn.executemany(
            """
            INSERT OR REPLACE INTO nodes (
                node_id, node_type, name, qualname, file_path,
                start_line, end_line, code, signature, docstring, metadata
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            rows,
        )
        self.conn.commit()
        return len(rows)

    def insert_edges(self, edges: Iterable[Edge]) -> int:
        rows = [
            (e.src, e.dst, e.edge_type, json.dumps(e.metadata) if e.metadata else None)
            for e in edges
        ]
        if not rows:
            return 0
        cur = self.conn.cursor()
        before = self.conn.total_changes
        cur.executemany(
            "INSERT OR IGNORE INTO edges (src, dst, edge_type, metadata) VALUES (?, ?, ?, ?)",
            rows,
        )
        self.conn.commit()
        return self.conn.total_changes - before

    def upsert(self, result: ExtractionResult) -> Tuple[int, int]:
        """Write one file's records; returns ``(nodes written, new edges)``."""
        node_count = self.insert_nodes(result.nodes)
        edge_count = self.insert_edges(result.edges)
        logger.debug(
            "Upserted %d nodes, %d new edges for %s",
            node_count, edge_count, result.file_path,
        )
        return node_count, edge_count

    def replace_file(self, result: ExtractionResult) -> Tuple[int, int]:
        """Drop stale records of ``result.file_path`` and upsert the fresh ones."""
        self.remove_nodes_for_file(result.file_path)
        return self.upsert(result)

    # ------------------------------------------------------------------
    # Incremental removal
    # ------------------------------------------------------------------

    def remove_nodes_for_file(self, rel_path: str) -> int:
        """Remove all nodes of *rel_path* and every edge touching them.

        Returns:
            Number of node rows deleted.
        """
        cur = self.conn.cursor()
        rows = cur.execute(
            "SELECT node_id FROM nodes WHERE file_path = ?", (rel_path,),
        ).fetchall()
        node_ids = [r[0] for r in rows]
        if not node_ids:
            return 0

        placeholders = ",".join("?" * len(node_ids))
        cur.execute(
            f"DELETE FROM edges WHERE src IN ({placeholders}) OR dst IN ({placeholders})",
            node_ids + node_ids,
        )
        cur.execute(f"DELETE FROM nodes WHERE node_id IN ({placeholders})", node_ids)
        self.conn.commit()
        return len(node_ids)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_nodes(self, node_type: Optional[str] = None) -> List[sqlite3.Row]:
        if node_type is None:
            return self.conn.execute("SELECT * FROM nodes ORDER BY node_id").fetchall()
        return self.conn.execute(
            "SELECT * FROM nodes WHERE node_type = ? ORDER BY node_id", (node_type,),
        ).fetchall()

    def get_node(self, node_id_or_name: str) -> Optional[sqlite3.Row]:
        return self.conn.execute(
            "SELECT * FROM nodes WHERE node_id = ? OR qualname = ? OR name = ? LIMIT 1",
            (node_id_or_name, node_id_or_name, node_id_or_name),
        ).fetchone()

    def get_edges(self, edge_type: Optional[str] = None) -> List[sqlite3.Row]:
        if edge_type is None:
            return self.conn.execute("SELECT * FROM edges").fetchall()
        return self.conn.execute(
            "SELECT * FROM edges WHERE edge_type = ?", (edge_type,),
        ).fetchall()

    def neighbors(self, src_node_id: str) -> List[sqlite3.Row]:
        return self.conn.execute(
            "SELECT * FROM edges WHERE src = ?", (src_node_id,),
        ).fetchall()

    def reverse_neighbors(self, dst_node_id: str) -> List[sqlite3.Row]:
        return self.conn.execute(
            "SELECT * FROM edges WHERE dst = ?", (dst_node_id,),
        ).fetchall()

    def counts(self) -> Dict[str, int]:
        nodes = self.conn.execute("SELECT COUNT(*) FROM nodes").fetchone()[0]
        edges = self.conn.execute("SELECT COUNT(*) FROM edges").fetchone()[0]
        return {"nodes": nodes, "edges": edges}
