"""Tree-sitter front end: grammar loading, parsing and query execution.

Grammars come from the per-language wheels (``tree-sitter-javascript``,
``tree-sitter-typescript``). A grammar that cannot be imported is logged and
its language is simply reported as unsupported.
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Set, Tuple

from tree_sitter import Language, Parser as TSParser, Query, QueryCursor

from .config import DEFAULT_LANGUAGES, DEFAULT_MAX_FILE_BYTES, DEFAULT_SKIP_DIRS

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Language <-> file-extension mapping
# ---------------------------------------------------------------------------
LANGUAGE_MAP: Dict[str, str] = {
    ".js": "javascript",
    ".jsx": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".ts": "typescript",
    ".tsx": "tsx",
}

# language -> (grammar module, factory attribute)
_GRAMMAR_MODULES: Dict[str, Tuple[str, str]] = {
    "javascript": ("tree_sitter_javascript", "language"),
    "typescript": ("tree_sitter_typescript", "language_typescript"),
    "tsx": ("tree_sitter_typescript", "language_tsx"),
}

# One match record: capture name -> first captured node.
Match = Dict[str, Any]


class TreeSitterParser:
    """Parses JavaScript-family sources and runs queries over the trees."""

    def __init__(
        self,
        languages: Optional[Sequence[str]] = None,
        skip_dirs: Optional[Sequence[str]] = None,
        max_file_bytes: int = DEFAULT_MAX_FILE_BYTES,
    ) -> None:
        self._languages: Dict[str, Any] = {}
        self._parsers: Dict[str, Any] = {}
        self._queries: Dict[Tuple[str, str], Any] = {}
        self.skip_dirs: Set[str] = set(skip_dirs if skip_dirs is not None else DEFAULT_SKIP_DIRS)
        self.max_file_bytes = max_file_bytes
        self._init_parsers(languages or DEFAULT_LANGUAGES)

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    def _init_parsers(self, languages: Sequence[str]) -> None:
        for lang in languages:
            spec = _GRAMMAR_MODULES.get(lang)
            if spec is None:
                logger.warning("No grammar module mapped for language '%s'", lang)
                continue
            mod_name, factory = spec
            try:
                mod = importlib.import_module(mod_name)
                ts_lang = Language(getattr(mod, factory)())
            except ImportError:
                logger.warning(
                    "Grammar package '%s' not installed for language '%s'. "
                    "Install with: pip install %s",
                    mod_name, lang, mod_name.replace("_", "-"),
                )
                continue
            except (AttributeError, ValueError) as exc:
                logger.warning("Could not load tree-sitter grammar for %s: %s", lang, exc)
                continue
            self._languages[lang] = ts_lang
            self._parsers[lang] = TSParser(ts_lang)
            logger.debug("Loaded tree-sitter parser for %s", lang)

    def supports_language(self, language: str) -> bool:
        return language in self._parsers

    @property
    def languages(self) -> List[str]:
        return sorted(self._parsers)

    @staticmethod
    def language_for(file_path: Path) -> Optional[str]:
        return LANGUAGE_MAP.get(file_path.suffix.lower())

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    def parse_source(self, source: str, language: str = "javascript") -> Any:
        """Parse *source* with the grammar of *language*."""
        parser = self._parsers.get(language)
        if parser is None:
            raise ValueError(f"Language '{language}' is not supported")
        return parser.parse(source.encode("utf-8"))

    def parse_file(self, file_path: Path) -> Tuple[Any, str, str]:
        """Parse a file; returns ``(tree, source, language)``."""
        language = self.language_for(file_path)
        if language is None or not self.supports_language(language):
            raise ValueError(f"Unsupported file type: {file_path}")
        source = file_path.read_text(encoding="utf-8", errors="ignore")
        return self.parse_source(source, language), source, language

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def _compiled(self, query_source: str, language: str) -> Any:
        key = (language, query_source)
        query = self._queries.get(key)
        if query is None:
            query = Query(self._languages[language], query_source)
            self._queries[key] = query
        return query

    def run_query(self, tree: Any, query_source: str, language: str = "javascript") -> List[Match]:
        """Ordered match records for *query_source* over the whole tree.

        Each record maps a capture name to the first node captured under it.
        """
        if not self.supports_language(language):
            raise ValueError(f"Language '{language}' is not supported")
        cursor = QueryCursor(self._compiled(query_source, language))
        records: List[Match] = []
        for _pattern_index, captures in cursor.matches(tree.root_node):
            records.append({name: nodes[0] for name, nodes in captures.items() if nodes})
        return records

    # ------------------------------------------------------------------
    # Project walking
    # ------------------------------------------------------------------

    def iter_source_files(self, project_root: Path) -> Iterator[Path]:
        """Supported source files under *project_root*, sorted, skipping vendored dirs."""
        for ext, lang in sorted(LANGUAGE_MAP.items()):
            if lang not in self._parsers:
                continue
            for file_path in sorted(project_root.rglob(f"*{ext}")):
                rel_parts = file_path.relative_to(project_root).parts
                if any(part in self.skip_dirs for part in rel_parts):
                    continue
                if file_path.stat().st_size > self.max_file_bytes:
                    logger.info("Skipping oversized file %s", file_path)
                    continue
                yield file_path
