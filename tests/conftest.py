"""Pytest configuration and fixtures for codegraph-extractor tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator, Optional

import pytest

from codegraph_extractor.parser import TreeSitterParser
from codegraph_extractor.storage import GraphStore
from codegraph_extractor.syntax import node_text, walk


@pytest.fixture(scope="session")
def ts_parser() -> TreeSitterParser:
    """One parser for the whole session; grammar loading is the slow part."""
    return TreeSitterParser()


@pytest.fixture
def parse_js(ts_parser: TreeSitterParser) -> Callable[[str], Any]:
    """Parse a JavaScript snippet into a tree."""
    def _parse(source: str) -> Any:
        return ts_parser.parse_source(source, "javascript")
    return _parse


@pytest.fixture
def parse_ts(ts_parser: TreeSitterParser) -> Callable[[str], Any]:
    """Parse a TypeScript snippet into a tree."""
    def _parse(source: str) -> Any:
        return ts_parser.parse_source(source, "typescript")
    return _parse


@pytest.fixture
def find_node() -> Callable[..., Any]:
    """Return the *nth* node of a type (and optional text) in document order."""
    def _find(tree: Any, node_type: str, text: Optional[str] = None, nth: int = 0) -> Any:
        found = [
            n for n in walk(tree.root_node)
            if n.type == node_type and (text is None or node_text(n) == text)
        ]
        assert len(found) > nth, f"no {node_type} {text!r} #{nth} in tree"
        return found[nth]
    return _find


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to the sample JavaScript/TypeScript project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def temp_graph_store(temp_dir: Path) -> Generator[GraphStore, None, None]:
    """Create a GraphStore backed by a temporary SQLite file."""
    store = GraphStore(temp_dir / "store" / "graph.db")
    yield store
    store.close()


@pytest.fixture
def sample_js_code() -> str:
    """Small module exercising functions, aliases, classes and imports."""
    return '''import { formatPrice as fmt } from './utils.js';
const levels = require('./levels');

function process(items) {
  return items.length;
}

const handler = process;

function main() {
  return handler([1]);
}

class Cart {
  static count = 0;

  total() {
    return 1;
  }

  checkout() {
    return fmt(this.total());
  }
}

main();
'''
