"""Integration tests for CLI commands."""

from pathlib import Path

import pytest
from typer.testing import CliRunner

from codegraph_extractor import config
from codegraph_extractor.cli import app
from codegraph_extractor.storage import GraphStore

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(temp_dir: Path, monkeypatch):
    """Keep every command away from the user's real config and database."""
    monkeypatch.setattr(config, "BASE_DIR", temp_dir / "home")
    monkeypatch.setattr(config, "CONFIG_FILE", temp_dir / "home" / "config.toml")
    monkeypatch.setattr(config, "DB_FILE", temp_dir / "home" / "graph.db")
    return temp_dir / "home"


def _src(sample_project_path: Path, name: str) -> str:
    return str(sample_project_path / "src" / name)


class TestGlobalOptions:
    """Tests for top-level options."""

    def test_version(self):
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "codegraph-extractor v0.1.0" in result.stdout

    def test_unsupported_file(self, temp_dir: Path):
        path = temp_dir / "script.py"
        path.write_text("print('hi')\n")

        result = runner.invoke(app, ["refs", str(path), "print"])

        assert result.exit_code != 0


class TestExtractCommand:
    """Tests for 'cgx extract'."""

    def test_extract_project(self, sample_project_path: Path, temp_dir: Path):
        db = temp_dir / "out" / "graph.db"
        result = runner.invoke(app, ["extract", str(sample_project_path), "--db", str(db)])

        assert result.exit_code == 0
        assert "Files: 5" in result.stdout
        with GraphStore(db) as store:
            assert store.get_node("createCart") is not None
            assert store.counts()["nodes"] > 0

    def test_extract_twice_is_stable(self, sample_project_path: Path, temp_dir: Path):
        db = temp_dir / "graph.db"
        runner.invoke(app, ["extract", str(sample_project_path), "--db", str(db)])
        with GraphStore(db) as store:
            first = store.counts()

        result = runner.invoke(app, ["extract", str(sample_project_path), "--db", str(db)])

        assert result.exit_code == 0
        with GraphStore(db) as store:
            assert store.counts() == first

    def test_extract_single_file_default_db(self, sample_project_path: Path, isolated_config: Path):
        result = runner.invoke(app, ["extract", _src(sample_project_path, "utils.js")])

        assert result.exit_code == 0
        assert "Files: 1" in result.stdout
        assert (isolated_config / "graph.db").exists()

    def test_extract_missing_path(self):
        result = runner.invoke(app, ["extract", "/nonexistent/path"])
        assert result.exit_code != 0


class TestInspectionCommands:
    """Tests for the single-file inspection commands."""

    def test_calls(self, sample_project_path: Path):
        result = runner.invoke(app, ["calls", _src(sample_project_path, "cart.js"), "checkout"])

        assert result.exit_code == 0
        assert "charge" in result.stdout
        assert "method_call" in result.stdout
        assert "fmt" in result.stdout

    def test_calls_unknown_function(self, sample_project_path: Path):
        result = runner.invoke(app, ["calls", _src(sample_project_path, "cart.js"), "nope"])
        assert result.exit_code != 0

    def test_trace(self, sample_project_path: Path):
        result = runner.invoke(app, ["trace", _src(sample_project_path, "utils.js"), "handler"])

        assert result.exit_code == 0
        assert "handler" in result.stdout
        assert "process" in result.stdout

    def test_trace_missing(self, sample_project_path: Path):
        result = runner.invoke(app, ["trace", _src(sample_project_path, "utils.js"), "nothing"])

        assert result.exit_code == 1
        assert "No declaration found" in result.stdout

    def test_context(self, sample_project_path: Path):
        result = runner.invoke(app, ["context", _src(sample_project_path, "cart.js"), "26", "11"])

        assert result.exit_code == 0
        assert "Cart.checkout" in result.stdout

    def test_members(self, sample_project_path: Path):
        result = runner.invoke(app, ["members", _src(sample_project_path, "cart.js"), "Cart"])

        assert result.exit_code == 0
        assert "#items" in result.stdout
        assert "constructor" in result.stdout
        assert "checkout" in result.stdout

    def test_members_of_typescript_class(self, sample_project_path: Path):
        result = runner.invoke(app, ["members", _src(sample_project_path, "inventory.ts"), "Inventory"])

        assert result.exit_code == 0
        assert "create" in result.stdout
        assert "load" in result.stdout

    def test_members_of_function(self, sample_project_path: Path):
        result = runner.invoke(app, ["members", _src(sample_project_path, "cart.js"), "createCart"])

        assert result.exit_code == 1
        assert "not a class" in result.stdout

    def test_refs(self, sample_project_path: Path):
        result = runner.invoke(app, ["refs", _src(sample_project_path, "utils.js"), "process"])

        assert result.exit_code == 0
        assert "assignment_source" in result.stdout

    def test_refs_none(self, sample_project_path: Path):
        result = runner.invoke(app, ["refs", _src(sample_project_path, "utils.js"), "zzz"])

        assert result.exit_code == 0
        assert "No references" in result.stdout


class TestConfigCommand:
    """Tests for 'cgx config'."""

    def test_show_defaults(self):
        result = runner.invoke(app, ["config"])

        assert result.exit_code == 0
        assert "node_modules" in result.stdout

    def test_add_skip_dir(self, isolated_config: Path):
        result = runner.invoke(app, ["config", "--skip-dir", "vendor"])

        assert result.exit_code == 0
        assert "vendor" in config.load_config()["skip_dirs"]
        assert (isolated_config / "config.toml").exists()
