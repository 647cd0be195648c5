"""End-to-end tests for the command-line interface in local mode."""

import json
import os

import pytest
import structlog

from main import EXIT_FAILURE, EXIT_OK, main_async, parse_args


@pytest.fixture
def cli(tmp_path, monkeypatch):
    """Run CLI commands against a fresh local cache."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("ISSUEGRAPH_STORAGE_MODE", "local")
    monkeypatch.delenv("ISSUEGRAPH_TRACKER_TOKEN", raising=False)
    monkeypatch.delenv("ISSUEGRAPH_TRACKER_REPOSITORY", raising=False)
    monkeypatch.setenv("ISSUEGRAPH_STORAGE_CACHE_DIR", str(tmp_path / "cache"))

    async def run(*argv: str) -> int:
        return await main_async(parse_args(["--mode", "local", *argv]))

    return run


class TestParseArgs:
    """Test argument parsing."""

    def test_debug_sets_log_level(self):
        """Test that --debug implies the DEBUG level."""
        args = parse_args(["--debug", "tree", "12"])

        assert args.log_level == "DEBUG"
        assert args.command == "tree"
        assert args.max_depth is None

    def test_add_requires_target(self):
        """Test that add without a target is a usage error."""
        with pytest.raises(SystemExit):
            parse_args(["add", "12"])


class TestCommands:
    """Test commands end to end."""

    @pytest.mark.asyncio
    async def test_add_and_get(self, cli, capsys):
        """Test recording and listing a dependency."""
        assert await cli("add", "1", "2") == EXIT_OK
        assert await cli("get", "1") == EXIT_OK

        out = capsys.readouterr().out.splitlines()
        assert out == ["#1 depends on #2 (added)", "#2"]

    @pytest.mark.asyncio
    async def test_self_dependency_fails(self, cli, capsys):
        """Test that a self-dependency exits non-zero without output."""
        assert await cli("add", "3", "3") == EXIT_FAILURE
        assert capsys.readouterr().out == ""

    @pytest.mark.asyncio
    async def test_blocked_lists_dependents(self, cli, capsys):
        """Test the reverse query."""
        await cli("add", "1", "2")
        await cli("add", "3", "2")
        capsys.readouterr()

        assert await cli("blocked", "2") == EXIT_OK
        assert capsys.readouterr().out.splitlines() == ["#1", "#3"]

    @pytest.mark.asyncio
    async def test_validate_exit_code(self, cli, capsys):
        """Test that items with unknown-state dependencies fail validation."""
        await cli("add", "1", "2")
        capsys.readouterr()

        assert await cli("validate", "1") == EXIT_FAILURE
        assert await cli("validate", "2") == EXIT_OK

    @pytest.mark.asyncio
    async def test_circular(self, cli, capsys):
        """Test cycle detection output and exit code."""
        await cli("add", "1", "2")
        await cli("add", "2", "1")
        capsys.readouterr()

        assert await cli("circular", "1") == EXIT_FAILURE
        data = json.loads(capsys.readouterr().out)
        assert data == {"hasCircular": True, "cycles": [["1", "2", "1"]]}

    @pytest.mark.asyncio
    async def test_tree(self, cli, capsys):
        """Test rendering a tree to stdout."""
        await cli("add", "1", "2")
        capsys.readouterr()

        assert await cli("tree", "1") == EXIT_OK
        assert capsys.readouterr().out.splitlines() == ["[?] #1", "└── [?] #2"]

    @pytest.mark.asyncio
    async def test_mermaid_to_file(self, cli, tmp_path, capsys):
        """Test writing a diagram into a new directory."""
        await cli("add", "1", "2")
        target = tmp_path / "out" / "deps.mmd"

        assert await cli("mermaid", "1", "--output", str(target)) == EXIT_OK

        assert target.read_text().startswith("graph TD")
        assert "issue_1 --> issue_2" in target.read_text()

    @pytest.mark.asyncio
    async def test_remote_mode_without_tracker_fails(self, tmp_path, monkeypatch):
        """Test that label mode without credentials is a configuration error."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("ISSUEGRAPH_TRACKER_TOKEN", raising=False)
        monkeypatch.delenv("ISSUEGRAPH_TRACKER_REPOSITORY", raising=False)
        monkeypatch.setenv("ISSUEGRAPH_STORAGE_MODE", "label")

        assert await main_async(parse_args(["--mode", "label", "get", "1"])) == EXIT_FAILURE

    @pytest.mark.asyncio
    async def test_mode_flag_wins_over_environment(self, tmp_path, monkeypatch):
        """Test that --mode applies for this run without touching the environment."""
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("ISSUEGRAPH_TRACKER_TOKEN", raising=False)
        monkeypatch.delenv("ISSUEGRAPH_TRACKER_REPOSITORY", raising=False)
        monkeypatch.setenv("ISSUEGRAPH_STORAGE_MODE", "label")
        monkeypatch.setenv("ISSUEGRAPH_STORAGE_CACHE_DIR", str(tmp_path / "cache"))

        assert await main_async(parse_args(["--mode", "local", "add", "1", "2"])) == EXIT_OK
        assert os.environ["ISSUEGRAPH_STORAGE_MODE"] == "label"

    @pytest.mark.asyncio
    async def test_log_context_cleared_after_run(self, cli):
        """Test that the per-run command context does not outlive the command."""
        await cli("add", "1", "2")

        assert structlog.contextvars.get_contextvars() == {}
