import subprocess

import pytest

from deploypipe.errors import ExecutionError, PrerequisiteError
from deploypipe.models import EnvironmentConfig
from deploypipe.services.prerequisites import PrerequisiteService


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class FakeCommandRunner:
    def __init__(self, tools=("node", "npm"), status="", branch="main", git_available=True):
        self.tools = set(tools)
        self.status = status
        self.branch = branch
        self.git_available = git_available
        self.calls = []

    def is_available(self, tool):
        return tool in self.tools

    def run(self, cmd, **_kwargs):
        self.calls.append(cmd)
        if not self.git_available:
            raise ExecutionError("Required command not found: git", command=" ".join(cmd))
        stdout = self.status if "status" in cmd else f"{self.branch}\n"
        return subprocess.CompletedProcess(cmd, 0, stdout=stdout, stderr="")


PRODUCTION = EnvironmentConfig("production", "https://example.com", "main")
STAGING = EnvironmentConfig("staging", "https://staging.example.com", "staging")


@pytest.fixture
def workspace(tmp_path):
    (tmp_path / "package.json").write_text("{}", encoding="utf-8")
    return tmp_path


def _service(runner):
    return PrerequisiteService(command_runner=runner, logger=DummyLogger(), console=DummyConsole())


def test_missing_manifest_is_fatal(tmp_path):
    runner = FakeCommandRunner()

    with pytest.raises(PrerequisiteError, match="package.json not found"):
        _service(runner).check(str(tmp_path), PRODUCTION)

    assert runner.calls == []


def test_missing_tool_is_fatal(workspace):
    with pytest.raises(PrerequisiteError, match="Required command not found: npm"):
        _service(FakeCommandRunner(tools=("node",))).check(str(workspace), STAGING)


def test_dirty_worktree_blocks_production(workspace):
    runner = FakeCommandRunner(status=" M src/index.js\n")

    with pytest.raises(PrerequisiteError, match="Working directory is not clean"):
        _service(runner).check(str(workspace), PRODUCTION)


def test_dirty_worktree_is_ignored_outside_production(workspace):
    runner = FakeCommandRunner(status=" M src/index.js\n", branch="staging")

    warnings = _service(runner).check(str(workspace), STAGING)

    assert warnings == []
    assert ["git", "status", "--porcelain"] not in runner.calls


def test_missing_git_downgrades_to_warning(workspace):
    warnings = _service(FakeCommandRunner(git_available=False)).check(str(workspace), PRODUCTION)

    assert warnings == ["Git not available or not in a git repository"]


def test_branch_mismatch_is_a_warning(workspace):
    warnings = _service(FakeCommandRunner(branch="feature/x")).check(str(workspace), PRODUCTION)

    assert len(warnings) == 1
    assert "feature/x" in warnings[0]
