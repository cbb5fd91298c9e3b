import os
import sys
import time

import pytest

from deploypipe.errors import DeployTimeoutError, ExecutionError
from deploypipe.services.command_runner import CommandRunner


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class RecordingConsole:
    def __init__(self):
        self.lines = []

    def print(self, message, *_args, **_kwargs):
        self.lines.append(message)


def _runner(console=None, **kwargs):
    return CommandRunner(logger=DummyLogger(), console=console or RecordingConsole(), **kwargs)


def test_command_runner_raises_execution_error_with_output():
    runner = _runner()

    with pytest.raises(ExecutionError, match="boom") as error:
        runner.run([sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"])

    assert error.value.exit_code == 3
    assert "boom" in error.value.output
    assert sys.executable in error.value.command


def test_command_runner_returns_when_check_disabled():
    runner = _runner()

    result = runner.run([sys.executable, "-c", "import sys; sys.exit(1)"], check=False)

    assert result.returncode == 1


def test_command_runner_reports_missing_executable():
    runner = _runner()

    with pytest.raises(ExecutionError, match="Required command not found"):
        runner.run(["definitely-not-a-real-command-xyz"])


def test_command_runner_passes_env_without_touching_process_environment(monkeypatch):
    monkeypatch.delenv("BUILD_ENV", raising=False)
    runner = _runner()

    result = runner.run(
        [sys.executable, "-c", "import os; print(os.environ['BUILD_ENV'])"],
        env={"BUILD_ENV": "staging"},
    )

    assert result.stdout.strip() == "staging"
    assert "BUILD_ENV" not in os.environ


def test_command_runner_streams_output_to_console():
    console = RecordingConsole()
    runner = _runner(console=console)

    result = runner.run(
        [sys.executable, "-c", "print('first'); print('second')"],
        stream_output=True,
    )

    assert result.returncode == 0
    assert console.lines == ["first", "second"]


def test_command_runner_streaming_failure_keeps_tail_of_output():
    runner = _runner()

    with pytest.raises(ExecutionError) as error:
        runner.run(
            [sys.executable, "-c", "print('compiling'); import sys; sys.exit(2)"],
            stream_output=True,
        )

    assert error.value.exit_code == 2
    assert "compiling" in error.value.output


def test_command_runner_timeout_raises_deploy_timeout():
    runner = _runner()

    with pytest.raises(DeployTimeoutError, match="timed out"):
        runner.run([sys.executable, "-c", "import time; time.sleep(2)"], timeout=0.1)


def test_command_runner_streaming_timeout_applies_to_silent_command():
    runner = _runner()
    started = time.monotonic()

    with pytest.raises(DeployTimeoutError, match="timed out after 0.5s"):
        runner.run(
            [sys.executable, "-c", "import time; time.sleep(5)"],
            stream_output=True,
            timeout=0.5,
        )

    assert time.monotonic() - started < 4


def test_command_runner_streaming_timeout_keeps_output_seen_so_far():
    console = RecordingConsole()
    runner = _runner(console=console)

    with pytest.raises(DeployTimeoutError):
        runner.run(
            [sys.executable, "-u", "-c", "print('warming up'); import time; time.sleep(5)"],
            stream_output=True,
            timeout=1,
        )

    assert console.lines == ["warming up"]


def test_command_runner_uses_default_timeout():
    runner = _runner(default_timeout=0.1)

    with pytest.raises(DeployTimeoutError):
        runner.run([sys.executable, "-c", "import time; time.sleep(2)"])


def test_launch_returns_process_handle(tmp_path):
    runner = _runner()
    marker = tmp_path / "started.txt"

    process = runner.launch(
        [sys.executable, "-c", f"open({str(marker)!r}, 'w').write('ok')"],
        cwd=str(tmp_path),
    )

    assert process.wait(timeout=10) == 0
    assert marker.read_text(encoding="utf-8") == "ok"


def test_is_available_uses_path_lookup(monkeypatch):
    runner = _runner()
    monkeypatch.setattr(
        "deploypipe.services.command_runner.shutil.which",
        lambda tool: "/usr/bin/pm2" if tool == "pm2" else None,
    )

    assert runner.is_available("pm2") is True
    assert runner.is_available("docker") is False
