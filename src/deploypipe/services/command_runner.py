"""Subprocess execution service for deploypipe."""

import os
import shutil
import subprocess
import threading
from collections import deque
from typing import Deque, Dict, List, Optional

from deploypipe.errors import DeployTimeoutError, ExecutionError


class CommandRunner:
    """Runs external commands with consistent error handling.

    Output is buffered and surfaced only on failure unless ``stream_output``
    is set, in which case every line is mirrored to the console as it
    arrives. There is no retry logic here; callers that need retries own
    them.
    """

    TAIL_LINES = 40
    TERMINATE_GRACE_SECONDS = 10
    READER_JOIN_SECONDS = 1

    def __init__(
        self,
        logger,
        console,
        default_timeout: Optional[float] = None,
        subprocess_module=subprocess,
    ):
        self.logger = logger
        self.console = console
        self.default_timeout = default_timeout
        self.subprocess = subprocess_module

    def is_available(self, tool: str) -> bool:
        return shutil.which(tool) is not None

    def run(
        self,
        cmd: List[str],
        stream_output: bool = False,
        env: Optional[Dict[str, str]] = None,
        cwd: Optional[str] = None,
        timeout: Optional[float] = None,
        check: bool = True,
    ) -> subprocess.CompletedProcess:
        cmd_str = " ".join(cmd)
        self.logger.debug("Executing: %s", cmd_str)

        effective_timeout = timeout if timeout is not None else self.default_timeout
        process_env = self._build_env(env)

        if stream_output:
            result = self._run_streaming(cmd, cmd_str, process_env, cwd, effective_timeout)
        else:
            result = self._run_buffered(cmd, cmd_str, process_env, cwd, effective_timeout)

        if result.returncode == 0:
            return result

        output = self._combined_output(result)
        message = f"Command failed ({result.returncode}): {cmd_str}"
        if output and not stream_output:
            message = f"{message}\n{output}"

        if check:
            raise ExecutionError(
                message,
                command=cmd_str,
                exit_code=result.returncode,
                output=output,
            )

        self.logger.warning(message)
        return result

    def launch(
        self,
        cmd: List[str],
        env: Optional[Dict[str, str]] = None,
        cwd: Optional[str] = None,
        stream_output: bool = False,
    ) -> subprocess.Popen:
        """Starts a detached background process and returns its handle.

        The handle is not reclaimed by deploypipe: the process outlives the
        pipeline and must be stopped by the operator.
        """
        cmd_str = " ".join(cmd)
        self.logger.debug("Launching in background: %s", cmd_str)

        try:
            return self.subprocess.Popen(
                cmd,
                cwd=cwd,
                env=self._build_env(env),
                stdout=None if stream_output else self.subprocess.DEVNULL,
                stderr=None if stream_output else self.subprocess.DEVNULL,
                start_new_session=True,
            )
        except FileNotFoundError as exc:
            raise ExecutionError(
                f"Required command not found: {cmd[0]}. Please install it and try again.",
                command=cmd_str,
            ) from exc
        except OSError as exc:
            raise ExecutionError(f"Failed to launch command: {cmd_str}. {exc}", command=cmd_str) from exc

    def _run_buffered(self, cmd, cmd_str, env, cwd, timeout) -> subprocess.CompletedProcess:
        try:
            result = self.subprocess.run(
                cmd,
                text=True,
                capture_output=True,
                timeout=timeout,
                env=env,
                cwd=cwd,
            )
        except FileNotFoundError as exc:
            raise ExecutionError(
                f"Required command not found: {cmd[0]}. Please install it and try again.",
                command=cmd_str,
            ) from exc
        except self.subprocess.TimeoutExpired as exc:
            raise DeployTimeoutError(f"Command timed out after {timeout}s: {cmd_str}") from exc
        except OSError as exc:
            raise ExecutionError(f"Failed to execute command: {cmd_str}. {exc}", command=cmd_str) from exc

        if result.stdout:
            self.logger.debug("Command output: %s", result.stdout.strip())
        return result

    def _run_streaming(self, cmd, cmd_str, env, cwd, timeout) -> subprocess.CompletedProcess:
        last_lines: Deque[str] = deque(maxlen=self.TAIL_LINES)

        try:
            process = self.subprocess.Popen(
                cmd,
                stdout=self.subprocess.PIPE,
                stderr=self.subprocess.STDOUT,
                text=True,
                bufsize=1,
                env=env,
                cwd=cwd,
            )
        except FileNotFoundError as exc:
            raise ExecutionError(
                f"Required command not found: {cmd[0]}. Please install it and try again.",
                command=cmd_str,
            ) from exc
        except OSError as exc:
            raise ExecutionError(f"Failed to execute command: {cmd_str}. {exc}", command=cmd_str) from exc

        # output is pumped on a reader thread so the deadline holds for silent commands
        reader = threading.Thread(
            target=self._pump_output,
            args=(process.stdout, last_lines),
            daemon=True,
        )
        reader.start()

        try:
            process.wait(timeout=timeout or None)
        except self.subprocess.TimeoutExpired:
            self._stop(process)
            reader.join(timeout=self.READER_JOIN_SECONDS)
            raise DeployTimeoutError(f"Command timed out after {timeout}s: {cmd_str}")

        reader.join()
        return self.subprocess.CompletedProcess(
            cmd,
            process.returncode,
            stdout="\n".join(last_lines),
            stderr="",
        )

    def _pump_output(self, stream, last_lines: Deque[str]):
        if stream is None:
            return
        with stream:
            for line in stream:
                cleaned = line.rstrip()
                if cleaned:
                    last_lines.append(cleaned)
                    self.logger.debug(cleaned)
                    self.console.print(cleaned, style="dim", markup=False, highlight=False)

    def _stop(self, process):
        process.terminate()
        try:
            process.wait(timeout=self.TERMINATE_GRACE_SECONDS)
        except self.subprocess.TimeoutExpired:
            process.kill()
            process.wait()

    @staticmethod
    def _build_env(extra: Optional[Dict[str, str]]) -> Optional[Dict[str, str]]:
        if not extra:
            return None
        merged = os.environ.copy()
        merged.update(extra)
        return merged

    @staticmethod
    def _combined_output(result: subprocess.CompletedProcess) -> str:
        parts = [(result.stdout or "").strip(), (result.stderr or "").strip()]
        return "\n".join(part for part in parts if part)
