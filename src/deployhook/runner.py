"""
Script Runner
=============

Runs a repository's deploy script as a child process, echoing its merged
stdout/stderr as it arrives and logging the captured output on exit.

Failures (spawn errors, nonzero exit, timeout) are reported through
``ScriptResult`` and never raised.
"""

import logging
import os
import signal
import subprocess
import sys
import threading
import time
from dataclasses import dataclass
from typing import Optional, TextIO

logger = logging.getLogger(__name__)


@dataclass
class ScriptResult:
    """Outcome of one script invocation."""

    script: str
    output: str = ""
    exit_code: int = 1
    returncode: Optional[int] = None
    timed_out: bool = False
    error: Optional[str] = None
    duration: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def describe(self) -> str:
        """Short human-readable status, used as the callback description."""
        if self.succeeded:
            return ""
        if self.error:
            return f"{self.script} could not be started: {self.error}"
        if self.timed_out:
            return f"{self.script} timed out after {self.duration:.0f}s"
        return f"{self.script} exited with status {self.returncode}"


def kill_process_group(proc: subprocess.Popen) -> None:
    """Kill the child and every process it started."""
    try:
        if os.name == "posix":
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except ProcessLookupError:
        pass


class Watchdog:
    """
    Kills a child process group once ``timeout`` seconds have passed.

    A run marked finished is never killed or reported as timed out, even if
    the timer fires in the same instant.
    """

    def __init__(self, proc: subprocess.Popen, timeout: float):
        self.proc = proc
        self.timed_out = False
        self._finished = False
        self._lock = threading.Lock()
        self._timer = threading.Timer(timeout, self.expire)
        self._timer.daemon = True

    def start(self) -> None:
        self._timer.start()

    def expire(self) -> None:
        with self._lock:
            if self._finished:
                return
            self.timed_out = True
        logger.warning(f"Killing process group of pid {self.proc.pid} after timeout")
        kill_process_group(self.proc)

    def finish(self) -> None:
        with self._lock:
            self._finished = True
        self._timer.cancel()


class ScriptRunner:
    """
    Executes deploy scripts.

    Args:
        timeout: Seconds before the child is killed. ``None`` waits forever.
        echo: Stream that receives the child's output line by line.
    """

    def __init__(self, timeout: Optional[float] = None, echo: Optional[TextIO] = None):
        self.timeout = timeout
        self.echo = echo

    def _echo(self, line: str) -> None:
        stream = self.echo or sys.stdout
        try:
            stream.write(line)
            stream.flush()
        except (OSError, ValueError) as e:
            logger.debug(f"Cannot echo script output: {e}")

    def run(self, script_path: str) -> ScriptResult:
        """Run ``script_path`` with no arguments and wait for it to finish."""
        result = ScriptResult(script=script_path)
        started = time.monotonic()

        try:
            proc = subprocess.Popen(
                [script_path],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                errors="replace",
                start_new_session=(os.name == "posix"),
            )
        except (OSError, ValueError) as e:
            result.error = str(e)
            result.duration = time.monotonic() - started
            logger.error(f"Cannot start {script_path}: {e}")
            return result

        watchdog = None
        if self.timeout is not None:
            watchdog = Watchdog(proc, self.timeout)
            watchdog.start()

        chunks = []
        try:
            with proc.stdout:
                for line in proc.stdout:
                    chunks.append(line)
                    self._echo(line)
            result.returncode = proc.wait()
        finally:
            if watchdog is not None:
                watchdog.finish()

        result.output = "".join(chunks)
        result.timed_out = watchdog is not None and watchdog.timed_out
        result.exit_code = 0 if result.returncode == 0 and not result.timed_out else 1
        result.duration = time.monotonic() - started

        logger.info(f"OUTPUT {script_path}: {result.output}")
        if result.succeeded:
            logger.info(f"{script_path} finished in {result.duration:.1f}s")
        else:
            logger.warning(f"{script_path} failed: {result.describe()}")

        return result
