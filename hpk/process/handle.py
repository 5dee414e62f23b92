"""
Caller-owned handle for an asynchronously launched process.

The launcher does not track handles after returning them. The only background
activity is a daemon thread copying the process output pipe into the handle's
buffer so the process never blocks on a full pipe. Reaping the process is up
to the caller through wait() or result().
"""

import logging
import subprocess
import threading
import time
from typing import Optional

from hpk.types import ExecutionResult, Invocation
from .multiplexer import DEFAULT_CHUNK_SIZE, OutputMultiplexer, pump


logger = logging.getLogger(__name__)


class ProcessHandle:
    """Reference to a running external process."""

    def __init__(self, invocation: Invocation, multiplexer: Optional[OutputMultiplexer] = None):
        self.invocation = invocation
        self._multiplexer = multiplexer or OutputMultiplexer()
        self._process: Optional[subprocess.Popen] = None
        self._reader: Optional[threading.Thread] = None
        self._copy_error: Optional[BaseException] = None

    def _attach(self, process: subprocess.Popen, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        """Bind a started process and begin copying its output."""
        self._process = process
        self._reader = threading.Thread(
            target=self._copy_output,
            args=(chunk_size,),
            name=f"hpk-output-{process.pid}",
            daemon=True,
        )
        self._reader.start()

    def _copy_output(self, chunk_size: int) -> None:
        process = self._process
        assert process is not None and process.stdout is not None
        try:
            pump(process.stdout, self._multiplexer, chunk_size)
        except (OSError, ValueError) as e:
            # Surfaced to the caller through result()
            self._copy_error = e
            logger.debug(f"Output copy for pid {process.pid} stopped: {e}")
        finally:
            process.stdout.close()

    def _require_process(self) -> subprocess.Popen:
        if self._process is None:
            raise RuntimeError(f"Process was never started: {self.invocation.argv}")
        return self._process

    @property
    def started(self) -> bool:
        return self._process is not None

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process is not None else None

    @property
    def returncode(self) -> Optional[int]:
        return self._process.returncode if self._process is not None else None

    @property
    def output(self) -> bytes:
        """Output captured so far; complete once wait() has returned."""
        return self._multiplexer.getvalue()

    def poll(self) -> Optional[int]:
        return self._require_process().poll()

    def wait(self, timeout: Optional[float] = None) -> int:
        """
        Wait for the process to exit and for its output to be drained.

        Args:
            timeout: Seconds to wait (None waits indefinitely)

        Returns:
            Process return code (negative signal number if killed)

        Raises:
            subprocess.TimeoutExpired: If the process is still running, or its
                output pipe is still held open by a descendant, after timeout
        """
        process = self._require_process()
        deadline = None if timeout is None else time.monotonic() + timeout
        returncode = process.wait(timeout=timeout)
        if self._reader is not None:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            self._reader.join(remaining)
            if self._reader.is_alive():
                raise subprocess.TimeoutExpired(process.args, timeout)
        return returncode

    def result(self) -> ExecutionResult:
        """Wait for exit and return the complete ExecutionResult."""
        returncode = self.wait()
        return ExecutionResult(
            output=self.output,
            success=returncode == 0 and self._copy_error is None,
            returncode=returncode,
        )

    def send_signal(self, sig: int) -> None:
        self._require_process().send_signal(sig)

    def terminate(self) -> None:
        self._require_process().terminate()

    def kill(self) -> None:
        self._require_process().kill()

    def __repr__(self) -> str:
        state = "running" if self.started and self.returncode is None else (
            f"exited({self.returncode})" if self.started else "not started"
        )
        return f"ProcessHandle(argv={self.invocation.argv!r}, pid={self.pid}, {state})"
