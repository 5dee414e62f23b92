"""
Command launcher for running external programs.

Builds invocations from a program, its arguments, an optional working
directory and the launcher's environment overlay, then runs them either to
completion (blocking) or returns a caller-owned ProcessHandle (async).

The child's stdout and stderr share a single pipe so the captured output
keeps the order in which the process emitted it. Nothing is interpreted:
arguments are passed without a shell, and exit codes only decide between
success and ExecutionFailure.
"""

import logging
import subprocess
from typing import IO, Iterable, Mapping, Optional, Union

from hpk.exceptions import ExecutionFailure, InvalidCommand, StartFailure
from hpk.types import ExecutionResult, Invocation
from .environment import EnvironmentOverlay, coerce_overlay
from .handle import ProcessHandle
from .multiplexer import DEFAULT_CHUNK_SIZE, OutputMultiplexer, pump
from .tokenizer import tokenize


logger = logging.getLogger(__name__)


class CommandLauncher:
    """
    Launches external programs and captures their combined output.

    The environment overlay is fixed at construction and applied to every
    invocation, appended after the inherited OS environment.
    """

    def __init__(
        self,
        overlay: Union[None, EnvironmentOverlay, Mapping[str, str], Iterable[str]] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ):
        """
        Initialize command launcher.

        Args:
            overlay: Environment entries applied to every invocation
            chunk_size: Maximum bytes copied from the output pipe per read
        """
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.overlay = coerce_overlay(overlay)
        self.chunk_size = chunk_size

    def build_invocation(self, directory: Optional[str], program: str, arguments: Iterable[str]) -> Invocation:
        """
        Describe a launch without starting it.

        Raises:
            InvalidCommand: If program is empty
        """
        if not program:
            raise InvalidCommand(program)
        return Invocation(
            program=program,
            arguments=tuple(arguments),
            directory=directory or None,
            environment=tuple(self.overlay.compose()),
        )

    def _spawn(self, invocation: Invocation) -> subprocess.Popen:
        logger.debug(f"Starting process: {invocation.argv} (cwd={invocation.directory or '.'})")
        try:
            return subprocess.Popen(
                invocation.argv,
                cwd=invocation.directory,
                env=invocation.env_mapping(),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
            )
        except (OSError, ValueError) as e:
            logger.debug(f"Could not start {invocation.program!r}: {e}")
            raise StartFailure(e, ExecutionResult(output=b"", success=False)) from e

    def _run(self, invocation: Invocation, multiplexer: OutputMultiplexer, embed_output: bool) -> bytes:
        process = self._spawn(invocation)
        assert process.stdout is not None

        copy_error: Optional[Exception] = None
        try:
            pump(process.stdout, multiplexer, self.chunk_size)
        except Exception as e:
            # Sink failure: stop reading so further writes by the child fail
            copy_error = e
        except BaseException:
            # Interrupted by the caller, e.g. KeyboardInterrupt
            process.kill()
            raise
        finally:
            process.stdout.close()
            returncode = process.wait()

        output = multiplexer.getvalue()

        if copy_error is not None:
            result = ExecutionResult(output=output, success=False, returncode=returncode)
            logger.debug(f"Output copy for {invocation.program!r} failed: {copy_error}")
            raise ExecutionFailure(copy_error, result, embed_output=embed_output) from copy_error

        if returncode != 0:
            error = subprocess.CalledProcessError(returncode, invocation.argv, output=output)
            result = ExecutionResult(output=output, success=False, returncode=returncode)
            logger.debug(f"Process {invocation.program!r} failed with exit code {returncode}")
            raise ExecutionFailure(error, result, embed_output=embed_output) from error

        logger.debug(f"Process {invocation.program!r} exited cleanly, {len(output)} bytes captured")
        return output

    def execute(self, program: str, *arguments: str) -> bytes:
        """Run a program in the current directory and return its output."""
        return self.execute_in_directory("", program, *arguments)

    def execute_in_directory(self, directory: Optional[str], program: str, *arguments: str) -> bytes:
        """
        Run a program to completion and return its combined output.

        Args:
            directory: Working directory ("" or None inherits the current one)
            program: Program name or path
            arguments: Arguments passed verbatim

        Returns:
            Captured stdout and stderr bytes

        Raises:
            InvalidCommand: If program is empty
            StartFailure: If the process could not be created
            ExecutionFailure: If the process exited non-zero or was signalled;
                the message includes the captured output
        """
        invocation = self.build_invocation(directory, program, arguments)
        return self._run(invocation, OutputMultiplexer(), embed_output=True)

    def logged_execute_in_directory(
        self,
        directory: Optional[str],
        sink: IO[bytes],
        program: str,
        *arguments: str,
    ) -> bytes:
        """
        Run a program to completion while streaming its output to ``sink``.

        The sink receives every chunk as soon as it is read, and the returned
        bytes equal everything written to the sink. ExecutionFailure messages
        do not repeat the output since the sink has already seen it.
        """
        invocation = self.build_invocation(directory, program, arguments)
        return self._run(invocation, OutputMultiplexer.with_sink(sink), embed_output=False)

    def execute_async(self, program: str, *arguments: str) -> ProcessHandle:
        """Start a program in the current directory without waiting for it."""
        return self.execute_async_in_directory("", program, *arguments)

    def execute_async_in_directory(self, directory: Optional[str], program: str, *arguments: str) -> ProcessHandle:
        """
        Start a program and return as soon as it is running.

        The caller owns the returned handle and must eventually wait on or
        terminate it.

        Raises:
            InvalidCommand: If program is empty
            StartFailure: If the process could not be created; ``handle`` on the
                exception is the never-started handle
        """
        invocation = self.build_invocation(directory, program, arguments)
        handle = ProcessHandle(invocation)
        try:
            process = self._spawn(invocation)
        except StartFailure as e:
            e.handle = handle
            raise
        handle._attach(process, self.chunk_size)
        logger.debug(f"Started {invocation.program!r} asynchronously as pid {process.pid}")
        return handle

    def execute_string(self, command_line: str) -> bytes:
        """
        Split ``command_line`` on single spaces and run it.

        Raises:
            InvalidCommand: If the line holds no program name
        """
        program, arguments = tokenize(command_line)
        return self.execute(program, *arguments)
