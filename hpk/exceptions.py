"""Process execution and configuration exceptions."""

from typing import TYPE_CHECKING, List, Optional
from dataclasses import dataclass

from hpk.types import ExecutionResult

if TYPE_CHECKING:
    from hpk.process.handle import ProcessHandle


class ProcessError(Exception):
    """Base class for process execution failures.

    Every failure carries the ExecutionResult captured up to the point of
    failure, so callers can still inspect what the process printed.
    """

    def __init__(self, message: str, result: Optional[ExecutionResult] = None):
        self.result = result or ExecutionResult(output=b"", success=False)
        super().__init__(message)

    @property
    def output(self) -> bytes:
        return self.result.output


class InvalidCommand(ProcessError):
    """Raised when a command line or program name is unusable.

    The OS is never asked to start anything in this case.
    """

    def __init__(self, command: str):
        self.command = command
        super().__init__(f"invalid command to run '{command}'")


class StartFailure(ProcessError):
    """Raised when the OS refuses to create the process.

    The underlying OSError is available as ``__cause__``. For asynchronous
    launches ``handle`` is the handle that never reached the running state.
    """

    def __init__(
        self,
        error: BaseException,
        result: Optional[ExecutionResult] = None,
        handle: Optional["ProcessHandle"] = None,
    ):
        self.handle = handle
        super().__init__(f"could not start process: {error}", result)


class ExecutionFailure(ProcessError):
    """Raised when a started process exits non-zero or is killed by a signal.

    When ``embed_output`` is set the captured output is appended to the
    message so that logging the exception alone shows what the process printed.
    """

    def __init__(self, error: BaseException, result: ExecutionResult, embed_output: bool = True):
        message = f"process error: {error}"
        if embed_output:
            message += f"\noutput: {result.text}"
        super().__init__(message, result)

    @property
    def returncode(self) -> Optional[int]:
        return self.result.returncode


@dataclass
class ValidationError:
    """Single validation error."""
    message: str
    path: str = ""
    exit_code: int = 2


class ConfigValidationError(Exception):
    """Raised when configuration validation fails.

    This exception is raised by the loader when validation errors occur,
    allowing the CLI to catch it and map to appropriate exit codes.
    """

    def __init__(self, errors: List[ValidationError]):
        self.errors = errors
        self.exit_code = 2

        messages = []
        for error in errors:
            if error.path:
                messages.append(f"Validation error at '{error.path}': {error.message}")
            else:
                messages.append(f"Validation error: {error.message}")

        super().__init__("\n".join(messages))
