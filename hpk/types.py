"""
Data types for process execution.

Defines the invocation description handed to the OS and the result record
produced when a process exits or fails to start.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Invocation:
    """
    Fully specified description of one external program launch.

    Attributes:
        program: Program name or path (resolved through PATH when bare)
        arguments: Arguments passed verbatim, in caller order
        directory: Working directory (None inherits the caller's cwd)
        environment: Ordered "KEY=VALUE" entries; later entries win
    """
    program: str
    arguments: Tuple[str, ...] = ()
    directory: Optional[str] = None
    environment: Tuple[str, ...] = field(default=(), repr=False)

    @property
    def argv(self) -> List[str]:
        return [self.program, *self.arguments]

    def env_mapping(self) -> Dict[str, str]:
        """Fold the ordered environment entries into a mapping, last entry wins."""
        env: Dict[str, str] = {}
        for entry in self.environment:
            key, _, value = entry.partition("=")
            env[key] = value
        return env


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of a single invocation."""
    output: bytes
    success: bool
    returncode: Optional[int] = None  # None when the process never started

    @property
    def text(self) -> str:
        return self.output.decode("utf-8", errors="replace")

    def to_state_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serialisable report."""
        result: Dict[str, Any] = {
            "success": self.success,
            "output": self.text,
        }
        if self.returncode is not None:
            result["exit_code"] = self.returncode
        return result
