"""CLI command handlers."""

from .run import exec_string_command, run_command

__all__ = ['run_command', 'exec_string_command']
