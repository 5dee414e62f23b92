"""Literal command-line splitting for callers that only hold a flat string."""

from typing import List, Tuple

from hpk.exceptions import InvalidCommand


def tokenize(command_line: str) -> Tuple[str, List[str]]:
    """
    Split a command line on single spaces.

    This is not a shell parser: quotes, escapes and operators are passed
    through as literal text, and repeated or trailing spaces yield
    empty-string arguments.

    Args:
        command_line: Space-delimited command

    Returns:
        Tuple of (program, arguments)

    Raises:
        InvalidCommand: If no program name is present
    """
    parts = command_line.split(" ")
    # A leading space leaves no program name. Reject it here rather than
    # letting the OS fail to exec an empty path.
    if not parts or not parts[0]:
        raise InvalidCommand(command_line)
    return parts[0], parts[1:]
