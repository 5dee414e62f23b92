"""
Environment overlay applied to every launched process.

The overlay is an ordered list of "KEY=VALUE" entries appended after the
inherited OS environment. Because entries are appended, an overlay key that
also exists in the inherited environment takes precedence, and among overlay
entries the last one for a key wins.
"""

import os
from typing import Iterable, List, Mapping, Optional, Tuple, Union


class EnvironmentOverlay:
    """Immutable ordered set of environment entries for child processes."""

    def __init__(self, entries: Iterable[str] = ()):
        """
        Initialize overlay.

        Args:
            entries: "KEY=VALUE" strings, applied in order

        Raises:
            ValueError: If an entry has no '=' or an empty key
        """
        validated = []
        for entry in entries:
            if not isinstance(entry, str) or '=' not in entry:
                raise ValueError(f"Invalid environment entry: {entry!r}. Expected KEY=VALUE")
            if entry.startswith('='):
                raise ValueError(f"Invalid environment entry: {entry!r}. Key cannot be empty")
            validated.append(entry)
        self._entries: Tuple[str, ...] = tuple(validated)

    @classmethod
    def from_mapping(cls, values: Mapping[str, str]) -> "EnvironmentOverlay":
        """Build an overlay from a mapping, preserving its iteration order."""
        return cls(f"{key}={value}" for key, value in values.items())

    @property
    def entries(self) -> Tuple[str, ...]:
        return self._entries

    def extend(self, entries: Iterable[str]) -> "EnvironmentOverlay":
        """Return a new overlay with ``entries`` appended after this one's."""
        return EnvironmentOverlay(self._entries + tuple(entries))

    def compose(self, base: Optional[Mapping[str, str]] = None) -> List[str]:
        """
        Build the effective environment entry list for a child process.

        Args:
            base: Inherited environment (default: os.environ)

        Returns:
            Inherited entries followed by overlay entries
        """
        inherited = os.environ if base is None else base
        return [f"{key}={value}" for key, value in inherited.items()] + list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EnvironmentOverlay):
            return NotImplemented
        return self._entries == other._entries

    def __hash__(self) -> int:
        return hash(self._entries)

    def __repr__(self) -> str:
        # Values may hold credentials, only show keys
        keys = [entry.partition('=')[0] for entry in self._entries]
        return f"EnvironmentOverlay(keys={keys!r})"


def coerce_overlay(value: Union[None, "EnvironmentOverlay", Mapping[str, str], Iterable[str]]) -> EnvironmentOverlay:
    """Accept an overlay, a mapping, or a sequence of entries."""
    if value is None:
        return EnvironmentOverlay()
    if isinstance(value, EnvironmentOverlay):
        return value
    if isinstance(value, Mapping):
        return EnvironmentOverlay.from_mapping(value)
    if isinstance(value, str):
        raise ValueError("Environment overlay must be a sequence of KEY=VALUE entries, not a single string")
    return EnvironmentOverlay(value)
