"""Shared fixtures for process execution tests."""

import sys
import textwrap
from pathlib import Path
from typing import Callable, List

import pytest

from hpk.process import CommandLauncher


@pytest.fixture
def launcher():
    """Launcher with an empty environment overlay."""
    return CommandLauncher()


@pytest.fixture
def python_argv() -> Callable[[str], List[str]]:
    """Build an argv that runs a Python snippet in a child interpreter."""
    def build(code: str) -> List[str]:
        return [sys.executable, "-c", textwrap.dedent(code)]
    return build


@pytest.fixture
def python_script(tmp_path) -> Callable[[str, str], Path]:
    """Write a Python script into the temp directory and return its path."""
    def write(code: str, name: str = "child.py") -> Path:
        script = tmp_path / name
        script.write_text(textwrap.dedent(code))
        return script
    return write
