"""
Process execution module.
Handles process launching, output capture, and result reporting.
"""

from .environment import EnvironmentOverlay
from .handle import ProcessHandle
from .launcher import CommandLauncher
from .multiplexer import OutputMultiplexer, pump
from .tokenizer import tokenize

__all__ = [
    "CommandLauncher",
    "EnvironmentOverlay",
    "OutputMultiplexer",
    "ProcessHandle",
    "pump",
    "tokenize",
]
