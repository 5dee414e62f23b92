"""Process execution core for the HPK provider agent."""

__version__ = "0.1.0"
