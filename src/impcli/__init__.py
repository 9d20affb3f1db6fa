"""Command-line tools for Electric Imp projects."""

__version__ = "0.1.0"
