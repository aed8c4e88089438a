"""Command-line client for the CodeMaker source processing service."""

__version__ = "1.1.0"
