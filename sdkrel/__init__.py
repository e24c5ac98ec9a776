"""Release orchestration for multi-module SDK publications."""

__version__ = "0.1.0"
