"""compindex: semantic index over source-code components."""

__version__ = "0.1.0"
