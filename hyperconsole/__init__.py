"""Taskfile model, loader and include-graph merger, with console key bindings."""

__version__ = "0.1.0"