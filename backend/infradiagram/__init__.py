"""Infrastructure diagram engine: configuration blocks to graph, edits, and back to code."""

__version__ = "0.1.0"
