"""Interactive staging of git changes by file, hunk, or line."""

__version__ = "0.1.0"
