"""
Editor strategies for line-oriented file editing
"""

from .line_store import LineStore
from .pattern_editor import PatternEditor, NOT_FOUND

__all__ = [
    "LineStore",
    "PatternEditor",
    "NOT_FOUND",
]
