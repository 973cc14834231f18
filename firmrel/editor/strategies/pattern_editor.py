"""
Regex-driven editing of in-memory line sequences
"""

import re
from typing import List, Optional, Pattern, Union

from ..interfaces import Replacement

PatternLike = Union[str, Pattern]

NOT_FOUND = -1


class PatternEditor:
    """Stateless search, replace and insert operations over a list of lines.

    Lines are matched with ``pattern.search``, so patterns that must cover
    the whole line need their own anchors. "Not found" is reported as a
    False/None/NOT_FOUND result and left for the caller to handle.
    """

    @staticmethod
    def compile(pattern: PatternLike) -> Pattern:
        if isinstance(pattern, str):
            return re.compile(pattern)
        return pattern

    @staticmethod
    def search_last_index(lines: List[str], pattern: PatternLike) -> int:
        """Index of the last matching line, or NOT_FOUND"""
        regex = PatternEditor.compile(pattern)
        for i in range(len(lines) - 1, -1, -1):
            if regex.search(lines[i]):
                return i
        return NOT_FOUND

    @staticmethod
    def match_last(lines: List[str], pattern: PatternLike) -> Optional[re.Match]:
        """Match object for the last matching line, or None"""
        regex = PatternEditor.compile(pattern)
        for i in range(len(lines) - 1, -1, -1):
            match = regex.search(lines[i])
            if match:
                return match
        return None

    @staticmethod
    def replace_last(lines: List[str], pattern: PatternLike, replacement: Replacement) -> bool:
        """Replace the match within the last matching line"""
        regex = PatternEditor.compile(pattern)
        index = PatternEditor.search_last_index(lines, regex)
        if index == NOT_FOUND:
            return False
        lines[index] = regex.sub(PatternEditor._substitute(replacement), lines[index], count=1)
        return True

    @staticmethod
    def replace_all(lines: List[str], pattern: PatternLike, replacement: Replacement) -> bool:
        """Replace every match on every matching line"""
        regex = PatternEditor.compile(pattern)
        substitute = PatternEditor._substitute(replacement)
        found = False
        for i, line in enumerate(lines):
            if regex.search(line):
                lines[i] = regex.sub(substitute, line)
                found = True
        return found

    @staticmethod
    def insert_after_last(lines: List[str], pattern: PatternLike, new_line: str) -> bool:
        """Insert a new line right after the last matching line"""
        index = PatternEditor.search_last_index(lines, pattern)
        if index == NOT_FOUND:
            return False
        lines.insert(index + 1, new_line)
        return True

    @staticmethod
    def _substitute(replacement: Replacement):
        # Literal strings are inserted verbatim; callbacks get the captured groups
        if isinstance(replacement, str):
            return lambda match: replacement
        return lambda match: replacement(match.groups(default=''))
