"""
Line-oriented file access: load a file as a list of lines, save it back
"""

import difflib
import logging
import re
from pathlib import Path
from typing import Callable, List, Optional, Union

from ...errors import FileAccessError
from ..interfaces import EditOutcome, Replaced, UNCHANGED

PathLike = Union[str, Path]
EditFunction = Callable[[List[str]], Optional[EditOutcome]]

_NEWLINE = re.compile(r'\r?\n')

logger = logging.getLogger(__name__)


class LineStore:
    """Reads and writes text files as ordered sequences of lines"""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding

    def read_text(self, path: PathLike) -> str:
        try:
            with open(path, 'r', encoding=self.encoding, newline='') as f:
                return f.read()
        except FileNotFoundError:
            raise FileAccessError(f"File not found: {path}")
        except UnicodeDecodeError:
            raise FileAccessError(f"Cannot decode file with encoding {self.encoding}: {path}")
        except OSError as e:
            raise FileAccessError(f"Cannot read file {path}: {e}")

    def write_text(self, path: PathLike, data: str) -> None:
        try:
            with open(path, 'w', encoding=self.encoding, newline='') as f:
                f.write(data)
        except OSError as e:
            raise FileAccessError(f"Cannot write file {path}: {e}")

    def load(self, path: PathLike) -> List[str]:
        """Load a file as a list of lines, accepting both \\n and \\r\\n endings"""
        return _NEWLINE.split(self.read_text(path))

    def save(self, path: PathLike, lines: List[str]) -> None:
        """Join lines with \\n and overwrite the file"""
        self.write_text(path, '\n'.join(lines))

    def transform(self, path: PathLike, edit: EditFunction) -> str:
        """Load a file, run the edit function over its lines and save the result.

        The edit function may mutate the list in place and return UNCHANGED
        (or None), or return Replaced(new_lines). If it raises, the file is
        left untouched. Returns a unified diff of the change.
        """
        original = self.load(path)
        lines = list(original)

        outcome = edit(lines)
        if isinstance(outcome, Replaced):
            result = list(outcome.lines)
        elif outcome is None or outcome is UNCHANGED:
            result = lines
        else:
            raise TypeError(f"Edit function returned {type(outcome).__name__}, expected an edit outcome")

        self.save(path, result)
        diff = self._generate_diff(original, result, str(path))
        logger.debug(f"Updated {path}: {self._count_changed_lines(diff)} line(s) changed")
        return diff

    def _generate_diff(self, original: List[str], modified: List[str], name: str) -> str:
        """Generate unified diff between original and modified lines"""
        return '\n'.join(difflib.unified_diff(
            original,
            modified,
            fromfile=f"a/{name}",
            tofile=f"b/{name}",
            lineterm=''
        ))

    def _count_changed_lines(self, diff: str) -> int:
        if not diff:
            return 0

        changed_lines = 0
        for line in diff.split('\n'):
            if line.startswith('+') and not line.startswith('+++'):
                changed_lines += 1
            elif line.startswith('-') and not line.startswith('---'):
                changed_lines += 1
        return changed_lines
