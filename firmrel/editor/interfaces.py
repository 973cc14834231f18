"""
Editor interfaces and data models
"""

import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Pattern, Sequence, Tuple, Union

# Replacement callbacks receive the captured groups of the match
GroupCallback = Callable[[Sequence[str]], str]
Replacement = Union[str, GroupCallback]
PatternLike = Union[str, Pattern]


class EditOperationType(Enum):
    """Types of edit operations"""
    REPLACE_LAST = "replace_last"
    REPLACE_ALL = "replace_all"
    INSERT_AFTER_LAST = "insert_after_last"


class TransactionState(Enum):
    """States of a patch transaction"""
    IDLE = "idle"
    BRANCH_CREATED = "branch_created"
    PATCHING = "patching"
    COMMITTED = "committed"
    ROLLING_BACK = "rolling_back"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class Replaced:
    """Edit outcome carrying a replacement line sequence"""
    lines: List[str]


class _Unchanged:
    """Edit outcome meaning the (possibly mutated) input should be saved"""

    def __repr__(self) -> str:
        return "UNCHANGED"


UNCHANGED = _Unchanged()

EditOutcome = Union[Replaced, _Unchanged]


@dataclass(frozen=True)
class EditRule:
    """A single line-oriented edit driven by a regular expression"""
    operation: EditOperationType
    pattern: Pattern
    replacement: Replacement

    def __post_init__(self):
        """Compile string patterns and validate the rule"""
        if isinstance(self.pattern, str):
            try:
                object.__setattr__(self, "pattern", re.compile(self.pattern))
            except re.error as e:
                raise ValueError(f"Invalid regex pattern: {e}")
        if self.operation == EditOperationType.INSERT_AFTER_LAST:
            if not isinstance(self.replacement, str):
                raise ValueError("Insert operation requires a literal line")
        elif not isinstance(self.replacement, str) and not callable(self.replacement):
            raise ValueError("Replacement must be a string or a callable")

    @classmethod
    def replace_last(cls, pattern: PatternLike, replacement: Replacement) -> 'EditRule':
        return cls(EditOperationType.REPLACE_LAST, pattern, replacement)

    @classmethod
    def replace_all(cls, pattern: PatternLike, replacement: Replacement) -> 'EditRule':
        return cls(EditOperationType.REPLACE_ALL, pattern, replacement)

    @classmethod
    def insert_after_last(cls, pattern: PatternLike, new_line: str) -> 'EditRule':
        return cls(EditOperationType.INSERT_AFTER_LAST, pattern, new_line)

    def apply(self, lines: List[str]) -> bool:
        """Apply the rule to the lines in place and report whether it matched"""
        from .strategies.pattern_editor import PatternEditor

        if self.operation == EditOperationType.REPLACE_LAST:
            return PatternEditor.replace_last(lines, self.pattern, self.replacement)
        if self.operation == EditOperationType.REPLACE_ALL:
            return PatternEditor.replace_all(lines, self.pattern, self.replacement)
        return PatternEditor.insert_after_last(lines, self.pattern, self.replacement)


@dataclass(frozen=True)
class FileEdit:
    """Edit rules for one file, relative to the repository root"""
    path: str
    rules: Tuple[EditRule, ...]

    def __post_init__(self):
        if not self.path:
            raise ValueError("path cannot be empty")
        if not self.rules:
            raise ValueError(f"No edit rules given for {self.path}")
        object.__setattr__(self, "rules", tuple(self.rules))


@dataclass
class EditPlan:
    """Ordered list of file edits describing one logical change"""
    name: str
    files: List[FileEdit] = field(default_factory=list)

    def add(self, path: str, *rules: EditRule) -> 'EditPlan':
        self.files.append(FileEdit(path, rules))
        return self

    def __iter__(self):
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)


@dataclass
class BackupInfo:
    """Information about a backup file"""
    backup_path: str
    original_path: str
    created_at: float  # timestamp
    file_size: int
    checksum: str


@dataclass
class Snapshot:
    """Backups captured during one transaction, keyed by original path"""
    transaction_root: str
    repo_root: str
    entries: Dict[str, BackupInfo] = field(default_factory=dict)

    def record(self, info: BackupInfo) -> None:
        if info.original_path in self.entries:
            raise ValueError(f"File already captured in this transaction: {info.original_path}")
        self.entries[info.original_path] = info

    def __contains__(self, path: str) -> bool:
        return path in self.entries

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class PatchResult:
    """Result of a committed patch transaction"""
    plan_name: str
    transaction_root: str
    files_changed: List[str] = field(default_factory=list)
    diffs: Dict[str, str] = field(default_factory=dict)
    state: TransactionState = TransactionState.COMMITTED
    execution_time_ms: float = 0.0


@dataclass
class RollbackResult:
    """Result of a rollback; errors are diagnostics, never raised"""
    transaction_root: str
    restored_files: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    completed_at: float = field(default_factory=time.time)

    @property
    def success(self) -> bool:
        return not self.errors


class BranchController(ABC):
    """Branch side effects wrapped around a patch transaction"""

    @abstractmethod
    async def begin(self) -> None:
        """Create and check out the branch the transaction is applied on"""
        pass

    @abstractmethod
    async def rollback(self) -> List[str]:
        """Return to the original branch; return a list of suppressed errors"""
        pass


def describe_rule(rule: EditRule) -> str:
    """Short human-readable description of a rule for log messages"""
    return f"{rule.operation.value} /{rule.pattern.pattern}/"

