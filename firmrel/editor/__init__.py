"""
Firmrel Editor Module

Line-oriented, regex-driven file editing with transactional multi-file
patching: every file touched by a plan is backed up first and restored if
any edit fails.
"""

from .service import BackupVault, TransactionalPatcher
from .interfaces import (
    EditOperationType, EditRule, FileEdit, EditPlan, Replaced, UNCHANGED,
    BackupInfo, Snapshot, PatchResult, RollbackResult, BranchController, TransactionState
)
from .strategies import LineStore, PatternEditor

__all__ = [
    "BackupVault",
    "TransactionalPatcher",
    "EditOperationType",
    "EditRule",
    "FileEdit",
    "EditPlan",
    "Replaced",
    "UNCHANGED",
    "BackupInfo",
    "Snapshot",
    "PatchResult",
    "RollbackResult",
    "BranchController",
    "TransactionState",
    "LineStore",
    "PatternEditor",
]
