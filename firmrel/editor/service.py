"""
Transactional file patcher and the backup vault it rolls back from
"""

import hashlib
import logging
import os
import shutil
import tempfile
import time
from pathlib import Path
from typing import Dict, List, Optional, Union

from ..errors import FileAccessError, FormatMismatchError, InvalidPathError
from .interfaces import (
    BackupInfo, BranchController, EditPlan, FileEdit, PatchResult, RollbackResult,
    Snapshot, TransactionState, UNCHANGED, describe_rule
)
from .strategies import LineStore

PathLike = Union[str, Path]


class BackupVault:
    """Copies files into a scratch directory before they are mutated.

    Every transaction gets its own directory below a scratch root. The root
    is either injected or created lazily on first use and then reused for
    the lifetime of the vault. Neither is removed automatically, so backups
    stay available for manual recovery.
    """

    def __init__(self, root_dir: Optional[PathLike] = None):
        self.logger = logging.getLogger(__name__)
        self._root_dir = Path(root_dir) if root_dir else None

    @property
    def root_dir(self) -> Path:
        if self._root_dir is None:
            self._root_dir = Path(tempfile.mkdtemp(prefix="firmrel-"))
            self.logger.debug(f"Created backup root: {self._root_dir}")
        else:
            self._root_dir.mkdir(parents=True, exist_ok=True)
        return self._root_dir

    def new_transaction_root(self) -> Path:
        """Allocate a fresh directory for one transaction's backups"""
        return Path(tempfile.mkdtemp(prefix="txn-", dir=self.root_dir))

    async def snapshot(self, source: PathLike, transaction_root: PathLike,
                       repo_root: PathLike) -> BackupInfo:
        """Copy a file under the repository root into the transaction root"""
        source_path = Path(os.path.abspath(source)).resolve()
        root = Path(os.path.abspath(repo_root)).resolve()

        try:
            relative = source_path.relative_to(root)
        except ValueError:
            raise InvalidPathError(f"Path is outside of the repository: {source}")
        if not relative.parts:
            raise InvalidPathError(f"Cannot back up the repository root itself: {source}")

        if not source_path.exists():
            raise FileAccessError(f"File not found: {source}")

        backup_path = Path(transaction_root) / relative
        try:
            backup_path.parent.mkdir(parents=True, exist_ok=True)
            if source_path.is_dir():
                shutil.copytree(source_path, backup_path, dirs_exist_ok=True)
                file_size = 0
                checksum = ""
            else:
                shutil.copy2(source_path, backup_path)
                file_size = source_path.stat().st_size
                checksum = await self._calculate_checksum(source_path)
        except OSError as e:
            raise FileAccessError(f"Failed to create backup of {source}: {e}")

        self.logger.debug(f"Backed up {relative} to {backup_path}")
        return BackupInfo(
            backup_path=str(backup_path),
            original_path=str(source_path),
            created_at=time.time(),
            file_size=file_size,
            checksum=checksum
        )

    async def restore(self, transaction_root: PathLike, repo_root: PathLike,
                      snapshot: Optional[Snapshot] = None) -> RollbackResult:
        """Copy every backed up file back onto the repository.

        When the snapshot is given, each backup is checked against the
        checksum taken at snapshot time and a corrupted backup is not copied.
        Never raises: failures are collected in the result for the caller to
        log, so the error that triggered the rollback stays the one reported.
        """
        txn_root = Path(transaction_root)
        target_root = Path(repo_root)
        result = RollbackResult(transaction_root=str(txn_root))
        checksums = {}
        if snapshot is not None:
            checksums = {
                str(Path(info.backup_path).resolve()): info.checksum
                for info in snapshot.entries.values() if info.checksum
            }

        try:
            backups = sorted(p for p in txn_root.rglob('*') if not p.is_dir())
        except OSError as e:
            result.errors.append(f"Cannot list backups in {txn_root}: {e}")
            return result

        for backup in backups:
            relative = backup.relative_to(txn_root)
            target = target_root / relative
            try:
                expected = checksums.get(str(backup.resolve()))
                if expected and await self._calculate_checksum(backup) != expected:
                    result.errors.append(f"Backup of {relative} is corrupted (checksum mismatch)")
                    continue
                target.parent.mkdir(parents=True, exist_ok=True)
                if target.is_dir():
                    raise IsADirectoryError(f"Target is a directory: {target}")
                shutil.copy2(backup, target)
                result.restored_files.append(str(relative))
            except OSError as e:
                result.errors.append(f"Failed to restore {relative}: {e}")

        return result

    async def _calculate_checksum(self, file_path: Path) -> str:
        """Calculate MD5 checksum of a file"""
        hash_md5 = hashlib.md5()

        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(4096), b""):
                hash_md5.update(chunk)

        return hash_md5.hexdigest()


class TransactionalPatcher:
    """Applies an edit plan across several files, all or nothing"""

    def __init__(self, vault: Optional[BackupVault] = None,
                 line_store: Optional[LineStore] = None):
        self.logger = logging.getLogger(__name__)
        self.vault = vault or BackupVault()
        self.line_store = line_store or LineStore()
        self.state = TransactionState.IDLE
        self.snapshot: Optional[Snapshot] = None
        self.last_rollback: Optional[RollbackResult] = None

    async def apply(self, plan: EditPlan, repo_root: PathLike,
                    branch: Optional[BranchController] = None) -> PatchResult:
        """Run the plan; on any failure restore every file and the branch, then re-raise"""
        start_time = time.time()
        self.state = TransactionState.IDLE
        self.snapshot = None
        self.last_rollback = None

        # Nothing has been touched yet, so a failure here needs no rollback
        if branch is not None:
            await branch.begin()
        self.state = TransactionState.BRANCH_CREATED

        self.state = TransactionState.PATCHING
        self.logger.info(f"Applying {plan.name} ({len(plan)} file(s))")
        transaction_root = None

        try:
            transaction_root = self.vault.new_transaction_root()
            self.snapshot = Snapshot(str(transaction_root), str(repo_root))
            result = PatchResult(plan_name=plan.name, transaction_root=str(transaction_root))

            for file_edit in plan:
                diff = await self._patch_file(file_edit, Path(repo_root), transaction_root)
                result.files_changed.append(file_edit.path)
                result.diffs[file_edit.path] = diff
        except Exception as e:
            self.logger.debug(f"Patching failed: {e}")
            await self._rollback(transaction_root, repo_root, branch)
            raise

        self.state = TransactionState.COMMITTED
        result.state = self.state
        result.execution_time_ms = (time.time() - start_time) * 1000
        return result

    async def _patch_file(self, file_edit: FileEdit, repo_root: Path,
                          transaction_root: Path) -> str:
        self.logger.debug(f"Updating file: {file_edit.path}")
        file_path = repo_root / file_edit.path

        # Only the first snapshot of a file holds its pre-transaction content
        if str(file_path.resolve()) not in self.snapshot:
            info = await self.vault.snapshot(file_path, transaction_root, repo_root)
            self.snapshot.record(info)

        def apply_rules(lines: List[str]):
            # All rules run on the in-memory copy; the file is written once
            for rule in file_edit.rules:
                if not rule.apply(lines):
                    self.logger.debug(f"No match for {describe_rule(rule)} in {file_edit.path}")
                    raise FormatMismatchError(f"Unexpected file format: {file_edit.path}")
            return UNCHANGED

        return self.line_store.transform(file_path, apply_rules)

    async def _rollback(self, transaction_root: Optional[Path], repo_root: PathLike,
                        branch: Optional[BranchController]) -> RollbackResult:
        self.state = TransactionState.ROLLING_BACK
        self.logger.info("Rolling back source tree changes")

        if transaction_root is not None:
            rollback = await self.vault.restore(transaction_root, repo_root, self.snapshot)
        else:
            rollback = RollbackResult(transaction_root="")
        if branch is not None:
            try:
                rollback.errors.extend(await branch.rollback())
            except Exception as e:
                rollback.errors.append(f"Branch rollback failed: {e}")

        for error in rollback.errors:
            self.logger.warning(f"Rollback: {error}")
        if not rollback.success:
            self.logger.warning(f"Backups are kept in {transaction_root}")

        self.state = TransactionState.ROLLED_BACK
        self.last_rollback = rollback
        return rollback

    def snapshot_entries(self) -> Dict[str, BackupInfo]:
        """Backups captured by the current or last transaction"""
        return dict(self.snapshot.entries) if self.snapshot else {}
