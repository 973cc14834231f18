"""
Git Operations with GitPython

Branch handling and history queries used by the release commands:
- Release branch creation and rollback
- Repository discovery and firmware remote checks
- Tags, merge bases and merged pull requests
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from ...editor.interfaces import BranchController
from ...errors import ConflictError, ExternalToolError, ValidationError

MERGE_PULL_REQUEST = re.compile(r'^Merge pull request #(\d+) from (.*)$')


@dataclass
class BranchInfo:
    """Currently checked out branch"""
    current: Optional[str]
    detached: bool


class GitOperationsEngine:
    """Git operations on a single working tree"""

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.logger = logging.getLogger(__name__)
        path = str(path) if path else '.'
        try:
            self.repo = Repo(path, search_parent_directories=True)
        except (InvalidGitRepositoryError, NoSuchPathError):
            raise ValidationError(f"No Git repository found at: {Path(path).resolve()}")

    async def current_branch_info(self) -> BranchInfo:
        if self.repo.head.is_detached:
            return BranchInfo(current=None, detached=True)
        return BranchInfo(current=self.repo.active_branch.name, detached=False)

    async def local_branches(self) -> List[str]:
        return [head.name for head in self.repo.heads]

    async def checkout_new_branch(self, branch_name: str) -> None:
        """Create a branch at HEAD and check it out"""
        if branch_name in await self.local_branches():
            raise ConflictError(f"Branch '{branch_name}' already exists")
        try:
            new_branch = self.repo.create_head(branch_name)
            new_branch.checkout()
        except GitCommandError as e:
            raise ExternalToolError(f"Failed to create branch '{branch_name}': {e}")

    async def checkout(self, branch_name: str) -> None:
        try:
            self.repo.git.checkout(branch_name)
        except GitCommandError as e:
            raise ExternalToolError(f"Failed to check out '{branch_name}': {e}")

    async def delete_local_branch(self, branch_name: str) -> None:
        try:
            self.repo.delete_head(branch_name, force=True)
        except GitCommandError as e:
            raise ExternalToolError(f"Failed to delete branch '{branch_name}': {e}")

    async def repository_root_path(self) -> str:
        return str(Path(self.repo.working_tree_dir).resolve())

    async def remote_urls(self) -> List[str]:
        """Fetch and push URLs of all remotes"""
        urls = []
        for remote in self.repo.remotes:
            try:
                urls.extend(remote.urls)
                urls.append(self.repo.git.remote('get-url', '--push', remote.name))
            except GitCommandError as e:
                self.logger.debug(f"Cannot read URLs of remote '{remote.name}': {e}")
        return urls

    async def firmware_path(self, firmware_remotes: Iterable[str]) -> str:
        """Root path of the working tree, if it is a clone of the firmware repository"""
        known = set(firmware_remotes)
        urls = await self.remote_urls()
        if not any(url in known for url in urls):
            raise ValidationError("Not a firmware repository")
        return await self.repository_root_path()

    async def tags(self) -> List[str]:
        return [tag.name for tag in self.repo.tags]

    async def rev_parse(self, ref: str) -> str:
        try:
            return self.repo.git.rev_parse(ref).strip()
        except GitCommandError as e:
            raise ExternalToolError(f"Unknown revision '{ref}': {e}")

    async def merge_base(self, first: str, second: str) -> str:
        try:
            return self.repo.git.merge_base(first, second).strip()
        except GitCommandError as e:
            raise ExternalToolError(f"No common ancestor of {first[:8]} and {second[:8]}: {e}")

    async def merged_pull_requests(self, base: str, head: str = 'HEAD') -> List[int]:
        """Numbers of pull requests merged between base and head, newest first"""
        prs = []
        try:
            for commit in self.repo.iter_commits(f'{base}..{head}', merges=True):
                match = MERGE_PULL_REQUEST.match(commit.message.splitlines()[0] if commit.message else '')
                if match:
                    prs.append(int(match.group(1)))
        except GitCommandError as e:
            raise ExternalToolError(f"Failed to read history {base[:8]}..{head}: {e}")
        return prs


class ReleaseBranch(BranchController):
    """Creates a release branch and undoes it if the transaction fails"""

    def __init__(self, git: GitOperationsEngine, branch_name: str):
        self.logger = logging.getLogger(__name__)
        self.git = git
        self.branch_name = branch_name
        self.original_branch: Optional[str] = None

    async def begin(self) -> None:
        branch_info = await self.git.current_branch_info()
        if branch_info.detached:
            raise ConflictError("Current branch is detached")
        self.original_branch = branch_info.current
        self.logger.info(f"Checking out a new branch: {self.branch_name}")
        await self.git.checkout_new_branch(self.branch_name)

    async def rollback(self) -> List[str]:
        errors = []
        if self.original_branch is None:
            return errors
        try:
            await self.git.checkout(self.original_branch)
            await self.git.delete_local_branch(self.branch_name)
            self.logger.info(f"Deleted branch {self.branch_name}, back on {self.original_branch}")
        except Exception as e:
            errors.append(str(e))
        return errors
