"""
Release commands: start a release, generate the changelog, show the version
"""

import logging
from typing import Optional

import semver

from ..config import ReleaseConfig
from ..editor import BackupVault, PatchResult, TransactionalPatcher
from ..errors import ValidationError
from ..gitplugin import GitHubClient, GitOperationsEngine, ReleaseBranch
from .changelog import ChangelogGenerator
from .firmware import build_version_plan, read_firmware_version
from .version import parse_version


class ReleaseCommands:
    """Entry points of the firmware release process"""

    def __init__(self, config: Optional[ReleaseConfig] = None,
                 git: Optional[GitOperationsEngine] = None,
                 patcher: Optional[TransactionalPatcher] = None):
        self.logger = logging.getLogger(__name__)
        self.config = config or ReleaseConfig()
        self._git = git
        self.patcher = patcher or TransactionalPatcher(BackupVault(self.config.backup.root_dir))

    @property
    def git(self) -> GitOperationsEngine:
        if self._git is None:
            self._git = GitOperationsEngine(self.config.repository.path)
        return self._git

    async def firmware_path(self) -> str:
        repository = self.config.repository
        if repository.require_firmware_remote:
            return await self.git.firmware_path(repository.firmware_remotes)
        return await self.git.repository_root_path()

    async def current_version(self, root_path: str) -> semver.Version:
        return read_firmware_version(root_path, self.patcher.line_store)

    async def init(self, version: str) -> PatchResult:
        """Check out a new release branch and update the firmware version"""
        new_ver = parse_version(version)
        self.logger.info(f"Release version: {new_ver}")

        root_path = await self.firmware_path()
        cur_ver = await self.current_version(root_path)
        self.logger.info(f"Current version: {cur_ver}")
        if new_ver <= cur_ver:
            raise ValidationError("Release version should be larger than the current version")

        plan = build_version_plan(new_ver, cur_ver)
        branch = ReleaseBranch(self.git, f"{self.config.repository.branch_prefix}{new_ver}")

        self.logger.info("Updating source files")
        result = await self.patcher.apply(plan, root_path, branch)
        for path in result.files_changed:
            self.logger.debug(f"Updated {path}")
        self.logger.info("Use `git diff` to review the changes")
        return result

    async def changelog(self, token: Optional[str] = None) -> Optional[str]:
        """Generate the changelog section for the current version"""
        root_path = await self.firmware_path()
        cur_ver = await self.current_version(root_path)
        self.logger.info(f"Current version: {cur_ver}")

        github_config = self.config.github
        async with GitHubClient(
            github_config.owner,
            github_config.repo,
            token=github_config.resolve_token(token),
            base_url=github_config.api_url,
            timeout=github_config.timeout_seconds
        ) as github:
            generator = ChangelogGenerator(
                self.git, github, self.config.changelog.labels, self.patcher.line_store
            )
            data = await generator.generate(root_path, cur_ver, self.config.changelog.file)

        if data is not None:
            self.logger.info("Use `git diff` to review the changes")
        return data

    async def show_version(self) -> str:
        """Current firmware version"""
        root_path = await self.firmware_path()
        version = str(await self.current_version(root_path))
        self.logger.info(version)
        return version
