"""
Changelog generation from merged pull requests
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import semver

from ..editor import LineStore
from ..errors import ValidationError
from ..gitplugin import GitHubClient, GitOperationsEngine
from .version import is_valid_version, parse_version


@dataclass
class ChangelogSection:
    """Pull requests listed under one changelog heading"""
    label: str
    title: str
    pull_requests: List[Dict[str, Any]] = field(default_factory=list)


class ChangelogGenerator:
    """Collects labeled pull requests merged since the previous release"""

    def __init__(self, git: GitOperationsEngine, github: GitHubClient,
                 labels: Dict[str, str], line_store: Optional[LineStore] = None):
        self.logger = logging.getLogger(__name__)
        self.git = git
        self.github = github
        self.labels = labels
        self.line_store = line_store or LineStore()

    async def previous_version(self, current_version: semver.Version) -> semver.Version:
        """Highest v<semver> tag below the current version"""
        versions = []
        for tag in await self.git.tags():
            if not tag.startswith('v'):
                continue
            if not is_valid_version(tag[1:]):
                continue
            version = parse_version(tag[1:])
            if version < current_version:
                versions.append(version)
        if not versions:
            raise ValidationError("Unable to determine previous firmware version")
        return max(versions)

    async def merged_pull_requests(self, previous_version: semver.Version) -> List[int]:
        cur_commit = await self.git.rev_parse('HEAD')
        prev_commit = await self.git.rev_parse(f'v{previous_version}')
        base_commit = await self.git.merge_base(prev_commit, cur_commit)
        return await self.git.merged_pull_requests(base_commit, cur_commit)

    async def check_labels(self) -> None:
        """Ensure that the recognized labels are still registered"""
        for name in self.labels:
            await self.github.get_label(name)

    async def collect(self, pr_numbers: List[int]) -> List[ChangelogSection]:
        """Fetch pull requests and arrange them by recognized labels"""
        sections = {name: ChangelogSection(name, title) for name, title in self.labels.items()}
        for number in pr_numbers:
            pr = await self.github.get_issue(number)
            label_count = 0
            for label in pr.get('labels') or []:
                section = sections.get(label.get('name'))
                if section is not None:
                    section.pull_requests.append(pr)
                    label_count += 1
            if label_count == 0:
                self.logger.warning(f"PR has no recognized labels assigned: {pr.get('html_url')}")
        return list(sections.values())

    @staticmethod
    def render(version: semver.Version, sections: List[ChangelogSection]) -> str:
        data = f"## {version}\n\n"
        for section in sections:
            if not section.pull_requests:
                continue
            data += f"### {section.title}\n\n"
            for pr in section.pull_requests:
                data += f"- {pr['title']} [#{pr['number']}]({pr['html_url']})\n"
            data += "\n"
        return data

    async def generate(self, root_path: str, current_version: semver.Version,
                       changelog_file: str = "CHANGELOG.md") -> Optional[str]:
        """Prepend a section for current_version to the changelog file.

        Returns the generated text, or None if no labeled pull requests were
        found (the file is left untouched in that case).
        """
        prev_version = await self.previous_version(current_version)
        self.logger.info(f"Previous version: {prev_version}")

        self.logger.info("Getting list of merged PRs")
        pr_numbers = await self.merged_pull_requests(prev_version)

        await self.check_labels()
        sections = await self.collect(pr_numbers)
        if not any(section.pull_requests for section in sections):
            self.logger.info("No labeled PRs found")
            return None

        self.logger.info("Generating changelog")
        data = self.render(current_version, sections)

        file = Path(root_path) / changelog_file
        self.logger.debug(f"Updating file: {changelog_file}")
        existing = self.line_store.read_text(file) if file.exists() else ""
        self.line_store.write_text(file, data + existing)
        return data
