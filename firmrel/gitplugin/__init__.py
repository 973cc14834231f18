"""
Git Plugin System

Git and GitHub integration for release work: release branch handling,
history queries and pull request lookups.
"""

from .core.git_operations import GitOperationsEngine, ReleaseBranch, BranchInfo
from .core.github_client import GitHubClient

__all__ = [
    "GitOperationsEngine",
    "ReleaseBranch",
    "BranchInfo",
    "GitHubClient"
]
