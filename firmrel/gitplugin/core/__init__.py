"""
Core components of the Git Plugin system
"""

from .git_operations import GitOperationsEngine, ReleaseBranch, BranchInfo
from .github_client import GitHubClient

__all__ = [
    "GitOperationsEngine",
    "ReleaseBranch",
    "BranchInfo",
    "GitHubClient"
]
