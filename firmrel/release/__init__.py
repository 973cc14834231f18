"""
Firmware release process: version bumps, release branches and changelogs
"""

from .version import VersionTag, parse_version, next_module_version
from .firmware import build_version_plan, read_firmware_version, FIRMWARE_FILES
from .changelog import ChangelogGenerator
from .commands import ReleaseCommands

__all__ = [
    "VersionTag",
    "parse_version",
    "next_module_version",
    "build_version_plan",
    "read_firmware_version",
    "FIRMWARE_FILES",
    "ChangelogGenerator",
    "ReleaseCommands",
]
