"""
Firmware source files touched by a release and the edits applied to them
"""

import re
from pathlib import Path
from typing import Optional, Sequence, Union

import semver

from ..editor import EditPlan, EditRule, LineStore, PatternEditor
from ..errors import FormatMismatchError
from .version import VersionTag, VersionLike, next_module_version, parse_version

RELEASE_SCRIPT = 'build/release.sh'
VERSION_MAKEFILE = 'build/version.mk'
MODULE_VERSION_MAKEFILE = 'modules/shared/system_module_version.mk'
SYSTEM_VERSION_HEADER = 'system/inc/system_version.h'

FIRMWARE_FILES = (
    RELEASE_SCRIPT,
    VERSION_MAKEFILE,
    MODULE_VERSION_MAKEFILE,
    SYSTEM_VERSION_HEADER,
)

# build/release.sh: VERSION="1.2.3"
RELEASE_SCRIPT_VERSION = re.compile(r'^\s*VERSION="?\S+"?\s*$')
# build/version.mk: VERSION_STRING = 1.2.3 / VERSION = 120
VERSION_STRING = re.compile(r'^\s*VERSION_STRING\s*=\s*(\S+)\s*$')
MODULE_VERSION = re.compile(r'^\s*VERSION\s*=\s*(\S+)\s*$')
# modules/shared/system_module_version.mk: SYSTEM_PART1_MODULE_VERSION ?= 120
SYSTEM_PART_MODULE_VERSION = re.compile(r'^\s*SYSTEM_PART(\d+)_MODULE_VERSION\s*\?=\s*(\S+)\s*$')
# system/inc/system_version.h
SYSTEM_VERSION_VALUE = re.compile(r'^\s*#\s*define\s+SYSTEM_VERSION_v\w+\s+0x\d+\s*$')
SYSTEM_VERSION_ALIAS = re.compile(r'^\s*#\s*define\s+SYSTEM_VERSION\s+\w+\s*$')
SYSTEM_VERSION_FLAG = re.compile(r'^\s*#\s*define\s+SYSTEM_VERSION_\d\w+\s*$')


def read_firmware_version(root_path: Union[str, Path],
                          line_store: Optional[LineStore] = None) -> semver.Version:
    """Read the current firmware version from build/version.mk"""
    line_store = line_store or LineStore()
    lines = line_store.load(Path(root_path) / VERSION_MAKEFILE)
    match = PatternEditor.match_last(lines, VERSION_STRING)
    if not match:
        raise FormatMismatchError("Unable to determine firmware version")
    return parse_version(match.group(1))


def build_version_plan(new_version: VersionLike, current_version: VersionLike) -> EditPlan:
    """Edits that bump the firmware version from current_version to new_version"""
    new_ver = parse_version(new_version)
    cur_ver = parse_version(current_version)
    tag = VersionTag.from_version(new_ver)

    def bump(module_version: str) -> int:
        return next_module_version(new_ver, cur_ver, module_version)

    def version_line(groups: Sequence[str]) -> str:
        return f"VERSION = {bump(groups[0])}"

    def part_version_line(groups: Sequence[str]) -> str:
        index, module_version = groups
        return f"SYSTEM_PART{index}_MODULE_VERSION ?= {bump(module_version)}"

    plan = EditPlan(name=f"firmware version {cur_ver} -> {new_ver}")
    plan.add(
        RELEASE_SCRIPT,
        EditRule.replace_last(RELEASE_SCRIPT_VERSION, f'VERSION="{new_ver}"'),
    )
    plan.add(
        VERSION_MAKEFILE,
        EditRule.replace_last(VERSION_STRING, f"VERSION_STRING = {new_ver}"),
        EditRule.replace_last(MODULE_VERSION, version_line),
    )
    plan.add(
        MODULE_VERSION_MAKEFILE,
        EditRule.replace_all(SYSTEM_PART_MODULE_VERSION, part_version_line),
    )
    plan.add(
        SYSTEM_VERSION_HEADER,
        EditRule.insert_after_last(SYSTEM_VERSION_VALUE,
                                   f"#define SYSTEM_VERSION_v{tag.identifier} {tag.value}"),
        EditRule.replace_last(SYSTEM_VERSION_ALIAS,
                              f"#define SYSTEM_VERSION SYSTEM_VERSION_v{tag.identifier}"),
        EditRule.insert_after_last(SYSTEM_VERSION_FLAG, f"#define SYSTEM_VERSION_{tag.identifier}"),
    )
    return plan
