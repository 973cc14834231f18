"""
Shared fixtures: a firmware source tree and a git repository holding it
"""

from pathlib import Path

import pytest
from git import Repo

from firmrel.config import FIRMWARE_HTTPS

RELEASE_SH = """#!/bin/bash
set -e

VERSION="1.2.3"

echo "Building release $VERSION"
"""

VERSION_MK = """VERSION_STRING = 1.2.3

# PRODUCT_FIRMWARE_VERSION reported by default
VERSION = 120
"""

MODULE_VERSION_MK = """SYSTEM_PART1_MODULE_VERSION ?= 120
SYSTEM_PART2_MODULE_VERSION ?= 120
SYSTEM_PART3_MODULE_VERSION ?= 118
"""

SYSTEM_VERSION_H = """#ifndef SYSTEM_VERSION_H
#define SYSTEM_VERSION_H

#define SYSTEM_VERSION_v122 0x01020200
#define SYSTEM_VERSION_v123 0x01020300
#define SYSTEM_VERSION SYSTEM_VERSION_v123

#define SYSTEM_VERSION_122
#define SYSTEM_VERSION_123

#endif
"""

CHANGELOG_MD = """## 1.2.2

### BUGFIXES

- Fix something [#1](https://github.com/particle-iot/firmware/pull/1)
"""

FIRMWARE_SOURCES = {
    'build/release.sh': RELEASE_SH,
    'build/version.mk': VERSION_MK,
    'modules/shared/system_module_version.mk': MODULE_VERSION_MK,
    'system/inc/system_version.h': SYSTEM_VERSION_H,
    'CHANGELOG.md': CHANGELOG_MD,
}


def write_tree(root: Path, files: dict) -> None:
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode('utf-8'))


def read_tree(root: Path) -> dict:
    return {relative: (root / relative).read_bytes() for relative in FIRMWARE_SOURCES}


@pytest.fixture
def firmware_tree(tmp_path):
    """Firmware sources at version 1.2.3"""
    root = tmp_path / "firmware"
    write_tree(root, FIRMWARE_SOURCES)
    return root


@pytest.fixture
def backup_root(tmp_path):
    return tmp_path / "backups"


@pytest.fixture
def firmware_repo(firmware_tree):
    """Git repository of the firmware sources with a firmware remote"""
    repo = Repo.init(firmware_tree)
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Release Bot")
        writer.set_value("user", "email", "release@example.com")
        writer.set_value("commit", "gpgsign", "false")
    repo.create_remote("origin", FIRMWARE_HTTPS)
    repo.index.add(list(FIRMWARE_SOURCES))
    repo.index.commit("Initial commit")
    yield repo
    repo.close()
