"""
Version arithmetic for firmware releases

Semantic versions are parsed with ``semver``. Two derived values are used
by the firmware sources: module version counters, which carry the release
tier in their decimal magnitude, and version tags, which combine a symbolic
identifier (``070RC2``) with a packed numeric value (``0x00070002``).
"""

import re
from dataclasses import dataclass
from typing import List, Tuple, Union

import semver

from ..errors import ParseError, ValidationError

VersionLike = Union[str, semver.Version]

MAJOR_INCREMENT = 10000
MINOR_INCREMENT = 100
PATCH_INCREMENT = 1

_PACKED_VALUE = re.compile(r'^0x(\d{2})(\d{2})(\d{2})(\d{2})$')
_COUNTER = re.compile(r'^\d+$')


def parse_version(version: VersionLike) -> semver.Version:
    """Parse a semantic version, accepting an optional leading 'v'"""
    if isinstance(version, semver.Version):
        return version
    text = str(version).strip()
    if text[:1] in ('v', 'V'):
        text = text[1:]
    try:
        return semver.Version.parse(text)
    except (ValueError, TypeError):
        raise ValidationError(f"Invalid version number: {version}")


def is_valid_version(version: str) -> bool:
    try:
        parse_version(version)
    except ValidationError:
        return False
    return True


def module_version_increment(new_version: VersionLike, current_version: VersionLike) -> int:
    new_ver = parse_version(new_version)
    cur_ver = parse_version(current_version)
    if new_ver.major > cur_ver.major:
        return MAJOR_INCREMENT
    if new_ver.minor > cur_ver.minor:
        return MINOR_INCREMENT
    return PATCH_INCREMENT


def next_module_version(new_version: VersionLike, current_version: VersionLike,
                        module_version: Union[int, str]) -> int:
    """Round a module version counter up to the next multiple of the release tier.

    A patch release bumps the counter by one, a minor release moves it to the
    next multiple of 100 and a major release to the next multiple of 10000:

    >>> next_module_version('1.3.0', '1.2.3', '120')
    200
    """
    if isinstance(module_version, str):
        if not _COUNTER.match(module_version.strip()):
            raise ParseError(f"Invalid module version: {module_version}")
        module_version = int(module_version)
    inc = module_version_increment(new_version, current_version)
    return (module_version // inc + 1) * inc


def prerelease_tags(version: semver.Version) -> List[Union[int, str]]:
    """Split the prerelease part into identifiers; numeric ones become ints"""
    if not version.prerelease:
        return []
    return [int(tag) if tag.isdigit() else tag for tag in version.prerelease.split('.')]


@dataclass(frozen=True)
class VersionTag:
    """Symbolic and packed numeric encoding of a firmware version"""
    major: int
    minor: int
    patch: int
    prerelease: int
    identifier: str
    value: str

    @classmethod
    def from_version(cls, version: VersionLike) -> 'VersionTag':
        ver = parse_version(version)
        major, minor, patch = ver.major, ver.minor, ver.patch

        identifier = str(major)
        if minor < 10 and patch < 10:
            identifier += f"{minor}{patch}"
        else:
            identifier += f"{minor:02d}{patch:02d}"

        prerelease = 0
        for tag in prerelease_tags(ver):
            if isinstance(tag, str):
                identifier += tag.upper()
            else:
                if not prerelease:
                    prerelease = tag
                identifier += str(tag)

        return cls(
            major=major,
            minor=minor,
            patch=patch,
            prerelease=prerelease,
            identifier=identifier,
            value=cls.pack(major, minor, patch, prerelease)
        )

    @staticmethod
    def pack(major: int, minor: int, patch: int, prerelease: int = 0) -> str:
        components = (major, minor, patch, prerelease)
        if any(c < 0 or c > 99 for c in components):
            raise ValidationError(f"Version components must be in range 0-99: {components}")
        return '0x' + ''.join(f"{c:02d}" for c in components)

    @staticmethod
    def unpack(value: str) -> Tuple[int, int, int, int]:
        """Recover (major, minor, patch, prerelease) from a packed value"""
        match = _PACKED_VALUE.match(value.strip())
        if not match:
            raise ValidationError(f"Invalid packed version value: {value}")
        major, minor, patch, prerelease = (int(g) for g in match.groups())
        return major, minor, patch, prerelease

    def __str__(self) -> str:
        return self.identifier
