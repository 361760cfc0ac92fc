"""Semantic version parsing, ordering and increments.

Ordering is numeric precedence on (major, minor, patch) via
``packaging.version``; file names are never compared lexically.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

from packaging import version as _version

from changelog_manager.errors import InvalidBumpTypeError

BUMP_TYPES = ("major", "minor", "patch")
BOOTSTRAP_VERSION = "0.1.0"

_STRICT_RE = re.compile(r"^\d+\.\d+\.\d+$")


def _normalize(ver: str) -> str:
    v = ver.strip()
    if v.lower().startswith("v"):
        v = v[1:]
    return v


def validate_bump_type(bump_type: str) -> str:
    bt = (bump_type or "").strip().lower()
    if bt not in BUMP_TYPES:
        raise InvalidBumpTypeError(bump_type, BUMP_TYPES)
    return bt


def parse_version(ver: str) -> _version.Version:
    """Parse a manifest or tag version (``v`` prefix and pre-releases allowed).

    Raises ``packaging.version.InvalidVersion`` when unparseable.
    """
    return _version.Version(_normalize(ver))


def parse_strict(ver: str) -> Optional[_version.Version]:
    """Parse a plain ``X.Y.Z`` string, returning None for anything else."""
    if not _STRICT_RE.match(ver or ""):
        return None
    try:
        return _version.Version(ver)
    except _version.InvalidVersion:
        return None


def bump_version(current: str, bump_type: str) -> str:
    """Increment ``current`` following semantic-version rules.

    A pre-release is promoted to its own release when the bump does not need
    to move past it (``1.0.0-beta`` patch -> ``1.0.0``, ``1.2.0-rc1`` minor ->
    ``1.2.0``).
    """
    bt = validate_bump_type(bump_type)
    ver = parse_version(current)
    major, minor, patch = (tuple(ver.release) + (0, 0, 0))[:3]

    if ver.is_prerelease or ver.is_devrelease:
        if bt == "patch":
            return f"{major}.{minor}.{patch}"
        if bt == "minor" and patch == 0:
            return f"{major}.{minor}.0"
        if bt == "major" and minor == 0 and patch == 0:
            return f"{major}.0.0"

    if bt == "major":
        return f"{major + 1}.0.0"
    if bt == "minor":
        return f"{major}.{minor + 1}.0"
    return f"{major}.{minor}.{patch + 1}"


def highest(versions: Iterable[str]) -> Optional[str]:
    parsed = [(parse_strict(v), v) for v in versions]
    valid = [(p, v) for p, v in parsed if p is not None]
    if not valid:
        return None
    return max(valid, key=lambda pv: pv[0])[1]


def next_version(versions: Iterable[str], bump_type: str = "patch") -> str:
    """Next version after the highest of ``versions``; ``0.1.0`` when empty."""
    bt = validate_bump_type(bump_type)
    top = highest(versions)
    if top is None:
        return BOOTSTRAP_VERSION
    return bump_version(top, bt)
