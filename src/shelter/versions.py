#
# src/shelter/versions.py
#
"""
Version compatibility checks for test plans that pin shelter versions.
"""

import re
from importlib.metadata import PackageNotFoundError, version

import structlog

log = structlog.get_logger("versions")

SEMVER_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)(-([0-9A-Za-z.-]+))?(\+([0-9A-Za-z.-]+))?$")
VERSION_RE = re.compile(r"^(\d+)(\.(\d+))?(\.(\d+))?$")

try:
    __version__ = version("shelter")
except PackageNotFoundError:
    __version__ = "0.0.0-dev"


def supported_versions(*versions: str, current: str | None = None) -> bool:
    """
    True when the running shelter matches at least one of ``versions``.

    Each version is MAJOR, MAJOR.MINOR or MAJOR.MINOR.PATCH; omitted parts
    match anything. Malformed entries are ignored.
    """
    current = current or __version__
    match = SEMVER_RE.match(current)
    if match:
        major, minor, patch = (int(part) for part in match.group(1, 2, 3))
        for candidate in versions:
            wanted = VERSION_RE.match(candidate)
            if not wanted:
                continue
            if int(wanted.group(1)) != major:
                continue
            if wanted.group(3) is not None and int(wanted.group(3)) != minor:
                continue
            if wanted.group(5) is not None and int(wanted.group(5)) != patch:
                continue
            return True

    log.warning(
        "Unsupported version of shelter detected",
        current=current,
        supported=list(versions),
    )
    return False


# 🔼⚙️
