"""Response version negotiation from the Accept header."""

import re

from bookshelf.errors import UnsupportedVersionError
from bookshelf.types import VersionTag

_VERSION_PATTERN = re.compile(r"\d+(\.\d+)*", re.ASCII)


def resolve_version(accept: str | None, default: VersionTag) -> VersionTag:
    """Extract the ``version=<token>`` segment of an Accept header.

    Example:
        resolve_version("application/json;version=2.0", "1.0")  # "2.0"
        resolve_version("application/json", "1.0")              # "1.0"

    The token is not checked against known versions.
    """
    if not accept:
        return default

    for segment in accept.split(";"):
        if "version" in segment:
            parts = segment.split("=")
            if len(parts) < 2:
                return default
            return parts[1].strip()
    return default


def parse_version(version: VersionTag) -> tuple[int, ...]:
    """Parse a dotted version into a comparable tuple, ignoring trailing zeros."""
    if not _VERSION_PATTERN.fullmatch(version):
        raise UnsupportedVersionError(version)

    parts = [int(part) for part in version.split(".")]
    while len(parts) > 1 and parts[-1] == 0:
        parts.pop()
    return tuple(parts)


def is_valid_version(version: VersionTag) -> bool:
    """Check that ``version`` is a dotted number such as ``2.0``."""
    return _VERSION_PATTERN.fullmatch(version) is not None


def version_at_least(version: VersionTag, minimum: VersionTag) -> bool:
    """Check if ``version`` is at or after ``minimum``."""
    return parse_version(version) >= parse_version(minimum)
