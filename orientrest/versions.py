"""Server version parsing and protocol-variant selection."""

from __future__ import annotations

import logging
import re

from .errors import ArgumentError

LOG = logging.getLogger(__name__)

DEFAULT_SERVER_VERSION = "1.0.0"
SERVER_VERSION_PATTERN = re.compile(r"^\d+\.\d+\.\d+(-[0-9A-Za-z.]+)?$")

# Servers older than this return only data from GET class/{db}/{name}.
CLASS_ENDPOINT_VERSION = "1.1.0"

_LEADING_DIGITS = re.compile(r"^\d+")


def compare_versions(first: str, second: str) -> int:
    """Compare dotted numeric versions; returns -1, 0 or 1.

    Missing components count as zero and a trailing qualifier such as
    ``-SNAPSHOT`` is ignored, so ``"1.0"`` equals ``"1.0.0"``.
    """

    left = _components(first)
    right = _components(second)
    width = max(len(left), len(right))
    left += (0,) * (width - len(left))
    right += (0,) * (width - len(right))
    if left == right:
        return 0
    return 1 if left > right else -1


def normalize_server_version(raw: object) -> str:
    """Return ``raw`` when it looks like ``major.minor.patch``, else the baseline."""

    if isinstance(raw, str) and SERVER_VERSION_PATTERN.match(raw):
        return raw
    LOG.warning("bad version format, version=%s", raw, extra={"server_version": raw})
    return DEFAULT_SERVER_VERSION


def supports_class_endpoint(server_version: str | None) -> bool:
    return compare_versions(server_version or DEFAULT_SERVER_VERSION, CLASS_ENDPOINT_VERSION) >= 0


def _components(version: str) -> tuple[int, ...]:
    if not isinstance(version, str) or not version.strip():
        raise ArgumentError(f"version is blank: {version!r}")
    numbers: list[int] = []
    for part in version.strip().split("-", 1)[0].split("."):
        match = _LEADING_DIGITS.match(part)
        if match is None:
            raise ArgumentError(f"malformed version: {version!r}")
        numbers.append(int(match.group()))
    return tuple(numbers)


__all__ = [
    "CLASS_ENDPOINT_VERSION",
    "DEFAULT_SERVER_VERSION",
    "SERVER_VERSION_PATTERN",
    "compare_versions",
    "normalize_server_version",
    "supports_class_endpoint",
]
