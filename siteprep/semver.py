"""Composer-compatible version normalisation and ordering.

Versions are normalised into a sortable key so that ``1.10.0`` sorts after
``1.9.0`` and ``1.0.0-beta2`` sorts before ``1.0.0``.  The accepted grammar
follows what Composer reports for its own releases and branch aliases::

    1.0.0   v2.7.1   1.0.0-alpha10   1.0.0-RC1   1.10-dev   2.x-dev
"""

from __future__ import annotations

import re
from typing import NamedTuple

from .errors import InvalidVersionError

# Wildcard components in branch aliases (``1.x-dev``) sort above any release.
WILDCARD_COMPONENT = 9999999

STABILITY_RANKS: dict[str, int] = {
    "dev": 0,
    "alpha": 1,
    "beta": 2,
    "rc": 3,
    "stable": 4,
    "patch": 5,
}

_STABILITY_ALIASES: dict[str, str] = {
    "a": "alpha",
    "b": "beta",
    "p": "patch",
    "pl": "patch",
}

_VERSION_RE = re.compile(
    r"^v?(?P<numbers>\d+(?:\.(?:\d+|x|\*)){0,3})"
    r"(?:[._-]?(?P<stability>stable|beta|b|rc|alpha|a|patch|pl|p)"
    r"(?P<stability_number>(?:[.-]?\d+)*))?"
    r"(?P<dev>[.-]?dev)?$",
    re.IGNORECASE,
)


class Version(NamedTuple):
    """A normalised version. Tuple ordering is version ordering."""

    components: tuple[int, int, int, int]
    stability_rank: int
    stability_number: tuple[int, ...]
    release: int  # 0 for a ``-dev`` snapshot of a pre-release, 1 otherwise


def parse_version(version: str) -> Version:
    """Normalise *version* into a :class:`Version`.

    Raises:
        InvalidVersionError: If the string is not a recognisable version.
    """
    text = (version or "").strip()
    text = text.split("+", 1)[0]
    match = _VERSION_RE.match(text)
    if not match:
        raise InvalidVersionError(version)

    raw_components = match.group("numbers").split(".")
    components = [
        WILDCARD_COMPONENT if part in ("x", "X", "*") else int(part)
        for part in raw_components
    ]
    while len(components) < 4:
        # ``1.x`` means every later component is a wildcard too.
        components.append(WILDCARD_COMPONENT if components[-1] == WILDCARD_COMPONENT else 0)

    stability = (match.group("stability") or "").lower()
    stability = _STABILITY_ALIASES.get(stability, stability)
    numbers = tuple(
        int(n) for n in re.findall(r"\d+", match.group("stability_number") or "")
    )
    is_dev = bool(match.group("dev"))

    if stability and stability != "stable":
        rank = STABILITY_RANKS[stability]
        release = 0 if is_dev else 1
    elif is_dev:
        rank = STABILITY_RANKS["dev"]
        release = 1
    else:
        rank = STABILITY_RANKS["stable"]
        release = 1

    return Version(
        components=tuple(components),  # type: ignore[arg-type]
        stability_rank=rank,
        stability_number=numbers,
        release=release,
    )


def is_valid_version(version: str) -> bool:
    """Return ``True`` if *version* can be normalised."""
    try:
        parse_version(version)
    except InvalidVersionError:
        return False
    return True


def compare_versions(left: str, right: str) -> int:
    """Return -1, 0 or 1 as *left* is lower, equal or higher than *right*."""
    a, b = parse_version(left), parse_version(right)
    return (a > b) - (a < b)


def less_than(version: str, other: str) -> bool:
    return compare_versions(version, other) < 0
