"""Pick concrete versions out of a packument for an npm range.

Prereleases are never selected unless the range itself names one, so a
consumer is not moved onto a prerelease just because a dist-tag points
there.
"""

import logging
import re
from collections.abc import Iterable

from semantic_version import NpmSpec, Version

from ..clients.registry_client import Packument

logger = logging.getLogger(__name__)

_PRERELEASE_TAG_RE = re.compile(
    r"-(alpha|beta|rc|next|canary|dev|preview|pre|experimental)", re.IGNORECASE
)
_PRERELEASE_NUMERIC_RE = re.compile(r"-\d")

# "v1.2.3" and "=v1.2.3" are accepted by npm
_LEADING_V_RE = re.compile(r"(^|[\s<>=~^])v(?=\d)")

_UNSUPPORTED_PREFIXES = (
    "file:",
    "link:",
    "workspace:",
    "git:",
    "git+",
    "github:",
    "gitlab:",
    "bitbucket:",
    "http:",
    "https:",
    "portal:",
    "patch:",
)

_ANY_RANGES = {"", "*", "x", "X"}


def constraint_includes_prerelease(constraint: str) -> bool:
    """True when the range explicitly references a prerelease, e.g. ``^1.0.0-beta``."""
    return bool(
        _PRERELEASE_TAG_RE.search(constraint) or _PRERELEASE_NUMERIC_RE.search(constraint)
    )


def _parse_spec(constraint: str) -> NpmSpec | None:
    constraint = constraint.strip()
    if constraint in _ANY_RANGES:
        constraint = "*"
    constraint = _LEADING_V_RE.sub(r"\1", constraint)
    try:
        return NpmSpec(constraint)
    except ValueError:
        logger.debug(f"Unparsable version range: {constraint!r}")
        return None


def max_satisfying(versions: Iterable[str], constraint: str) -> str | None:
    """Return the highest version matching ``constraint``, or None."""
    spec = _parse_spec(constraint)
    if spec is None:
        return None

    allow_prerelease = constraint_includes_prerelease(constraint)
    candidates: dict[Version, str] = {}
    for raw in versions:
        try:
            parsed = Version(raw)
        except ValueError:
            continue
        if parsed.prerelease and not allow_prerelease:
            continue
        candidates[parsed] = raw

    best = spec.select(candidates.keys())
    return candidates[best] if best is not None else None


def is_supported_constraint(constraint: str) -> bool:
    """False for specifiers that do not point at a registry version."""
    constraint = constraint.strip()
    if constraint.startswith(_UNSUPPORTED_PREFIXES) or "://" in constraint:
        return False
    # GitHub shorthand "user/repo"
    if "/" in constraint and not constraint.startswith("npm:"):
        return False
    return True


def parse_alias(name: str, constraint: str) -> tuple[str, str]:
    """Follow ``npm:<real>@<range>`` aliases to the package they install."""
    constraint = constraint.strip()
    if not constraint.startswith("npm:"):
        return name, constraint

    target = constraint[len("npm:"):]
    at = target.find("@", 1)
    if at == -1:
        return target, "*"
    return target[:at], target[at + 1:]


def _is_prerelease(version: str) -> bool:
    try:
        return bool(Version(version).prerelease)
    except ValueError:
        return False


def resolve_version(
    packument: Packument, constraint: str, prerelease_tags: bool = True
) -> str | None:
    """Resolve a dist-tag, exact version or range against a packument.

    With ``prerelease_tags`` off, a dist-tag whose target is a prerelease
    does not resolve. Dependency edges use this; a requested root version
    may follow any tag.
    """
    constraint = constraint.strip()
    if not is_supported_constraint(constraint):
        return None
    if constraint in packument.dist_tags:
        target = packument.dist_tags[constraint]
        if not prerelease_tags and _is_prerelease(target):
            logger.debug(
                f"Dist-tag {constraint!r} of {packument.name} points at prerelease {target}"
            )
            return None
        return target
    if constraint in packument.versions:
        return constraint
    return max_satisfying(packument.versions.keys(), constraint)
