"""Dependency graph resolution and the analyses derived from it."""

from .deprecations import collect_deprecated_packages
from .install_size import calculate_install_size
from .platform import is_platform_specific_package, platform_group_name
from .resolver import DependencyResolver
from .versions import (
    constraint_includes_prerelease,
    max_satisfying,
    parse_alias,
    resolve_version,
)
from .vulnerabilities import (
    VulnerabilityAnalyzer,
    get_severity_level,
    get_vulnerability_url,
    severity_from_score,
)

__all__ = [
    "DependencyResolver",
    "VulnerabilityAnalyzer",
    "calculate_install_size",
    "collect_deprecated_packages",
    "constraint_includes_prerelease",
    "get_severity_level",
    "get_vulnerability_url",
    "is_platform_specific_package",
    "max_satisfying",
    "parse_alias",
    "platform_group_name",
    "resolve_version",
    "severity_from_score",
]
