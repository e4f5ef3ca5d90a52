"""npmvet: dependency-tree health checks for npm packages."""

from .analysis import (
    DependencyResolver,
    VulnerabilityAnalyzer,
    calculate_install_size,
    collect_deprecated_packages,
    is_platform_specific_package,
)
from .clients import NpmRegistryClient, OSVClient
from .models import (
    DependencyDepth,
    DependencyGraph,
    DependencyListResult,
    DeprecatedPackageInfo,
    InstallSizeResult,
    PackageEvaluation,
    PackageNode,
    PackageVulnerabilityInfo,
    Severity,
    SeverityCounts,
    VulnerabilitySummary,
    VulnerabilityTreeResult,
)
from .service import PackageHealthService

__version__ = "0.1.0"

__all__ = [
    "DependencyDepth",
    "DependencyGraph",
    "DependencyListResult",
    "DependencyResolver",
    "DeprecatedPackageInfo",
    "InstallSizeResult",
    "NpmRegistryClient",
    "OSVClient",
    "PackageEvaluation",
    "PackageHealthService",
    "PackageNode",
    "PackageVulnerabilityInfo",
    "Severity",
    "SeverityCounts",
    "VulnerabilityAnalyzer",
    "VulnerabilitySummary",
    "VulnerabilityTreeResult",
    "calculate_install_size",
    "collect_deprecated_packages",
    "is_platform_specific_package",
]
