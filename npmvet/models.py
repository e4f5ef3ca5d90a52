"""Data model shared by the resolver and the analyses built on its graph."""

from collections.abc import Iterator
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DependencyDepth(str, Enum):
    ROOT = "root"
    DIRECT = "direct"
    TRANSITIVE = "transitive"

    @property
    def rank(self) -> int:
        return _DEPTH_RANK[self]


_DEPTH_RANK = {
    DependencyDepth.ROOT: 0,
    DependencyDepth.DIRECT: 1,
    DependencyDepth.TRANSITIVE: 2,
}


class Severity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MODERATE = "moderate"
    LOW = "low"
    UNKNOWN = "unknown"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


_SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.HIGH: 1,
    Severity.MODERATE: 2,
    Severity.LOW: 3,
    Severity.UNKNOWN: 4,
}


class _Model(BaseModel):
    """Results serialize with camelCase keys for external callers."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PackageNode(_Model):
    name: str
    version: str
    depth: DependencyDepth
    path: list[str] = Field(default_factory=list)
    deprecated: str | None = None
    size: int | None = None
    is_platform_variant: bool = False
    optional: bool = False
    # Parent that declared this variant's sibling group
    variant_group: str | None = None


def normalize_package_name(name: str) -> str:
    return name.strip().lower()


class DependencyGraph:
    """Resolved packages keyed by normalized name.

    Only one version per package name is tracked. The root node is kept for
    lookup but excluded from dependency counts.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, PackageNode] = {}
        self._root_key: str | None = None

    def add(self, node: PackageNode) -> None:
        key = normalize_package_name(node.name)
        if key in self._nodes:
            raise ValueError(f"Duplicate package in graph: {node.name}")
        if node.depth is DependencyDepth.ROOT:
            if self._root_key is not None:
                raise ValueError("Graph already has a root node")
            self._root_key = key
        self._nodes[key] = node

    def get(self, name: str) -> PackageNode | None:
        return self._nodes.get(normalize_package_name(name))

    @property
    def root(self) -> PackageNode:
        if self._root_key is None:
            raise ValueError("Graph has no root node")
        return self._nodes[self._root_key]

    def nodes(self) -> list[PackageNode]:
        return list(self._nodes.values())

    def dependencies(self) -> list[PackageNode]:
        return [n for n in self._nodes.values() if n.depth is not DependencyDepth.ROOT]

    @property
    def dependency_count(self) -> int:
        return len(self._nodes) - (1 if self._root_key is not None else 0)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and normalize_package_name(name) in self._nodes

    def __iter__(self) -> Iterator[PackageNode]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)


class VulnerabilitySummary(_Model):
    id: str
    summary: str
    severity: Severity
    aliases: list[str] = Field(default_factory=list)
    url: str


class SeverityCounts(_Model):
    total: int = 0
    critical: int = 0
    high: int = 0
    moderate: int = 0
    low: int = 0

    def add(self, severity: Severity) -> None:
        """Count one advisory. Unknown severities only count toward the total."""
        self.total += 1
        if severity is Severity.CRITICAL:
            self.critical += 1
        elif severity is Severity.HIGH:
            self.high += 1
        elif severity is Severity.MODERATE:
            self.moderate += 1
        elif severity is Severity.LOW:
            self.low += 1

    def merge(self, other: "SeverityCounts") -> None:
        self.total += other.total
        self.critical += other.critical
        self.high += other.high
        self.moderate += other.moderate
        self.low += other.low


class PackageVulnerabilityInfo(_Model):
    name: str
    version: str
    depth: DependencyDepth
    path: list[str] = Field(default_factory=list)
    vulnerabilities: list[VulnerabilitySummary] = Field(default_factory=list)
    counts: SeverityCounts = Field(default_factory=SeverityCounts)


class DeprecatedPackageInfo(_Model):
    name: str
    version: str
    depth: DependencyDepth
    path: list[str] = Field(default_factory=list)
    message: str


class VulnerabilityTreeResult(_Model):
    package: str
    version: str
    vulnerable_packages: list[PackageVulnerabilityInfo] = Field(default_factory=list)
    deprecated_packages: list[DeprecatedPackageInfo] = Field(default_factory=list)
    total_packages: int = 0
    failed_queries: int = 0
    total_counts: SeverityCounts = Field(default_factory=SeverityCounts)


class InstallSizeResult(_Model):
    package: str
    version: str
    self_size: int = 0
    total_size: int = 0
    dependency_count: int = 0


class DependencyListResult(_Model):
    package: str
    version: str
    dependencies: list[PackageNode] = Field(default_factory=list)
    total: int = 0
    direct: int = 0
    transitive: int = 0
    dev_dependencies: dict[str, str] | None = None


class PackageEvaluation(_Model):
    """All three reports derived from one resolution of ``package@version``."""

    package: str
    version: str
    vulnerabilities: VulnerabilityTreeResult
    install_size: InstallSizeResult
    deprecations: list[DeprecatedPackageInfo] = Field(default_factory=list)
