"""Request-level entry points for package evaluation.

Callers pass a package name and an optional version and receive typed
reports. Only NotFound errors reach the caller; every other upstream
failure makes a report less complete instead of failing it.
"""

import asyncio
import logging

from .analysis.deprecations import collect_deprecated_packages
from .analysis.install_size import calculate_install_size
from .analysis.resolver import DependencyResolver
from .analysis.versions import parse_alias, resolve_version
from .analysis.vulnerabilities import VulnerabilityAnalyzer
from .clients.osv_client import OSVClient
from .clients.registry_client import NpmRegistryClient, Packument
from .constants import (
    ANALYSIS_CACHE_KEY_VERSION,
    ANALYSIS_CACHE_MAX_SIZE,
    CACHE_MAX_AGE_FIVE_MINUTES,
    CACHE_MAX_AGE_ONE_HOUR,
    DEPENDENCIES_CACHE_KEY_VERSION,
    INSTALL_SIZE_CACHE_KEY_VERSION,
    PACKAGE_CACHE_MAX_SIZE,
    RESOLVER_CONCURRENCY,
)
from .core.cache import cached_function
from .core.exceptions import NpmVetError, VersionNotFoundError
from .models import (
    DependencyDepth,
    DependencyListResult,
    InstallSizeResult,
    PackageEvaluation,
    VulnerabilityTreeResult,
)

logger = logging.getLogger(__name__)


class PackageHealthService:
    """Resolves a package once per request and derives its reports.

    Each public report method is cached for an hour with
    stale-while-revalidate, and packument fetches for five minutes. All
    caches belong to this instance.
    """

    def __init__(
        self,
        registry: NpmRegistryClient | None = None,
        osv_client: OSVClient | None = None,
        concurrency: int = RESOLVER_CONCURRENCY,
    ) -> None:
        self.registry = registry or NpmRegistryClient()
        self.osv_client = osv_client or OSVClient()
        self.analyzer = VulnerabilityAnalyzer(self.osv_client)
        # The resolver fetches through this service so packuments are cached
        self.resolver = DependencyResolver(self, concurrency=concurrency)

        self.fetch_packument = cached_function(
            "npm-package",
            max_age=CACHE_MAX_AGE_FIVE_MINUTES,
            get_key=lambda name: name,
            bypass_key="npm-package",
            category="fetch",
            maxsize=PACKAGE_CACHE_MAX_SIZE,
        )(self.registry.fetch_packument)

        self.analyze_dependency_tree = cached_function(
            "dependency-analysis",
            max_age=CACHE_MAX_AGE_ONE_HOUR,
            get_key=lambda name, version: f"{ANALYSIS_CACHE_KEY_VERSION}:{name}@{version}",
            bypass_key="vulnerabilities",
            maxsize=ANALYSIS_CACHE_MAX_SIZE,
        )(self._analyze_dependency_tree)

        self.calculate_install_size = cached_function(
            "install-size",
            max_age=CACHE_MAX_AGE_ONE_HOUR,
            get_key=lambda name, version: f"{INSTALL_SIZE_CACHE_KEY_VERSION}:{name}@{version}",
            bypass_key="install-size",
            maxsize=ANALYSIS_CACHE_MAX_SIZE,
        )(self._calculate_install_size)

        self.list_dependencies = cached_function(
            "dependencies",
            max_age=CACHE_MAX_AGE_ONE_HOUR,
            get_key=lambda name, version: f"{DEPENDENCIES_CACHE_KEY_VERSION}:{name}@{version}",
            bypass_key="dependencies",
            maxsize=ANALYSIS_CACHE_MAX_SIZE,
        )(self._list_dependencies)

        self.evaluate_package = cached_function(
            "package-evaluation",
            max_age=CACHE_MAX_AGE_ONE_HOUR,
            get_key=lambda name, version: f"{ANALYSIS_CACHE_KEY_VERSION}:{name}@{version}",
            bypass_key="evaluation",
            maxsize=ANALYSIS_CACHE_MAX_SIZE,
        )(self._evaluate_package)

    async def aclose(self) -> None:
        await self.registry.aclose()
        await self.osv_client.aclose()

    async def __aenter__(self) -> "PackageHealthService":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def resolve_requested_version(self, name: str, version: str | None = None) -> str:
        """Turn an optional version, tag or range into a concrete version.

        Raises:
            PackageNotFoundError: The package does not exist
            VersionNotFoundError: Nothing published matches
        """
        packument: Packument = await self.fetch_packument(name)
        resolved = resolve_version(packument, version or "latest")
        if resolved is None or resolved not in packument.versions:
            raise VersionNotFoundError(name, version)
        return resolved

    async def resolve_dependency_versions(self, dependencies: dict[str, str]) -> dict[str, str]:
        """Resolve each ``name -> range`` entry; unresolvable entries are dropped."""

        async def resolve_one(name: str, constraint: str) -> str | None:
            real_name, real_constraint = parse_alias(name, constraint)
            try:
                packument = await self.fetch_packument(real_name)
            except NpmVetError as e:
                logger.debug(f"Cannot resolve {name}@{constraint}: {e}")
                return None
            return resolve_version(packument, real_constraint, prerelease_tags=False)

        names = list(dependencies)
        results = await asyncio.gather(*(resolve_one(n, dependencies[n]) for n in names))
        return {name: version for name, version in zip(names, results) if version}

    # Request-level entry points

    async def get_vulnerabilities(self, name: str, version: str | None = None) -> VulnerabilityTreeResult:
        resolved = await self.resolve_requested_version(name, version)
        return await self.analyze_dependency_tree(name, resolved)

    async def get_install_size(self, name: str, version: str | None = None) -> InstallSizeResult:
        resolved = await self.resolve_requested_version(name, version)
        return await self.calculate_install_size(name, resolved)

    async def get_dependencies(self, name: str, version: str | None = None) -> DependencyListResult:
        resolved = await self.resolve_requested_version(name, version)
        return await self.list_dependencies(name, resolved)

    async def evaluate(self, name: str, version: str | None = None) -> PackageEvaluation:
        resolved = await self.resolve_requested_version(name, version)
        return await self.evaluate_package(name, resolved)

    # Uncached producers

    async def _analyze_dependency_tree(self, name: str, version: str) -> VulnerabilityTreeResult:
        graph = await self.resolver.resolve(name, version, track_depth=True)
        return await self.analyzer.analyze(graph)

    async def _calculate_install_size(self, name: str, version: str) -> InstallSizeResult:
        graph = await self.resolver.resolve(name, version, track_depth=True)
        return calculate_install_size(graph)

    async def _list_dependencies(self, name: str, version: str) -> DependencyListResult:
        graph = await self.resolver.resolve(name, version, track_depth=True)
        dependencies = sorted(
            graph.dependencies(), key=lambda node: (node.depth.rank, node.name)
        )

        packument = await self.fetch_packument(name)
        manifest = packument.versions.get(graph.root.version)

        return DependencyListResult(
            package=name,
            version=graph.root.version,
            dependencies=dependencies,
            total=len(dependencies),
            direct=sum(1 for d in dependencies if d.depth is DependencyDepth.DIRECT),
            transitive=sum(1 for d in dependencies if d.depth is DependencyDepth.TRANSITIVE),
            dev_dependencies=(manifest.dev_dependencies or None) if manifest else None,
        )

    async def _evaluate_package(self, name: str, version: str) -> PackageEvaluation:
        graph = await self.resolver.resolve(name, version, track_depth=True)
        vulnerabilities = await self.analyzer.analyze(graph)
        return PackageEvaluation(
            package=name,
            version=graph.root.version,
            vulnerabilities=vulnerabilities,
            install_size=calculate_install_size(graph),
            deprecations=collect_deprecated_packages(graph),
        )
