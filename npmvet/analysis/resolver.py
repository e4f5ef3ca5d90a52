"""Resolve a package's manifest into its full installed dependency graph.

The traversal is a breadth-first worklist keyed by package name. The graph
doubles as the visited set, so circular dependencies terminate without a
separate cycle check. Each level is fetched concurrently under a semaphore
and then inserted in declaration order, which keeps the result identical
across runs regardless of which fetch finishes first.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Protocol

from ..clients.registry_client import Packument, PackumentVersion
from ..constants import RESOLVER_CONCURRENCY
from ..core.exceptions import NpmVetError, ResolutionError, VersionNotFoundError
from ..models import DependencyDepth, DependencyGraph, PackageNode
from .platform import is_platform_specific_package, platform_group_name
from .versions import parse_alias, resolve_version

logger = logging.getLogger(__name__)


class PackumentFetcher(Protocol):
    async def fetch_packument(self, name: str) -> Packument: ...


@dataclass
class _Edge:
    parent: PackageNode
    name: str
    constraint: str
    optional: bool


@dataclass
class _Resolved:
    name: str
    version: str
    manifest: PackumentVersion


class _ResolutionRun:
    """State owned by a single ``resolve`` call."""

    def __init__(self, registry: PackumentFetcher, concurrency: int) -> None:
        self.registry = registry
        self.semaphore = asyncio.Semaphore(concurrency)
        self.packuments: dict[str, asyncio.Task[Packument]] = {}

    async def _fetch(self, name: str) -> Packument:
        async with self.semaphore:
            return await self.registry.fetch_packument(name)

    async def fetch(self, name: str) -> Packument:
        # One registry round trip per package name per run
        task = self.packuments.get(name)
        if task is None:
            task = asyncio.ensure_future(self._fetch(name))
            self.packuments[name] = task
        return await task

    async def resolve_edge(self, edge: _Edge) -> _Resolved | None:
        name, constraint = parse_alias(edge.name, edge.constraint)
        try:
            packument = await self.fetch(name)
            version = resolve_version(packument, constraint, prerelease_tags=False)
            if version is None or version not in packument.versions:
                raise ResolutionError(name, constraint)
        except NpmVetError as e:
            logger.debug(
                f"Omitting {name}@{constraint} (required by {edge.parent.name}): {e}"
            )
            return None
        return _Resolved(name=name, version=version, manifest=packument.versions[version])

    def cancel_pending(self) -> None:
        for task in self.packuments.values():
            if not task.done():
                task.cancel()


def _dependency_edges(parent: PackageNode, manifest: PackumentVersion) -> list[_Edge]:
    edges = [
        _Edge(parent, name, constraint, optional=False)
        for name, constraint in manifest.dependencies.items()
    ]
    for name, constraint in manifest.optional_dependencies.items():
        # npm lets optionalDependencies override an entry in dependencies
        if name in manifest.dependencies:
            continue
        edges.append(_Edge(parent, name, constraint, optional=True))
    return edges


class DependencyResolver:
    def __init__(
        self, registry: PackumentFetcher, concurrency: int = RESOLVER_CONCURRENCY
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.registry = registry
        self.concurrency = concurrency

    async def resolve(
        self, name: str, version: str | None = None, track_depth: bool = True
    ) -> DependencyGraph:
        """Build the dependency graph rooted at ``name@version``.

        Args:
            name: Root package name, scoped or not
            version: Exact version, dist-tag or range; ``None`` means latest
            track_depth: Upgrade a node to ``direct`` when it is also reached
                from the root after first being seen transitively

        Raises:
            PackageNotFoundError: The root package does not exist
            VersionNotFoundError: The root version does not resolve
            ClientError: The root packument could not be fetched
        """
        run = _ResolutionRun(self.registry, self.concurrency)
        try:
            return await self._resolve(run, name, version, track_depth)
        finally:
            run.cancel_pending()

    async def _resolve(
        self,
        run: _ResolutionRun,
        name: str,
        version: str | None,
        track_depth: bool,
    ) -> DependencyGraph:
        packument = await run.fetch(name)
        root_version = resolve_version(packument, version or "latest")
        if root_version is None or root_version not in packument.versions:
            raise VersionNotFoundError(name, version)

        root_manifest = packument.versions[root_version]
        root = PackageNode(
            name=name,
            version=root_version,
            depth=DependencyDepth.ROOT,
            path=[name],
            deprecated=root_manifest.deprecated,
            size=root_manifest.unpacked_size,
            is_platform_variant=is_platform_specific_package(name),
        )
        graph = DependencyGraph()
        graph.add(root)

        variant_representatives: set[str] = set()
        frontier: list[tuple[PackageNode, PackumentVersion]] = [(root, root_manifest)]
        level = 0

        while frontier:
            level += 1
            pending: list[_Edge] = []
            for parent, manifest in frontier:
                for edge in _dependency_edges(parent, manifest):
                    existing = graph.get(parse_alias(edge.name, edge.constraint)[0])
                    if existing is not None:
                        if track_depth:
                            self._upgrade_depth(existing, edge)
                        continue
                    pending.append(edge)

            results = await asyncio.gather(*(run.resolve_edge(edge) for edge in pending))

            frontier = []
            for edge, resolved in zip(pending, results):
                if resolved is None:
                    continue
                existing = graph.get(resolved.name)
                if existing is not None:
                    # Reached twice within the same level
                    if track_depth:
                        self._upgrade_depth(existing, edge)
                    continue

                node = self._make_node(edge, resolved)
                graph.add(node)

                if node.variant_group is not None:
                    if node.variant_group in variant_representatives:
                        # Sibling OS/arch build: recorded, never expanded
                        continue
                    variant_representatives.add(node.variant_group)
                frontier.append((node, resolved.manifest))

            logger.debug(
                f"Resolved level {level} of {name}@{root_version}: "
                f"{len(pending)} edges, {len(graph)} packages so far"
            )

        logger.info(
            f"Resolved {name}@{root_version}: {graph.dependency_count} dependencies"
        )
        return graph

    @staticmethod
    def _child_depth(parent: PackageNode) -> DependencyDepth:
        if parent.depth is DependencyDepth.ROOT:
            return DependencyDepth.DIRECT
        return DependencyDepth.TRANSITIVE

    def _upgrade_depth(self, node: PackageNode, edge: _Edge) -> None:
        depth = self._child_depth(edge.parent)
        if depth.rank < node.depth.rank:
            node.depth = depth

    def _make_node(self, edge: _Edge, resolved: _Resolved) -> PackageNode:
        is_variant = is_platform_specific_package(resolved.name)
        return PackageNode(
            name=resolved.name,
            version=resolved.version,
            depth=self._child_depth(edge.parent),
            path=[*edge.parent.path, resolved.name],
            deprecated=resolved.manifest.deprecated,
            size=resolved.manifest.unpacked_size,
            is_platform_variant=is_variant,
            optional=edge.optional,
            variant_group=(
                f"{edge.parent.name}|{platform_group_name(resolved.name)}" if is_variant else None
            ),
        )
