from ..models import DependencyGraph, DeprecatedPackageInfo


def collect_deprecated_packages(graph: DependencyGraph) -> list[DeprecatedPackageInfo]:
    """List deprecated packages, root first, then direct, then transitive.

    Deprecation messages come from the packuments fetched during resolution,
    so no further requests are made.
    """
    deprecated = [
        DeprecatedPackageInfo(
            name=node.name,
            version=node.version,
            depth=node.depth,
            path=list(node.path),
            message=node.deprecated,
        )
        for node in graph
        if node.deprecated
    ]
    deprecated.sort(key=lambda info: info.depth.rank)
    return deprecated
