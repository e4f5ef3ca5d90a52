import logging

from ..models import DependencyGraph, InstallSizeResult

logger = logging.getLogger(__name__)


def calculate_install_size(graph: DependencyGraph) -> InstallSizeResult:
    """Sum unpacked sizes across the graph.

    Only one package per platform-variant group is counted, since an install
    downloads a single OS/arch build. The representative is the first
    variant of the group in graph order, which is the one the resolver
    expanded. Packages without size metadata contribute zero.
    """
    root = graph.root
    counted_groups: set[str] = set()
    total_size = 0
    dependency_count = 0

    for node in graph:
        if node.variant_group is not None:
            if node.variant_group in counted_groups:
                continue
            counted_groups.add(node.variant_group)

        total_size += node.size or 0
        if node is not root:
            dependency_count += 1

    logger.debug(
        f"Install size for {root.name}@{root.version}: {total_size} bytes "
        f"across {dependency_count} dependencies"
    )
    return InstallSizeResult(
        package=root.name,
        version=root.version,
        self_size=root.size or 0,
        total_size=total_size,
        dependency_count=dependency_count,
    )
