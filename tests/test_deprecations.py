from npmvet.analysis.deprecations import collect_deprecated_packages
from npmvet.models import DependencyDepth, DependencyGraph, PackageNode


def test_collects_deprecated_nodes_by_depth():
    graph = DependencyGraph()
    graph.add(
        PackageNode(
            name="app",
            version="1.0.0",
            depth=DependencyDepth.ROOT,
            path=["app"],
            deprecated="app is archived",
        )
    )
    graph.add(
        PackageNode(
            name="deep",
            version="0.1.0",
            depth=DependencyDepth.TRANSITIVE,
            path=["app", "a", "deep"],
            deprecated="Critical bug, upgrade to 0.2",
        )
    )
    graph.add(
        PackageNode(
            name="a",
            version="2.0.0",
            depth=DependencyDepth.DIRECT,
            path=["app", "a"],
            deprecated="Use b",
        )
    )
    graph.add(PackageNode(name="b", version="1.0.0", depth=DependencyDepth.DIRECT))

    deprecated = collect_deprecated_packages(graph)

    assert [d.name for d in deprecated] == ["app", "a", "deep"]
    assert deprecated[2].message == "Critical bug, upgrade to 0.2"
    assert deprecated[2].path == ["app", "a", "deep"]
    assert deprecated[2].version == "0.1.0"


def test_no_deprecations():
    graph = DependencyGraph()
    graph.add(PackageNode(name="app", version="1.0.0", depth=DependencyDepth.ROOT))

    assert collect_deprecated_packages(graph) == []
