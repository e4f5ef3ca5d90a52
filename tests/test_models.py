import pytest

from npmvet.models import (
    DependencyDepth,
    DependencyGraph,
    PackageNode,
    Severity,
    SeverityCounts,
)


class TestDependencyGraph:
    """Test the DependencyGraph container."""

    def test_rejects_duplicate_names(self):
        graph = DependencyGraph()
        graph.add(PackageNode(name="Left-Pad", version="1.0.0", depth=DependencyDepth.ROOT))

        with pytest.raises(ValueError):
            graph.add(PackageNode(name="left-pad", version="2.0.0", depth=DependencyDepth.DIRECT))

    def test_rejects_second_root(self):
        graph = DependencyGraph()
        graph.add(PackageNode(name="app", version="1.0.0", depth=DependencyDepth.ROOT))

        with pytest.raises(ValueError):
            graph.add(PackageNode(name="other", version="1.0.0", depth=DependencyDepth.ROOT))

    def test_root_required(self):
        with pytest.raises(ValueError):
            DependencyGraph().root

    def test_counts_exclude_root(self):
        graph = DependencyGraph()
        graph.add(PackageNode(name="app", version="1.0.0", depth=DependencyDepth.ROOT))
        graph.add(PackageNode(name="a", version="1.0.0", depth=DependencyDepth.DIRECT))

        assert len(graph) == 2
        assert graph.dependency_count == 1
        assert [n.name for n in graph.dependencies()] == ["a"]
        assert graph.get("missing") is None
        assert 42 not in graph


class TestSeverityCounts:
    """Test severity tallies."""

    def test_add_and_merge(self):
        counts = SeverityCounts()
        for severity in (Severity.CRITICAL, Severity.HIGH, Severity.UNKNOWN):
            counts.add(severity)

        other = SeverityCounts()
        other.add(Severity.LOW)
        other.add(Severity.MODERATE)
        counts.merge(other)

        assert counts.total == 5
        assert counts.critical == 1
        assert counts.high == 1
        assert counts.moderate == 1
        assert counts.low == 1

    def test_ranks(self):
        assert Severity.CRITICAL.rank < Severity.LOW.rank < Severity.UNKNOWN.rank
        assert DependencyDepth.ROOT.rank < DependencyDepth.DIRECT.rank < DependencyDepth.TRANSITIVE.rank


def test_node_serializes_camel_case():
    node = PackageNode(
        name="@esbuild/linux-x64",
        version="0.20.0",
        depth=DependencyDepth.TRANSITIVE,
        is_platform_variant=True,
        variant_group="esbuild",
    )

    data = node.model_dump(by_alias=True)

    assert data["isPlatformVariant"] is True
    assert data["variantGroup"] == "esbuild"
    assert data["depth"] == "transitive"
