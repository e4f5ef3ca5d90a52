import pytest

from npmvet.analysis.install_size import calculate_install_size
from npmvet.analysis.resolver import DependencyResolver
from npmvet.models import DependencyDepth, DependencyGraph, PackageNode


def node(name, size, depth=DependencyDepth.DIRECT, **kwargs):
    return PackageNode(name=name, version="1.0.0", depth=depth, size=size, **kwargs)


class TestCalculateInstallSize:
    """Test install size totals."""

    def test_sums_root_and_dependencies(self):
        graph = DependencyGraph()
        graph.add(node("app", 1000, DependencyDepth.ROOT))
        graph.add(node("a", 200))
        graph.add(node("b", 300, DependencyDepth.TRANSITIVE))

        result = calculate_install_size(graph)

        assert result.package == "app"
        assert result.self_size == 1000
        assert result.total_size == 1500
        assert result.dependency_count == 2

    def test_missing_sizes_count_as_zero(self):
        graph = DependencyGraph()
        graph.add(node("app", None, DependencyDepth.ROOT))
        graph.add(node("a", None))
        graph.add(node("b", 10))

        result = calculate_install_size(graph)

        assert result.self_size == 0
        assert result.total_size == 10
        assert result.dependency_count == 2

    def test_one_variant_per_group(self):
        graph = DependencyGraph()
        graph.add(node("app", 100, DependencyDepth.ROOT))
        graph.add(node("native", 10))
        for name, size in (
            ("native-linux-x64", 5000),
            ("native-darwin-arm64", 6000),
            ("native-win32-x64", 7000),
        ):
            graph.add(
                node(
                    name,
                    size,
                    DependencyDepth.TRANSITIVE,
                    is_platform_variant=True,
                    variant_group="native",
                )
            )

        result = calculate_install_size(graph)

        assert result.total_size == 100 + 10 + 5000
        assert result.dependency_count == 2

    def test_separate_groups_each_count_once(self):
        graph = DependencyGraph()
        graph.add(node("app", 0, DependencyDepth.ROOT))
        graph.add(node("x-linux-x64", 1, is_platform_variant=True, variant_group="x"))
        graph.add(node("x-darwin-x64", 2, is_platform_variant=True, variant_group="x"))
        graph.add(node("y-linux-x64", 4, is_platform_variant=True, variant_group="y"))
        graph.add(node("y-darwin-x64", 8, is_platform_variant=True, variant_group="y"))

        result = calculate_install_size(graph)

        assert result.total_size == 5
        assert result.dependency_count == 2

    def test_root_only(self):
        graph = DependencyGraph()
        graph.add(node("app", 42, DependencyDepth.ROOT))

        result = calculate_install_size(graph)

        assert result.total_size == 42
        assert result.dependency_count == 0

    @pytest.mark.asyncio
    async def test_resolved_tree(self, simple_tree):
        graph = await DependencyResolver(simple_tree).resolve("app")

        result = calculate_install_size(graph)

        assert result.version == "1.0.0"
        assert result.total_size == 1000 + 200 + 300 + 40
        assert result.dependency_count == 3
        assert result.model_dump(by_alias=True)["totalSize"] == 1540

    @pytest.mark.asyncio
    async def test_addon_and_its_library_both_counted(self, registry):
        registry.add(
            "sharp",
            {
                "0.33.0": {
                    "optionalDependencies": {
                        "@img/sharp-linux-x64": "0.33.0",
                        "@img/sharp-darwin-arm64": "0.33.0",
                        "@img/sharp-libvips-linux-x64": "1.0.0",
                        "@img/sharp-libvips-darwin-arm64": "1.0.0",
                    },
                    "dist": {"unpackedSize": 500},
                }
            },
        )
        registry.add("@img/sharp-linux-x64", {"0.33.0": {"dist": {"unpackedSize": 300}}})
        registry.add("@img/sharp-darwin-arm64", {"0.33.0": {"dist": {"unpackedSize": 350}}})
        registry.add("@img/sharp-libvips-linux-x64", {"1.0.0": {"dist": {"unpackedSize": 7000}}})
        registry.add("@img/sharp-libvips-darwin-arm64", {"1.0.0": {"dist": {"unpackedSize": 6500}}})

        graph = await DependencyResolver(registry).resolve("sharp")
        result = calculate_install_size(graph)

        assert result.total_size == 500 + 300 + 7000
        assert result.dependency_count == 2
