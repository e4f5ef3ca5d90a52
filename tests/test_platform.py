import pytest

from npmvet.analysis.platform import is_platform_specific_package, platform_group_name


class TestPlatformDetection:
    """Test recognition of OS/arch build packages."""

    @pytest.mark.parametrize(
        "name",
        [
            "@foo/bar-linux-x64-gnu",
            "@oxlint/win32-x64",
            "@rollup/rollup-linux-x64-musl",
            "esbuild-darwin-arm64",
            "@esbuild/linux-ppc64",
            "@swc/core-win32-ia32-msvc",
            "@napi-rs/canvas-linux-arm-gnueabihf",
        ],
    )
    def test_platform_variants(self, name):
        assert is_platform_specific_package(name) is True

    @pytest.mark.parametrize(
        "name",
        [
            "@foo/bar-core",
            "express",
            "linux",
            "@scope",
            "@scope/",
            "cross-env",
            "darwin-utils",
        ],
    )
    def test_regular_packages(self, name):
        assert is_platform_specific_package(name) is False

    def test_trailing_unknown_token_is_inconclusive(self):
        assert is_platform_specific_package("tools-linux-x64-helpers") is False

    def test_unknown_token_followed_by_more_tokens_still_matches(self):
        assert is_platform_specific_package("tools-linux-x64-static-build") is True


class TestPlatformGroupName:
    """Test mapping variant names to their addon."""

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("@img/sharp-linux-x64", "@img/sharp"),
            ("@img/sharp-darwin-arm64", "@img/sharp"),
            ("@img/sharp-libvips-linux-x64", "@img/sharp-libvips"),
            ("@rollup/rollup-linux-x64-musl", "@rollup/rollup"),
            ("@napi-rs/canvas-linux-arm-gnueabihf", "@napi-rs/canvas"),
            ("esbuild-darwin-arm64", "esbuild"),
            ("@esbuild/linux-ppc64", "@esbuild/"),
        ],
    )
    def test_strips_platform_tokens(self, name, expected):
        assert platform_group_name(name) == expected
