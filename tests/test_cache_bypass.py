import asyncio

import pytest

from npmvet.core.cache_bypass import (
    CacheBypassConfig,
    bypass_cache,
    bypass_config_to_string,
    current_bypass_config,
    parse_bypass_cache_param,
    should_bypass_cache,
)


class TestParseBypassParam:
    """Test parsing of bypass values."""

    @pytest.mark.parametrize("value", ["1", "all", "true", "TRUE", " All "])
    def test_all(self, value):
        config = parse_bypass_cache_param(value)
        assert config.all is True
        assert config.active is True

    @pytest.mark.parametrize("value", [None, "", " , "])
    def test_empty(self, value):
        assert parse_bypass_cache_param(value).active is False

    def test_categories_and_keys(self):
        config = parse_bypass_cache_param("fetch, Vulnerabilities,npm-package")

        assert config.all is False
        assert config.categories == {"fetch"}
        assert config.keys == {"vulnerabilities", "npm-package"}

    def test_to_string(self):
        config = parse_bypass_cache_param("vulnerabilities,handler,fetch")
        assert bypass_config_to_string(config) == "fetch,handler,vulnerabilities"
        assert bypass_config_to_string(CacheBypassConfig(all=True)) == "all"


class TestShouldBypass:
    """Test matching a bypass config against a cache."""

    def test_no_config(self):
        assert should_bypass_cache(None, "fetch", "npm-package") is False

    def test_all(self):
        assert should_bypass_cache(CacheBypassConfig(all=True), "handler") is True

    def test_category(self):
        config = CacheBypassConfig(categories={"handler"})
        assert should_bypass_cache(config, "handler", "install-size") is True
        assert should_bypass_cache(config, "fetch", "npm-package") is False

    def test_key(self):
        config = CacheBypassConfig(keys={"install-size"})
        assert should_bypass_cache(config, "handler", "install-size") is True
        assert should_bypass_cache(config, "handler", "vulnerabilities") is False
        assert should_bypass_cache(config, "handler") is False


class TestBypassContext:
    """Test the request scoped bypass context."""

    def test_scoped_to_block(self):
        assert current_bypass_config() is None
        with bypass_cache("fetch") as config:
            assert current_bypass_config() is config
            assert config.categories == {"fetch"}
        assert current_bypass_config() is None

    def test_inactive_config_is_dropped(self):
        with bypass_cache("") as config:
            assert config is None
            assert current_bypass_config() is None

    def test_nested(self):
        with bypass_cache("all"):
            with bypass_cache(CacheBypassConfig(keys={"dependencies"})):
                assert current_bypass_config().keys == {"dependencies"}
            assert current_bypass_config().all is True

    @pytest.mark.asyncio
    async def test_visible_to_tasks_started_inside(self):
        async def read():
            return current_bypass_config()

        with bypass_cache("handler"):
            task = asyncio.ensure_future(read())
        outside = asyncio.ensure_future(read())

        assert (await task).categories == {"handler"}
        assert await outside is None
