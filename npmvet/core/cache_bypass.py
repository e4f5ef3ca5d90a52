"""Debug cache bypass.

A request may ask for some or all caching layers to be skipped, with a tool
argument or the ``X-Cache-Bypass`` HTTP header:

- ``1``, ``all`` or ``true``: bypass every cache
- ``fetch``: bypass cached upstream calls (registry packuments)
- ``handler``: bypass cached analysis results
- any other token: bypass only caches registered with that bypass key,
  e.g. ``vulnerabilities`` or ``npm-package``

Tokens are comma separated: ``fetch,vulnerabilities``.

The parsed config is request scoped. A transport sets it with
``bypass_cache(config)`` around the call into the service; cached functions
read it with ``current_bypass_config()``. Nothing else consults it.
"""

import contextlib
import contextvars
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Literal

logger = logging.getLogger(__name__)

BYPASS_CACHE_HEADER = "X-Cache-Bypass"

CacheCategory = Literal["fetch", "handler"]

ALL_CACHE_CATEGORIES: tuple[CacheCategory, ...] = ("fetch", "handler")


@dataclass
class CacheBypassConfig:
    categories: set[str] = field(default_factory=set)
    keys: set[str] = field(default_factory=set)
    all: bool = False

    @property
    def active(self) -> bool:
        return self.all or bool(self.categories) or bool(self.keys)


def parse_bypass_cache_param(value: str | None) -> CacheBypassConfig:
    config = CacheBypassConfig()
    if not value:
        return config

    normalized = value.strip().lower()
    if normalized in ("1", "all", "true"):
        config.all = True
        return config

    for part in normalized.split(","):
        token = part.strip()
        if not token:
            continue
        if token in ALL_CACHE_CATEGORIES:
            config.categories.add(token)
        else:
            config.keys.add(token)
    return config


def should_bypass_cache(
    config: CacheBypassConfig | None, category: str, key: str | None = None
) -> bool:
    if config is None:
        return False
    if config.all:
        return True
    if category in config.categories:
        return True
    return bool(key and key in config.keys)


def bypass_config_to_string(config: CacheBypassConfig) -> str:
    if config.all:
        return "all"
    return ",".join([*sorted(config.categories), *sorted(config.keys)])


_current_bypass: contextvars.ContextVar[CacheBypassConfig | None] = contextvars.ContextVar(
    "npmvet_cache_bypass", default=None
)


def current_bypass_config() -> CacheBypassConfig | None:
    return _current_bypass.get()


@contextlib.contextmanager
def bypass_cache(config: CacheBypassConfig | str | None) -> Iterator[CacheBypassConfig | None]:
    """Activate a bypass config for the enclosed request."""
    if isinstance(config, str):
        config = parse_bypass_cache_param(config)
    if config is not None and not config.active:
        config = None
    if config is not None:
        logger.debug(
            f"Bypassing caches: {bypass_config_to_string(config)}",
            extra={"event": "cache_bypass", "bypass": bypass_config_to_string(config)},
        )

    token = _current_bypass.set(config)
    try:
        yield config
    finally:
        _current_bypass.reset(token)
