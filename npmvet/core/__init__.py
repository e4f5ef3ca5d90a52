"""Core utilities for caching, cache bypass, logging and service wiring."""

from .cache import CacheState, SWRCache, cached_function
from .cache_bypass import (
    BYPASS_CACHE_HEADER,
    CacheBypassConfig,
    bypass_cache,
    bypass_config_to_string,
    current_bypass_config,
    parse_bypass_cache_param,
    should_bypass_cache,
)
from .exceptions import (
    APIError,
    ClientError,
    InvalidPackageNameError,
    NetworkError,
    NotFoundError,
    NpmVetError,
    PackageNotFoundError,
    RateLimitError,
    ResolutionError,
    TimeoutError,
    ValidationError,
    VersionNotFoundError,
)
from .logging_config import configure_logging
from .service_container import (
    ServiceContainer,
    get_service_container,
    reset_service_container,
)

__all__ = [
    # Cache
    "CacheState",
    "SWRCache",
    "cached_function",
    # Cache bypass
    "BYPASS_CACHE_HEADER",
    "CacheBypassConfig",
    "bypass_cache",
    "bypass_config_to_string",
    "current_bypass_config",
    "parse_bypass_cache_param",
    "should_bypass_cache",
    # Logging
    "configure_logging",
    # Service container
    "ServiceContainer",
    "get_service_container",
    "reset_service_container",
    # Exceptions
    "NpmVetError",
    "ClientError",
    "NetworkError",
    "APIError",
    "RateLimitError",
    "TimeoutError",
    "NotFoundError",
    "PackageNotFoundError",
    "VersionNotFoundError",
    "ResolutionError",
    "ValidationError",
    "InvalidPackageNameError",
]
