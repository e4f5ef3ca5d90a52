"""Service container for dependency injection.

Holds the process-wide registry client, OSV client and the
``PackageHealthService`` built on them, so the transport layer and tests
share one set of caches and HTTP connection pools.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..constants import DEFAULT_REQUEST_TIMEOUT, RESOLVER_CONCURRENCY

if TYPE_CHECKING:
    from ..clients.osv_client import OSVClient
    from ..clients.registry_client import NpmRegistryClient
    from ..service import PackageHealthService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Container for npmvet services.

    Services are created lazily on first access. Thread-safe for
    concurrent access patterns.

    Usage:
        container = get_service_container()
        report = await container.service.get_vulnerabilities("express")
    """

    timeout: float = DEFAULT_REQUEST_TIMEOUT
    concurrency: int = RESOLVER_CONCURRENCY

    _lock: threading.RLock = field(default_factory=threading.RLock)
    _initialized: bool = field(default=False)

    _registry_client: "NpmRegistryClient | None" = field(default=None)
    _osv_client: "OSVClient | None" = field(default=None)
    _service: "PackageHealthService | None" = field(default=None)

    def initialize(self) -> None:
        """Initialize all services. Idempotent."""
        with self._lock:
            if self._initialized:
                return
            self._do_initialize()
            self._initialized = True

    def _do_initialize(self) -> None:
        from ..clients.osv_client import OSVClient
        from ..clients.registry_client import NpmRegistryClient
        from ..service import PackageHealthService

        logger.info("Initializing npmvet services...")

        self._registry_client = NpmRegistryClient(timeout=self.timeout)
        self._osv_client = OSVClient(timeout=self.timeout)
        self._service = PackageHealthService(
            registry=self._registry_client,
            osv_client=self._osv_client,
            concurrency=self.concurrency,
        )

        logger.info("npmvet services initialized")

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            self.initialize()

    @property
    def registry_client(self) -> "NpmRegistryClient":
        self._ensure_initialized()
        if self._registry_client is None:
            raise RuntimeError("Registry client not initialized")
        return self._registry_client

    @property
    def osv_client(self) -> "OSVClient":
        self._ensure_initialized()
        if self._osv_client is None:
            raise RuntimeError("OSV client not initialized")
        return self._osv_client

    @property
    def service(self) -> "PackageHealthService":
        self._ensure_initialized()
        if self._service is None:
            raise RuntimeError("Package health service not initialized")
        return self._service

    async def aclose(self) -> None:
        """Close HTTP connection pools."""
        if self._service is not None:
            await self._service.aclose()

    def reset(self) -> None:
        """Drop all services (useful for testing).

        Warning: open HTTP clients are not closed; call ``aclose`` first.
        """
        with self._lock:
            self._initialized = False
            self._registry_client = None
            self._osv_client = None
            self._service = None


# Global singleton instance
_container: ServiceContainer | None = None
_container_lock = threading.Lock()


def get_service_container() -> ServiceContainer:
    """Get or create the global service container."""
    global _container
    if _container is None:
        with _container_lock:
            if _container is None:
                _container = ServiceContainer()
    return _container


def reset_service_container() -> None:
    """Reset the global service container (for testing)."""
    global _container
    with _container_lock:
        if _container is not None:
            _container.reset()
        _container = None
