import pytest

from npmvet.clients.osv_client import OSVClient
from npmvet.clients.registry_client import NpmRegistryClient
from npmvet.core.service_container import (
    ServiceContainer,
    get_service_container,
    reset_service_container,
)
from npmvet.service import PackageHealthService


@pytest.fixture(autouse=True)
def fresh_container():
    reset_service_container()
    yield
    reset_service_container()


class TestServiceContainer:
    """Test the lazily built service container."""

    def test_lazy_initialization(self):
        container = ServiceContainer(timeout=5, concurrency=3)
        assert container._initialized is False

        service = container.service

        assert isinstance(service, PackageHealthService)
        assert isinstance(container.registry_client, NpmRegistryClient)
        assert isinstance(container.osv_client, OSVClient)
        assert service.registry is container.registry_client
        assert service.resolver.concurrency == 3
        assert container.registry_client.client.timeout.read == 5

    def test_reset(self):
        container = ServiceContainer()
        first = container.service
        container.reset()

        assert container._initialized is False
        assert container.service is not first

    def test_global_singleton(self):
        assert get_service_container() is get_service_container()

        first = get_service_container()
        reset_service_container()
        assert get_service_container() is not first

    @pytest.mark.asyncio
    async def test_aclose(self):
        container = ServiceContainer()
        registry = container.registry_client

        await container.aclose()

        assert registry.client.is_closed
