"""Shared fixtures: in-memory stand-ins for the npm registry and OSV."""

import asyncio
from typing import Any

import pytest

from npmvet.clients.osv_client import PackageQuery, Vulnerability
from npmvet.clients.registry_client import Packument
from npmvet.core.exceptions import PackageNotFoundError


class FakeRegistry:
    """Serves packuments from memory and records every fetch."""

    def __init__(self) -> None:
        self.packuments: dict[str, Packument] = {}
        self.calls: list[str] = []
        self.completed: list[str] = []
        self.delays: dict[str, float] = {}
        self.failures: dict[str, Exception] = {}
        self.in_flight = 0
        self.max_in_flight = 0

    def add(
        self,
        name: str,
        versions: dict[str, dict[str, Any] | None],
        dist_tags: dict[str, str] | None = None,
    ) -> Packument:
        if dist_tags is None:
            dist_tags = {"latest": list(versions)[-1]}
        packument = Packument.model_validate(
            {
                "name": name,
                "dist-tags": dist_tags,
                "versions": {v: doc or {} for v, doc in versions.items()},
            }
        )
        self.packuments[name] = packument
        return packument

    async def fetch_packument(self, name: str) -> Packument:
        self.calls.append(name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(name, 0))
            if name in self.failures:
                raise self.failures[name]
            if name not in self.packuments:
                raise PackageNotFoundError(name)
            self.completed.append(name)
            return self.packuments[name]
        finally:
            self.in_flight -= 1

    async def aclose(self) -> None:
        pass


class FakeOSV:
    """Answers batch and detail queries from a table of advisories."""

    def __init__(self) -> None:
        self.advisories: dict[tuple[str, str], list[dict[str, Any]]] = {}
        self.flagged_without_details: set[tuple[str, str]] = set()
        self.batch_error: Exception | None = None
        self.detail_errors: dict[tuple[str, str], Exception] = {}
        self.batch_calls: list[list[PackageQuery]] = []
        self.detail_calls: list[tuple[str, str]] = []

    def add(self, name: str, version: str, *advisories: dict[str, Any]) -> None:
        self.advisories.setdefault((name, version), []).extend(advisories)

    async def query_batch(self, packages: list[PackageQuery]) -> list[bool]:
        self.batch_calls.append(list(packages))
        if self.batch_error is not None:
            raise self.batch_error
        return [
            (p.name, p.version) in self.advisories
            or (p.name, p.version) in self.flagged_without_details
            for p in packages
        ]

    async def query_package(self, name: str, version: str) -> list[Vulnerability]:
        self.detail_calls.append((name, version))
        if (name, version) in self.detail_errors:
            raise self.detail_errors[(name, version)]
        return [Vulnerability(**v) for v in self.advisories.get((name, version), [])]

    async def aclose(self) -> None:
        pass


@pytest.fixture
def registry():
    return FakeRegistry()


@pytest.fixture
def osv():
    return FakeOSV()


@pytest.fixture
def simple_tree(registry):
    """app@1.0.0 -> a@^1.0.0 (-> c@^1), b@~2.0.0; a@1.2.0 is deprecated."""
    registry.add(
        "app",
        {
            "1.0.0": {
                "dependencies": {"a": "^1.0.0", "b": "~2.0.0"},
                "devDependencies": {"jest": "^29.0.0"},
                "dist": {"unpackedSize": 1000},
            }
        },
    )
    registry.add(
        "a",
        {
            "1.0.0": {"dist": {"unpackedSize": 50}},
            "1.2.0": {
                "dependencies": {"c": "^1"},
                "deprecated": "a@1 is no longer maintained",
                "dist": {"unpackedSize": 200},
            },
            "2.0.0": {"dist": {"unpackedSize": 999}},
        },
        dist_tags={"latest": "2.0.0"},
    )
    registry.add(
        "b",
        {
            "2.0.1": {"dist": {"unpackedSize": 10}},
            "2.0.3": {"dist": {"unpackedSize": 300}},
            "2.1.0": {"dist": {"unpackedSize": 999}},
        },
    )
    registry.add("c", {"1.4.2": {"unpackedSize": 40}})
    return registry
