import logging
from datetime import datetime
from typing import Any

import httpx
from pydantic import BaseModel, Field

from ..constants import (
    DEFAULT_REQUEST_TIMEOUT,
    OSV_API_URL,
    OSV_BATCH_MAX_QUERIES,
    OSV_ECOSYSTEM,
)
from ..core.exceptions import APIError, NetworkError, RateLimitError, TimeoutError

logger = logging.getLogger(__name__)


class Vulnerability(BaseModel):
    id: str
    summary: str | None = None
    details: str | None = None
    aliases: list[str] = Field(default_factory=list)
    modified: datetime | None = None
    published: datetime | None = None
    database_specific: dict[str, Any] = Field(default_factory=dict)
    affected: list[dict[str, Any]] = Field(default_factory=list)
    severity: list[dict[str, Any]] = Field(default_factory=list)
    references: list[dict[str, Any]] = Field(default_factory=list)


class PackageQuery(BaseModel):
    name: str
    version: str


class OSVClient:
    BASE_URL = OSV_API_URL

    def __init__(
        self,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        ecosystem: str = OSV_ECOSYSTEM,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.ecosystem = ecosystem
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def __aenter__(self) -> "OSVClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    def _query_payload(self, name: str, version: str) -> dict[str, Any]:
        return {
            "package": {"name": name, "ecosystem": self.ecosystem},
            "version": version,
        }

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self.client.post(f"{self.BASE_URL}{path}", json=payload)
        except httpx.TimeoutException as e:
            raise TimeoutError(f"OSV request to {path} timed out") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"OSV request to {path} failed: {e}") from e

        if response.status_code == 429:
            raise RateLimitError("OSV rate limit exceeded")
        if response.status_code >= 400:
            raise APIError(
                f"OSV returned HTTP {response.status_code} for {path}",
                status_code=response.status_code,
                response_body=response.text[:500],
            )
        try:
            data = response.json()
        except ValueError as e:
            raise APIError(f"Malformed OSV response for {path}") from e
        if not isinstance(data, dict):
            raise APIError(f"Unexpected OSV response shape for {path}")
        return data

    async def query_batch(self, packages: list[PackageQuery]) -> list[bool]:
        """Report, per input position, whether any advisory exists.

        The batch endpoint only returns advisory ids; use ``query_package``
        for the full records.
        """
        flags: list[bool] = []
        for start in range(0, len(packages), OSV_BATCH_MAX_QUERIES):
            chunk = packages[start:start + OSV_BATCH_MAX_QUERIES]
            payload = {"queries": [self._query_payload(p.name, p.version) for p in chunk]}
            data = await self._post("/querybatch", payload)

            results = data.get("results")
            if not isinstance(results, list):
                raise APIError("OSV batch response has no results list")
            if len(results) != len(chunk):
                raise APIError(
                    f"OSV batch returned {len(results)} results for {len(chunk)} queries"
                )
            for result in results:
                # A null entry means no advisories for that query
                if result is not None and not isinstance(result, dict):
                    raise APIError(f"Unexpected OSV batch result: {result!r}")
                flags.append(bool((result or {}).get("vulns")))
        return flags

    async def query_package(self, name: str, version: str) -> list[Vulnerability]:
        payload = self._query_payload(name, version)
        vulnerabilities = []
        page_token = None

        while True:
            if page_token:
                payload["page_token"] = page_token
            data = await self._post("/query", payload)

            try:
                vulnerabilities.extend(Vulnerability(**v) for v in data.get("vulns", []))
            except (TypeError, ValueError) as e:
                raise APIError(f"Malformed OSV advisory for {name}@{version}: {e}") from e

            page_token = data.get("next_page_token")
            if not page_token:
                break

        return vulnerabilities
