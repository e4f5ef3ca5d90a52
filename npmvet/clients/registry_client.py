import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import DEFAULT_REQUEST_TIMEOUT, NPM_REGISTRY_URL
from ..core.exceptions import (
    APIError,
    InvalidPackageNameError,
    NetworkError,
    PackageNotFoundError,
    RateLimitError,
    TimeoutError,
)

logger = logging.getLogger(__name__)


class PackumentDist(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    tarball: str | None = None
    unpacked_size: int | None = Field(default=None, alias="unpackedSize")


class PackumentVersion(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str | None = None
    version: str
    dependencies: dict[str, str] = Field(default_factory=dict)
    optional_dependencies: dict[str, str] = Field(
        default_factory=dict, alias="optionalDependencies"
    )
    dev_dependencies: dict[str, str] = Field(
        default_factory=dict, alias="devDependencies"
    )
    deprecated: str | None = None
    dist: PackumentDist | None = None
    # Some mirrors flatten the dist size onto the version document
    flat_unpacked_size: int | None = Field(default=None, alias="unpackedSize")

    @field_validator(
        "dependencies",
        "optional_dependencies",
        "dev_dependencies",
        mode="before",
    )
    @classmethod
    def _string_specs_only(cls, value: Any) -> dict[str, str]:
        # Old packuments occasionally carry lists or nested objects here
        if not isinstance(value, dict):
            return {}
        return {k: v for k, v in value.items() if isinstance(k, str) and isinstance(v, str)}

    @field_validator("deprecated", mode="before")
    @classmethod
    def _normalize_deprecated(cls, value: Any) -> str | None:
        if isinstance(value, str) and value.strip():
            return value
        return None

    @property
    def unpacked_size(self) -> int | None:
        if self.dist and self.dist.unpacked_size is not None:
            return self.dist.unpacked_size
        return self.flat_unpacked_size


class Packument(BaseModel):
    """Full registry document for one package."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    dist_tags: dict[str, str] = Field(default_factory=dict, alias="dist-tags")
    versions: dict[str, PackumentVersion] = Field(default_factory=dict)

    @field_validator("versions", mode="before")
    @classmethod
    def _fill_version_keys(cls, value: Any) -> dict[str, Any]:
        if not isinstance(value, dict):
            return {}
        filled = {}
        for key, doc in value.items():
            if isinstance(doc, dict):
                filled[key] = {"version": key, **doc}
        return filled


def encode_package_name(name: str) -> str:
    """Encode a package name for a registry URL.

    Scoped names keep the leading ``@`` but the separator is escaped:
    ``@scope/name`` becomes ``@scope%2Fname``.
    """
    name = name.strip()
    if not name:
        raise InvalidPackageNameError("Package name must not be empty")
    if name.startswith("@"):
        scope, sep, rest = name[1:].partition("/")
        if not sep or not scope or not rest:
            raise InvalidPackageNameError(f"Invalid scoped package name: {name}")
        return f"@{quote(scope, safe='')}%2F{quote(rest, safe='')}"
    return quote(name, safe="")


class NpmRegistryClient:
    BASE_URL = NPM_REGISTRY_URL

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
            follow_redirects=True,
        )

    async def __aenter__(self) -> "NpmRegistryClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def fetch_packument(self, name: str) -> Packument:
        url = f"{self.base_url}/{encode_package_name(name)}"
        try:
            response = await self.client.get(url)
        except httpx.TimeoutException as e:
            raise TimeoutError(f"Registry request timed out for {name}") from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Registry request failed for {name}: {e}") from e

        if response.status_code == 404:
            raise PackageNotFoundError(name)
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                f"Registry rate limit exceeded for {name}",
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        if response.status_code >= 400:
            raise APIError(
                f"Registry returned HTTP {response.status_code} for {name}",
                status_code=response.status_code,
                response_body=response.text[:500],
            )

        try:
            return Packument.model_validate(response.json())
        except ValueError as e:
            raise APIError(f"Malformed packument for {name}: {e}") from e
