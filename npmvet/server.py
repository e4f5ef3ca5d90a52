import json
import logging
import sys
from typing import Annotated

from fastmcp import FastMCP
from fastmcp.server.dependencies import get_http_headers
from pydantic import BaseModel, Field

from .constants import NPMVET_DEFAULT_PORT
from .core.cache_bypass import BYPASS_CACHE_HEADER, bypass_cache
from .core.exceptions import InvalidPackageNameError, NotFoundError
from .core.logging_config import configure_logging
from .core.service_container import get_service_container

# Log to stderr to keep stdout free for the transport
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(name)s %(levelname)s: %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)
logger = logging.getLogger("npmvet")

mcp: FastMCP = FastMCP("npmvet-mcp")

PackageName = Annotated[
    str,
    Field(description="npm package name, scoped or not (e.g. 'express', '@vue/reactivity')"),
]
Version = Annotated[
    str | None,
    Field(
        description="Version, dist-tag or range to evaluate (e.g. '4.18.2', 'next', '^4'). Defaults to latest",
        default=None,
    ),
]
BypassCache = Annotated[
    str | None,
    Field(
        description="Debug cache bypass: 'all', 'fetch', 'handler' or a comma separated list of cache keys",
        default=None,
    ),
]


def _to_json(result: BaseModel) -> str:
    return result.model_dump_json(by_alias=True)


def _not_found(error: Exception) -> str:
    return json.dumps({"error": str(error), "status": 404})


def _request_bypass(bypass: str | None) -> str | None:
    # The tool argument wins over the header; no header outside HTTP transport
    if bypass is not None:
        return bypass
    return get_http_headers().get(BYPASS_CACHE_HEADER.lower())


@mcp.tool
async def get_dependency_vulnerabilities(
    package_name: PackageName,
    version: Version = None,
    bypass: BypassCache = None,
) -> str:
    """Report known vulnerabilities and deprecated packages across the full
    dependency tree of an npm package.

    Every installed package (direct and transitive) is checked against
    OSV.dev. Packages whose advisory lookup failed are counted in
    failedQueries rather than reported as safe.
    """
    logger.info(f"Analyzing vulnerabilities for {package_name}{f'@{version}' if version else ''}")
    service = get_service_container().service
    try:
        with bypass_cache(_request_bypass(bypass)):
            result = await service.get_vulnerabilities(package_name, version)
    except (NotFoundError, InvalidPackageNameError) as e:
        return _not_found(e)
    return _to_json(result)


@mcp.tool
async def get_install_size(
    package_name: PackageName,
    version: Version = None,
    bypass: BypassCache = None,
) -> str:
    """Calculate the total unpacked install size of an npm package and its
    dependencies, counting one build per group of platform-specific binaries."""
    service = get_service_container().service
    try:
        with bypass_cache(_request_bypass(bypass)):
            result = await service.get_install_size(package_name, version)
    except (NotFoundError, InvalidPackageNameError) as e:
        return _not_found(e)
    return _to_json(result)


@mcp.tool
async def get_dependencies(
    package_name: PackageName,
    version: Version = None,
    bypass: BypassCache = None,
) -> str:
    """List every resolved dependency of an npm package with its depth
    (direct or transitive), version, size and deprecation status."""
    service = get_service_container().service
    try:
        with bypass_cache(_request_bypass(bypass)):
            result = await service.get_dependencies(package_name, version)
    except (NotFoundError, InvalidPackageNameError) as e:
        return _not_found(e)
    return _to_json(result)


@mcp.tool
async def evaluate_package(
    package_name: PackageName,
    version: Version = None,
    bypass: BypassCache = None,
) -> str:
    """Vulnerabilities, install size and deprecations for an npm package,
    all derived from a single resolution of its dependency tree."""
    service = get_service_container().service
    try:
        with bypass_cache(_request_bypass(bypass)):
            result = await service.evaluate(package_name, version)
    except (NotFoundError, InvalidPackageNameError) as e:
        return _not_found(e)
    return _to_json(result)


def main() -> None:
    """Run the MCP server with HTTP streaming transport."""
    configure_logging()

    print("npmvet MCP Server (HTTP Streaming)", file=sys.stderr)
    print("=" * 50, file=sys.stderr)
    print(
        "DISCLAIMER: Vulnerability data is provided 'AS IS' without warranty.",
        file=sys.stderr,
    )
    print("=" * 50, file=sys.stderr)
    print(f"Starting HTTP streaming server on port {NPMVET_DEFAULT_PORT}...", file=sys.stderr)

    try:
        import asyncio
        asyncio.run(
            mcp.run_http_async(transport="streamable-http", host="0.0.0.0", port=NPMVET_DEFAULT_PORT)
        )
    except KeyboardInterrupt:
        print("\nShutting down...", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    main()
