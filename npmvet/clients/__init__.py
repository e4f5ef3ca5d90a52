"""Clients for the npm registry and the OSV advisory database."""

from .osv_client import OSVClient, PackageQuery, Vulnerability
from .registry_client import (
    NpmRegistryClient,
    Packument,
    PackumentVersion,
    encode_package_name,
)

__all__ = [
    "OSVClient",
    "PackageQuery",
    "Vulnerability",
    "NpmRegistryClient",
    "Packument",
    "PackumentVersion",
    "encode_package_name",
]
