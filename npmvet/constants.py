"""Constants and configuration values for npmvet.

This module centralizes magic numbers and configuration values
that are used across the codebase for easier maintenance.
"""

import os

# =============================================================================
# Upstream Services
# =============================================================================

NPM_REGISTRY_URL = os.environ.get("NPMVET_REGISTRY_URL", "https://registry.npmjs.org")

OSV_API_URL = os.environ.get("NPMVET_OSV_API_URL", "https://api.osv.dev/v1")

# OSV ecosystem identifier for the npm registry
OSV_ECOSYSTEM = "npm"

# OSV rejects querybatch requests with more than 1000 queries
OSV_BATCH_MAX_QUERIES = 1000


# =============================================================================
# API Request Configuration
# =============================================================================

# Per-call HTTP timeout in seconds (registry fetch, batch query, detail query)
DEFAULT_REQUEST_TIMEOUT = float(os.environ.get("NPMVET_REQUEST_TIMEOUT", 30))

# Concurrent registry fetches allowed within one resolution
RESOLVER_CONCURRENCY = int(os.environ.get("NPMVET_RESOLVER_CONCURRENCY", 5))

# MCP server port
NPMVET_DEFAULT_PORT = int(os.environ.get("NPMVET_PORT", 3000))


# =============================================================================
# Cache Configuration
# =============================================================================

CACHE_MAX_AGE_FIVE_MINUTES = 60 * 5
CACHE_MAX_AGE_ONE_HOUR = 60 * 60

# Maximum cache sizes
PACKAGE_CACHE_MAX_SIZE = int(os.environ.get("NPMVET_PACKAGE_CACHE_SIZE", 2000))
ANALYSIS_CACHE_MAX_SIZE = int(os.environ.get("NPMVET_ANALYSIS_CACHE_SIZE", 500))

# Cache key versions, bumped when a cached result shape changes
ANALYSIS_CACHE_KEY_VERSION = "v2"
INSTALL_SIZE_CACHE_KEY_VERSION = "v1"
DEPENDENCIES_CACHE_KEY_VERSION = "v1"
