"""Custom exception hierarchy for npmvet.

Only the NotFound family is meant to reach callers of the analysis
facade. Client and resolution errors are caught where a node or a
query fails and turned into a less complete result.
"""


class NpmVetError(Exception):
    """Base exception for all npmvet errors.

    All custom exceptions inherit from this class so callers can catch
    every npmvet-specific error with a single except clause.
    """
    pass


# =============================================================================
# Client Errors (API/Network)
# =============================================================================

class ClientError(NpmVetError):
    """Base exception for registry and advisory database client errors."""
    pass


class NetworkError(ClientError):
    """Network connectivity or request error."""
    pass


class APIError(ClientError):
    """Error returned by an external API."""

    def __init__(self, message: str, status_code: int | None = None, response_body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body


class RateLimitError(APIError):
    """API rate limit exceeded."""

    def __init__(self, message: str, retry_after: float | None = None):
        super().__init__(message, status_code=429)
        self.retry_after = retry_after


class TimeoutError(ClientError):
    """API request timed out."""
    pass


# =============================================================================
# Not Found Errors (request-level failures)
# =============================================================================

class NotFoundError(NpmVetError):
    """The package or version under analysis does not exist."""
    pass


class PackageNotFoundError(NotFoundError):
    """Package is not published on the registry."""

    def __init__(self, name: str):
        super().__init__(f"Package not found: {name}")
        self.name = name


class VersionNotFoundError(NotFoundError):
    """Package exists but the requested version, tag or range does not resolve."""

    def __init__(self, name: str, version: str | None):
        super().__init__(f"Version not found: {name}@{version or 'latest'}")
        self.name = name
        self.version = version


# =============================================================================
# Resolution Errors
# =============================================================================

class ResolutionError(NpmVetError):
    """A dependency edge could not be resolved to a concrete version."""

    def __init__(self, name: str, constraint: str):
        super().__init__(f"Unable to resolve {name}@{constraint}")
        self.name = name
        self.constraint = constraint


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(NpmVetError):
    """Base exception for input validation errors."""
    pass


class InvalidPackageNameError(ValidationError):
    """Package name is empty or malformed."""
    pass
