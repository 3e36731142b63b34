"""
Error taxonomy shared by the container router, image pipeline and HTTP layer.

Only ImageNotFoundError is reported to callers as a not-found condition;
every other error surfaces as an opaque internal failure carrying the
underlying message.
"""


class PeithoError(Exception):
    """Base class for all peitho errors."""
    pass


class ImageNotFoundError(PeithoError):
    """Raised when an image cannot be pulled from the registry or inspected."""
    pass


class EmptyContentError(PeithoError):
    """Raised when an upload or build request carries no content."""

    def __init__(self, message: str = "content is nil"):
        super().__init__(message)


class ReadinessTimeoutError(PeithoError):
    """Raised when a workload deployment never reports an available replica."""
    pass


class BackendFailureError(PeithoError):
    """Raised when the Docker engine or Kubernetes API call fails."""
    pass


class ArchiveCorruptError(PeithoError):
    """Raised when an uploaded archive is not a readable gzip-compressed tar."""
    pass


class ConfigurationError(PeithoError):
    """Raised at startup when settings fail validation."""
    pass
