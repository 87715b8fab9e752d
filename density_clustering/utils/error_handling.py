"""
Error Handling Module

Exception hierarchy shared by the clustering core and its collaborators:
- Configuration errors (raised before the core runs)
- Oracle errors (fatal to a clustering run, never retried)
- Storage errors (vector loading and result writing)
"""

import time
from typing import Any, Optional


# =============================================================================
# Custom Exception Hierarchy
# =============================================================================


class ClusteringServiceError(Exception):
    """Base exception for all clustering service errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        self.timestamp = time.time()

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/CLI output."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp,
        }


# Configuration Errors
class ConfigurationError(ClusteringServiceError):
    """Invalid parameter or configuration value."""

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if parameter is not None:
            details.setdefault("parameter", parameter)
        super().__init__(message, error_code=error_code, details=details)

    @property
    def parameter(self) -> Optional[str]:
        """Name of the offending parameter, if known."""
        return self.details.get("parameter")


# Clustering Errors
class ClusteringError(ClusteringServiceError):
    """Base class for clustering run errors."""
    pass


class OracleError(ClusteringError):
    """Neighborhood query failed; aborts the clustering run."""
    pass


class ObjectNotFoundError(OracleError):
    """Object identifier is not part of the database."""

    def __init__(self, object_id: Any):
        super().__init__(
            f"Object {object_id!r} not found in database",
            error_code="OBJECT_NOT_FOUND",
            details={"object_id": repr(object_id)},
        )
        self.object_id = object_id


class DistanceComputationError(OracleError):
    """Distance function failed on the stored vectors."""
    pass


# Storage Errors
class StorageError(ClusteringServiceError):
    """Base class for storage-related errors."""
    pass


class FileStorageError(StorageError):
    """File system storage error."""
    pass
