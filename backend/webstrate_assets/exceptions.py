"""
Exception types for asset admission and lifecycle operations.

Services raise these; the API layer turns them into HTTP responses using the
``status_code`` carried by each class.
"""
from typing import Any


class AssetError(Exception):
    """
    Base exception for asset errors.

    Attributes:
        message: Human-readable error message
        error_code: Application-specific error code
        details: Additional error context
    """

    status_code = 400

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.error_code,
            "detail": self.message,
            "details": self.details,
        }


class NotFoundError(AssetError):
    """Raised when a logical asset, tag or document does not exist."""

    status_code = 404


class ConflictError(AssetError):
    """Raised when the record store rejects a write during admission."""

    status_code = 409


class OversizeUploadError(AssetError):
    """Raised when an uploaded file exceeds the configured maximum size."""

    status_code = 409

    def __init__(self, file_name: str, max_size_mb: int):
        super().__init__(
            f"Maximum file size exceeded ({max_size_mb} MB).",
            error_code="LIMIT_FILE_SIZE",
            details={"fileName": file_name, "maxSizeMb": max_size_mb},
        )


class PermissionDeniedError(AssetError):
    """Raised when the uploading user may not write to the document."""

    status_code = 403


class StorageInconsistencyError(AssetError):
    """
    Raised when a blob could not be removed from the content store.

    Never fatal: callers log it and move on, leaving the blob for a sweep.
    """

    status_code = 500

    def __init__(self, key: str, reason: str):
        super().__init__(
            f"Failed to delete blob {key}: {reason}",
            error_code="STORAGE_INCONSISTENCY",
            details={"key": key, "reason": reason},
        )
