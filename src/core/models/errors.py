"""Custom exception classes for the image pipeline."""

from typing import Any

from core.utils.constants import (
    ERROR_CODE_CONFIGURATION,
    ERROR_CODE_DEPENDENCY_FAILED,
    ERROR_CODE_DYNAMODB,
    ERROR_CODE_NOTIFICATION_FAILED,
    ERROR_CODE_PARSE_FAILED,
    ERROR_CODE_QUEUE,
    ERROR_CODE_RESOURCE_NOT_FOUND,
    ERROR_CODE_S3,
    ERROR_CODE_VALIDATION_FAILED,
)


class PipelineError(Exception):
    """
    Base exception for all pipeline errors.

    All custom errors must inherit from this class.
    Callers must explicitly provide a message and error code.
    Optional contextual information can be supplied via `details`.
    """

    message: str
    error_code: str
    details: dict[str, Any]

    def __init__(
        self,
        *,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}

        super().__init__(self.message)


class ParseError(PipelineError):
    """Raised when an inbound envelope is malformed or unrecognized.

    A parse error isolates the single offending event; sibling events in the
    same batch keep processing.
    """

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_PARSE_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class ValidationError(PipelineError):
    """Raised when an event is rejected by a business rule."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_VALIDATION_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class NotFoundError(PipelineError):
    """Raised when a requested resource is not found."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_RESOURCE_NOT_FOUND,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class DependencyError(PipelineError):
    """Raised when a store or transport call fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_DEPENDENCY_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class MetadataStoreError(DependencyError):
    """Raised when a metadata store operation fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_DYNAMODB,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class StorageError(DependencyError):
    """Raised when a blob store operation fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_S3,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class NotificationError(DependencyError):
    """Raised when the notification transport rejects a message."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_NOTIFICATION_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class QueueError(DependencyError):
    """Raised when the delivery queue transport fails."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_QUEUE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )


class ConfigurationError(PipelineError):
    """Raised at startup when required process configuration is missing."""

    def __init__(
        self,
        *,
        message: str,
        error_code: str = ERROR_CODE_CONFIGURATION,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            error_code=error_code,
            details=details,
        )
