"""
Domain exceptions for LeakWatch services.

Services raise these; only the API layer translates them into HTTP
responses. Storage errors are never wrapped in these types.
"""

from typing import Any


class LeakWatchError(Exception):
    """Base exception for all domain errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class Unauthenticated(LeakWatchError):
    """Raised when a credential is missing, malformed, expired or unknown."""

    def __init__(
        self,
        message: str = "Authentication required",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)


class Forbidden(LeakWatchError):
    """
    Raised when a valid identity may not perform an operation.

    Attributes:
        operation: Name of the rejected operation, if known
    """

    def __init__(
        self,
        message: str = "Permission denied",
        operation: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.operation = operation


class ValidationError(LeakWatchError):
    """
    Raised when input is malformed or required fields are missing.

    Attributes:
        fields: Names of the offending fields
    """

    def __init__(
        self,
        message: str,
        fields: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.fields = fields or []


class NotFound(LeakWatchError):
    """
    Raised when a report or user does not exist (or is outside the caller's scope).

    Attributes:
        entity: Kind of entity looked up ("report", "user")
        entity_id: Identifier that was not found
    """

    def __init__(
        self,
        entity: str,
        entity_id: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"{entity.capitalize()} not found", details)
        self.entity = entity
        self.entity_id = entity_id


class InvalidTransition(LeakWatchError):
    """
    Raised when a status change moves a report backwards.

    Attributes:
        current: Status the report is in
        target: Status that was requested
    """

    def __init__(
        self,
        current: str,
        target: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f"Cannot move report from {current} to {target}",
            details,
        )
        self.current = current
        self.target = target
