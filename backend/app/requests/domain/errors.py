class DomainError(Exception):
    """Base domain error with a user-facing message."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class PermissionDenied(DomainError):
    """Raised when the user may not see or change the target."""


class NotFound(DomainError):
    """Raised when a referenced request or notification is missing."""


class InvalidRequest(DomainError):
    """Raised when submitted data fails validation."""
