"""
Custom Exceptions.

Application-specific exception classes for consistent error handling.
"""


class ApplicationError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, code: str = "SYS_INTERNAL_ERROR") -> None:
        self.message = message
        self.code = code
        super().__init__(self.message)


class NotFoundError(ApplicationError):
    """Raised when a resource cannot be found."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, code="RES_NOT_FOUND")


class ValidationError(ApplicationError):
    """Raised when validation fails."""

    def __init__(self, message: str = "Validation failed", details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message, code="VAL_VALIDATION_ERROR")


class AuthenticationError(ApplicationError):
    """Raised when sign-in or sign-up is refused by the auth provider."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, code="AUTH_UNAUTHORIZED")


class AuthRequired(ApplicationError):
    """Raised when a mutation is attempted without a signed-in user."""

    def __init__(self, message: str = "Login required") -> None:
        super().__init__(message, code="AUTH_REQUIRED")


class AuthorizationError(ApplicationError):
    """Raised when a user acts on a resource they do not own."""

    def __init__(self, message: str = "Permission denied") -> None:
        super().__init__(message, code="AUTHZ_FORBIDDEN")


class ConflictError(ApplicationError):
    """Raised when there is a state conflict."""

    def __init__(self, message: str = "Resource conflict") -> None:
        super().__init__(message, code="RES_CONFLICT")


class FetchError(ApplicationError):
    """Raised when a read from the row store fails."""

    def __init__(self, message: str = "Fetch failed") -> None:
        super().__init__(message, code="CAT_FETCH_FAILED")


class MutationError(ApplicationError):
    """Raised when a write fails after an optimistic apply."""

    def __init__(self, message: str = "Mutation failed") -> None:
        super().__init__(message, code="MUT_FAILED")


class ExternalServiceError(ApplicationError):
    """Raised when an external service call fails."""

    def __init__(self, message: str = "External service error", code: str = "SYS_EXTERNAL_SERVICE_ERROR") -> None:
        super().__init__(message, code=code)


class RowStoreError(ExternalServiceError):
    """Raised when the row store rejects a query or mutation."""

    def __init__(self, message: str = "Row store error", status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message, code="SYS_ROW_STORE_ERROR")


class StorageError(ExternalServiceError):
    """Raised when an object store operation fails."""

    def __init__(self, message: str = "Storage error", status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message, code="SYS_STORAGE_ERROR")
