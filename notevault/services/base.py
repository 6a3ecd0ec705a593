"""
Base Service.

Base class for all services providing common patterns for business logic.
Services orchestrate repositories and clients, convert backend failures into
application errors, and implement business rules.

Usage:
    from notevault.services.base import BaseService

    class RequestService(BaseService):
        def __init__(self, requests: RequestRepository) -> None:
            super().__init__()
            self.requests = requests

        async def list_recent(self) -> list[RequestEntry]:
            return await self._execute_store_operation(
                "list_requests",
                self.requests.list_recent(),
                error_class=FetchError,
            )
"""

from collections.abc import Awaitable
from typing import Any, TypeVar

from notevault.core.exceptions import (
    ApplicationError,
    ExternalServiceError,
)
from notevault.core.logging import get_logger

T = TypeVar("T")


class BaseService:
    """
    Base class for all services.

    Provides:
    - Logging context
    - Error wrapping for backend operations
    """

    source: str = "internal"

    def __init__(self) -> None:
        self._logger = get_logger(self.__class__.__module__)

    async def _execute_store_operation(
        self,
        operation: str,
        coro: Awaitable[T],
        error_class: type[ApplicationError] = ExternalServiceError,
    ) -> T:
        """
        Execute a backend operation with error handling.

        Args:
            operation: Description of the operation for logging
            coro: Awaitable to execute
            error_class: Application error raised on backend failure

        Returns:
            Result of the awaitable

        Raises:
            error_class: When the row store or object store fails
        """
        try:
            return await coro
        except ExternalServiceError as e:
            self._logger.warning(
                "Backend operation failed",
                extra={
                    "service": self.__class__.__name__,
                    "operation": operation,
                    "error": e.message,
                    "source": self.source,
                },
            )
            raise error_class(f"{operation} failed: {e.message}") from e

    def _log_operation(
        self,
        operation: str,
        **context: Any,
    ) -> None:
        """Log a service operation with context."""
        self._logger.info(
            operation,
            extra={"service": self.__class__.__name__, "source": self.source, **context},
        )

    def _log_debug(
        self,
        message: str,
        **context: Any,
    ) -> None:
        """Log debug information."""
        self._logger.debug(
            message,
            extra={"service": self.__class__.__name__, "source": self.source, **context},
        )
