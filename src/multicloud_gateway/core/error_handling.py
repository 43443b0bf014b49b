# src/multicloud_gateway/core/error_handling.py

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from .exceptions import GatewayError, TransportError

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

Translator = Callable[[Exception, str], GatewayError]


def with_error_handling(translate: Translator) -> Callable[[F], F]:
    """
    Decorator for async driver methods: applies the call deadline and
    normalizes backend exceptions into the gateway taxonomy.

    The deadline is read from the ``_timeout`` attribute of the driver
    instance (seconds, ``None`` for no deadline). ``translate`` receives the
    backend exception and a description of the operation and returns the
    GatewayError to raise; the backend exception is chained as its cause.
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> Any:
            logger = logging.getLogger(func.__module__ + "." + func.__qualname__)
            timeout: Optional[float] = getattr(self, "_timeout", None)
            operation = func.__name__
            try:
                return await asyncio.wait_for(func(self, *args, **kwargs), timeout)
            except GatewayError:
                raise
            except asyncio.TimeoutError as e:
                logger.error(f"'{operation}' exceeded its deadline of {timeout}s")
                raise TransportError(
                    f"{operation} timed out after {timeout}s"
                ) from e
            except Exception as e:
                logger.error(f"Error in '{operation}': {e}", exc_info=True)
                raise translate(e, operation) from e

        return wrapper  # type: ignore[return-value]

    return decorator


class BatchOperationContextManager:
    """
    Context manager for batch operations to collect and summarize errors.
    """

    def __init__(self, operation_name: str = "Batch Operation"):
        self.operation_name = operation_name
        self.errors: List[Dict[str, str]] = []
        self.logger = logging.getLogger(
            self.__class__.__module__ + "." + self.__class__.__name__
        )

    def __enter__(self) -> "BatchOperationContextManager":
        self.logger.info(f"Starting {self.operation_name}.")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if self.errors:
            self.logger.warning(
                f"{self.operation_name} completed with {len(self.errors)} error(s)."
            )
            for i, error_detail in enumerate(self.errors):
                self.logger.error(
                    f"  Error {i + 1}/{len(self.errors)} for item "
                    f"'{error_detail['item']}': {error_detail['error']}"
                )
        elif exc_type:
            self.logger.error(
                f"{self.operation_name} failed due to an unhandled exception: {exc_val}",
                exc_info=(exc_type, exc_val, exc_tb),
            )
        else:
            self.logger.info(f"{self.operation_name} completed successfully.")

        return False

    def add_error(self, error_message: str, item_identifier: str = "Unknown item") -> None:
        """
        Report an error for a specific item.

        Args:
            error_message: The error message or exception string.
            item_identifier: A string identifying the item that failed.
        """
        self.errors.append({"item": item_identifier, "error": str(error_message)})
        self.logger.debug(
            f"Error added for item '{item_identifier}' in {self.operation_name}: {error_message}"
        )
