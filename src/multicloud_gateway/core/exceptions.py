"""Exception taxonomy shared by every driver and service of the gateway."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from .logging_config import get_logger


class GatewayError(Exception):
    """Base exception for all gateway errors."""


class NotFoundError(GatewayError):
    """The requested object, queue or topic does not exist."""


class AccessDeniedError(GatewayError):
    """The backend refused the credentials or the operation."""


class TransportError(GatewayError):
    """Network, throttling, timeout or any other backend failure."""


class MalformedEventError(GatewayError):
    """A notification payload does not have the expected shape."""


class NotConnectedError(GatewayError):
    """A relational operation was issued without an open connection."""


class NoActiveTransactionError(GatewayError):
    """A relational operation requires a transaction that is not open."""


class TransactionStateError(GatewayError):
    """A transaction was started while another one is still open."""


class QueryError(GatewayError):
    """The database rejected a statement; the backend message is preserved."""


class ImageProcessingError(GatewayError):
    """An image could not be decoded, resized or encoded."""


class ConfigurationError(GatewayError):
    """A required setting is missing or invalid."""


class InvocationError(GatewayError):
    """A handler invocation finished with at least one failure."""


@contextmanager
def image_error_handler(key: str) -> Iterator[Any]:
    """Turn any error raised while manipulating an image into ImageProcessingError."""
    try:
        yield
    except GatewayError:
        raise
    except Exception as exc:  # noqa: BLE001
        get_logger("images").debug(f"[{key}] Image manipulation failed: {exc}")
        raise ImageProcessingError(f"{type(exc).__name__}: {exc}") from exc
