"""Core utilities and shared components of the gateway."""

from .exceptions import (
    AccessDeniedError,
    ConfigurationError,
    GatewayError,
    ImageProcessingError,
    InvocationError,
    MalformedEventError,
    NoActiveTransactionError,
    NotConnectedError,
    NotFoundError,
    QueryError,
    TransactionStateError,
    TransportError,
)
from .logging_config import get_logger, setup_logger
from .models import (
    BatchResult,
    ObjectLocator,
    QueryResult,
    Task,
    ThumbnailReport,
    TransformOutcome,
)
from .protocols import LoggerProtocol, ObjectStore, Queue, RelationalStore

__all__ = [
    "ObjectLocator",
    "TransformOutcome",
    "BatchResult",
    "ThumbnailReport",
    "Task",
    "QueryResult",
    "ObjectStore",
    "Queue",
    "RelationalStore",
    "LoggerProtocol",
    "setup_logger",
    "get_logger",
    "GatewayError",
    "NotFoundError",
    "AccessDeniedError",
    "TransportError",
    "MalformedEventError",
    "NotConnectedError",
    "NoActiveTransactionError",
    "TransactionStateError",
    "QueryError",
    "ImageProcessingError",
    "ConfigurationError",
    "InvocationError",
]
