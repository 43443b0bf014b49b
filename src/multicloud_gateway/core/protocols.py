"""Capability interfaces implemented by the provider drivers."""

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Protocol, Sequence

from .models import ObjectLocator, QueryResult


class LoggerProtocol(Protocol):
    """Protocol for logging operations."""

    def debug(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log debug message."""
        ...

    def info(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log info message."""
        ...

    def warning(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log warning message."""
        ...

    def error(self, message: str, context: Any = None, **kwargs: Any) -> None:
        """Log error message."""
        ...


class ObjectStore(ABC):
    """Read and write objects in an object storage service such as S3 or OSS."""

    @abstractmethod
    def parse_creation_notification(self, raw_event: Any) -> List[ObjectLocator]:
        """
        Decode the "object created" notification passed to the function.

        Raises:
            MalformedEventError: If the payload does not match the provider shape.
        """
        ...

    @abstractmethod
    async def get(self, locator: ObjectLocator) -> bytes:
        """
        Load the whole object.

        Raises:
            NotFoundError, AccessDeniedError, TransportError
        """
        ...

    @abstractmethod
    async def put(self, locator: ObjectLocator, data: bytes, content_type: str) -> None:
        """
        Save the object, replacing any existing one.

        Raises:
            AccessDeniedError, TransportError
        """
        ...


class Queue(ABC):
    """Send messages to a queue or a topic."""

    @abstractmethod
    async def send(self, message: str) -> None:
        """
        Send one message.

        Raises:
            TransportError
        """
        ...


class RelationalStore(ABC):
    """
    Execute parameterized SQL within an explicit connection and transaction.

    Lifecycle: connect -> begin -> query* -> commit | rollback -> close.
    """

    @abstractmethod
    async def connect(
        self,
        host: str,
        port: int,
        database: str,
        username: str,
        password: Optional[str],
    ) -> None:
        """Open a connection. Callers must close() it."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the current connection."""
        ...

    @abstractmethod
    async def begin(self) -> None:
        """
        Start a new transaction.

        Raises:
            NotConnectedError, TransactionStateError
        """
        ...

    @abstractmethod
    async def commit(self) -> None:
        """Commit the current transaction."""
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    @abstractmethod
    async def query(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        """
        Execute a statement with positional ($1, $2, ...) parameters.

        Raises:
            NotConnectedError, NoActiveTransactionError, QueryError
        """
        ...
