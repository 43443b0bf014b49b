"""PostgreSQL driver over a single asyncpg connection."""

import re
from typing import Any, Awaitable, Callable, Optional, Sequence

import asyncpg

from ..core.error_handling import with_error_handling
from ..core.exceptions import GatewayError, QueryError, TransportError
from ..core.logging_config import get_logger
from ..core.models import QueryResult
from ..core.protocols import RelationalStore
from ..core.transactions import TransactionState

_STATUS_COUNT = re.compile(r"(\d+)\s*$")


def translate_postgres_error(error: Exception, operation: str) -> GatewayError:
    """Server-reported errors become QueryError, everything else TransportError."""
    if isinstance(error, asyncpg.PostgresError):
        return QueryError(str(error))
    if isinstance(error, (asyncpg.InterfaceError, OSError)):
        return TransportError(f"{operation} failed: {error}")
    return TransportError(f"{operation} failed: {type(error).__name__}: {error}")


def _status_count(status: str) -> int:
    """Affected rows from a command tag such as "UPDATE 3" or "INSERT 0 1"."""
    match = _STATUS_COUNT.search(status or "")
    return int(match.group(1)) if match else 0


class PostgresStore(RelationalStore):
    """
    RelationalStore backed by asyncpg.

    Args:
        require_transaction: Reject queries issued outside begin()/commit()
        connect: Coroutine function opening the connection (asyncpg.connect)
        timeout: Deadline in seconds applied to every call
    """

    def __init__(
        self,
        require_transaction: bool = True,
        connect: Callable[..., Awaitable[Any]] = asyncpg.connect,
        timeout: Optional[float] = None,
    ):
        self._connect = connect
        self._timeout = timeout
        self._connection: Any = None
        self._transaction: Any = None
        self._state = TransactionState(require_transaction)
        self._logger = get_logger("drivers.postgres")

    @with_error_handling(translate_postgres_error)
    async def connect(
        self,
        host: str,
        port: int,
        database: str,
        username: str,
        password: Optional[str],
    ) -> None:
        if self._state.connected:
            raise TransportError("A connection is already open; close() it first")
        self._logger.debug(f"Connecting to postgresql://{username}@{host}:{port}/{database}")
        self._connection = await self._connect(
            host=host, port=port, database=database, user=username, password=password
        )
        self._state.connected = True

    @with_error_handling(translate_postgres_error)
    async def close(self) -> None:
        if self._connection is None:
            return
        connection = self._connection
        self._connection = None
        self._transaction = None
        self._state.reset()
        await connection.close()

    @with_error_handling(translate_postgres_error)
    async def begin(self) -> None:
        self._state.check_can_begin()
        transaction = self._connection.transaction()
        await transaction.start()
        self._transaction = transaction
        self._state.in_transaction = True

    @with_error_handling(translate_postgres_error)
    async def commit(self) -> None:
        self._state.check_in_transaction()
        transaction = self._transaction
        self._transaction = None
        self._state.in_transaction = False
        await transaction.commit()

    @with_error_handling(translate_postgres_error)
    async def rollback(self) -> None:
        self._state.check_in_transaction()
        transaction = self._transaction
        self._transaction = None
        self._state.in_transaction = False
        await transaction.rollback()

    @with_error_handling(translate_postgres_error)
    async def query(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        self._state.check_can_query()
        # Result columns, not the SQL text, mark a row-returning statement
        statement = await self._connection.prepare(sql)
        records = await statement.fetch(*params)
        if statement.get_attributes():
            rows = [dict(record) for record in records]
            return QueryResult(rows=rows, count=len(rows))

        return QueryResult(rows=[], count=_status_count(statement.get_statusmsg()))
