"""Connection and transaction scoping for relational stores."""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from .exceptions import NoActiveTransactionError, NotConnectedError, TransactionStateError
from .logging_config import get_logger
from .protocols import RelationalStore
from .settings import GatewaySettings


class TransactionState:
    """
    Connection/transaction bookkeeping shared by relational drivers.

    At most one transaction is open per connection; queries need an open
    connection and, when ``require_transaction`` is set, an open transaction.
    """

    def __init__(self, require_transaction: bool = True):
        self.require_transaction = require_transaction
        self.connected = False
        self.in_transaction = False

    def check_connected(self) -> None:
        if not self.connected:
            raise NotConnectedError("No open database connection")

    def check_can_begin(self) -> None:
        self.check_connected()
        if self.in_transaction:
            raise TransactionStateError("A transaction is already open on this connection")

    def check_in_transaction(self) -> None:
        self.check_connected()
        if not self.in_transaction:
            raise NoActiveTransactionError("No open transaction on this connection")

    def check_can_query(self) -> None:
        self.check_connected()
        if self.require_transaction and not self.in_transaction:
            raise NoActiveTransactionError(
                "Queries must run inside a transaction; call begin() first"
            )

    def reset(self) -> None:
        self.connected = False
        self.in_transaction = False


@asynccontextmanager
async def connection(
    store: RelationalStore, settings: GatewaySettings
) -> AsyncIterator[RelationalStore]:
    """Open a connection from the settings and always close it."""
    password: Optional[str] = (
        settings.password.get_secret_value() if settings.password is not None else None
    )
    await store.connect(
        settings.host,
        settings.port,
        settings.require("database"),
        settings.require("username"),
        password,
    )
    try:
        yield store
    finally:
        await store.close()


@asynccontextmanager
async def transaction(store: RelationalStore) -> AsyncIterator[Any]:
    """
    Run the block inside a transaction: commit on success, rollback and
    re-raise on any error.
    """
    logger = get_logger("transactions")
    await store.begin()
    try:
        yield store
    except BaseException as error:
        try:
            await store.rollback()
        except Exception as rollback_error:  # noqa: BLE001
            logger.error(f"Rollback failed after '{error}': {rollback_error}")
        else:
            logger.info(f"Transaction rolled back: {error}")
        raise
    else:
        await store.commit()
