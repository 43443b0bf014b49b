"""Unit tests for the in-memory fakes used across the suite."""

import asyncio

import pytest

from multicloud_gateway.core.exceptions import (
    NoActiveTransactionError,
    NotConnectedError,
    NotFoundError,
    QueryError,
    TransportError,
)
from multicloud_gateway.core.models import ObjectLocator
from multicloud_gateway.core.repositories import SQL_FIND_ALL, SQL_INSERT
from multicloud_gateway.testing.fakes import (
    FakeLogger,
    InMemoryObjectStore,
    InMemoryQueue,
    InMemoryRelationalStore,
    create_test_image,
    s3_event,
    setup_test_object_store,
)


class TestInMemoryObjectStore:
    """Tests for InMemoryObjectStore."""

    def test_put_then_get(self):
        store = InMemoryObjectStore()
        store.create_bucket("b")
        locator = ObjectLocator(bucket="b", key="k")

        asyncio.run(store.put(locator, b"data", "text/plain"))

        assert asyncio.run(store.get(locator)) == b"data"
        assert store.get_bucket("b").get_object("k").content_type == "text/plain"
        assert store.operations == [("put", locator), ("get", locator)]

    def test_missing_object(self):
        store = setup_test_object_store()
        with pytest.raises(NotFoundError):
            asyncio.run(store.get(ObjectLocator(bucket="test-bucket", key="nope")))

    def test_missing_bucket(self):
        with pytest.raises(NotFoundError):
            asyncio.run(InMemoryObjectStore().get(ObjectLocator(bucket="x", key="k")))

    def test_fail_on(self):
        store = setup_test_object_store()
        locator = ObjectLocator(bucket="test-bucket", key="test.txt")
        store.fail_on("get", locator, TransportError("flaky"))
        with pytest.raises(TransportError):
            asyncio.run(store.get(locator))

    def test_parse_creation_notification(self):
        store = InMemoryObjectStore()
        assert store.parse_creation_notification(s3_event(("b", "images/a.png"))) == [
            ObjectLocator(bucket="b", key="images/a.png")
        ]


class TestInMemoryQueue:
    """Tests for InMemoryQueue."""

    def test_records_messages(self):
        queue = InMemoryQueue()
        asyncio.run(queue.send("one"))
        asyncio.run(queue.send("two"))
        assert queue.messages == ["one", "two"]

    def test_failure_mode(self):
        queue = InMemoryQueue()
        queue.set_failure_mode(True, "queue down")
        with pytest.raises(TransportError, match="queue down"):
            asyncio.run(queue.send("one"))
        assert queue.messages == []


class TestInMemoryRelationalStore:
    """Tests for InMemoryRelationalStore."""

    def test_query_requires_connection(self):
        with pytest.raises(NotConnectedError):
            asyncio.run(InMemoryRelationalStore().query(SQL_FIND_ALL))

    def test_query_requires_transaction(self):
        async def scenario():
            store = InMemoryRelationalStore()
            await store.connect("h", 5432, "d", "u", None)
            await store.query(SQL_FIND_ALL)

        with pytest.raises(NoActiveTransactionError):
            asyncio.run(scenario())

    def test_writes_are_visible_after_commit_only(self):
        async def scenario():
            store = InMemoryRelationalStore()
            await store.connect("h", 5432, "d", "u", None)
            await store.begin()
            await store.query(SQL_INSERT, ["id-1", "d", None, 1])
            await store.rollback()
            await store.begin()
            await store.query(SQL_INSERT, ["id-2", "d", None, 1])
            await store.commit()
            return store

        store = asyncio.run(scenario())
        assert list(store.committed) == ["id-2"]
        assert store.rollback_count == 1

    def test_duplicate_and_unknown_statements(self):
        async def scenario(statements):
            store = InMemoryRelationalStore(require_transaction=False)
            await store.connect("h", 5432, "d", "u", None)
            for sql, params in statements:
                await store.query(sql, params)

        with pytest.raises(QueryError, match="duplicate key"):
            asyncio.run(scenario([(SQL_INSERT, ["a", "d", None, 1])] * 2))
        with pytest.raises(QueryError, match="unsupported statement"):
            asyncio.run(scenario([("DROP TABLE task", [])]))


class TestFakeLogger:
    """Tests for FakeLogger."""

    def test_get_logs_by_level(self):
        logger = FakeLogger()
        logger.info("hello", extra_field=1)
        logger.error("oops")
        assert [log["message"] for log in logger.get_logs("ERROR")] == ["oops"]
        assert logger.get_logs()[0]["extra_field"] == 1


def test_create_test_image_is_decodable():
    from PIL import Image
    import io

    image = Image.open(io.BytesIO(create_test_image(30, 20, "JPEG")))
    assert image.size == (30, 20)
    assert image.format == "JPEG"
