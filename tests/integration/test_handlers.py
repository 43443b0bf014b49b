"""Integration tests for the function handlers, wired to in-memory drivers."""

import json
from contextlib import asynccontextmanager
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from multicloud_gateway import handlers
from multicloud_gateway.core.exceptions import (
    ConfigurationError,
    InvocationError,
    MalformedEventError,
    QueryError,
)
from multicloud_gateway.core.factories import DriverSet
from multicloud_gateway.core.repositories import SQL_UPDATE
from multicloud_gateway.core.settings import GatewaySettings
from multicloud_gateway.testing.fakes import (
    InMemoryQueue,
    InMemoryRelationalStore,
    s3_event,
    setup_test_object_store,
)


class Environment:
    """Drivers handed to the handlers instead of the cloud ones."""

    def __init__(self, provider="aws", with_topic=False):
        self.store = setup_test_object_store()
        self.queue = InMemoryQueue()
        self.topic = InMemoryQueue() if with_topic else None
        self.provider = provider
        self.opened_with = []

    @asynccontextmanager
    async def open_drivers(self, settings, context=None, provider=None):
        self.opened_with.append(provider)
        yield DriverSet(
            provider=provider or self.provider,
            object_store=self.store,
            queue=self.queue,
            topic=self.topic,
        )


@pytest.fixture
def settings():
    return GatewaySettings(
        cloud_provider="aws",
        queue_url="https://sqs.example/123/results",
        bucket_name="test-bucket",
        database="tasks",
        username="app",
    )


@pytest.fixture
def environment(settings):
    env = Environment()
    with patch.object(handlers, "open_drivers", env.open_drivers), patch.object(
        handlers, "get_settings", return_value=settings
    ):
        yield env


class TestThumbnailHandlers:
    """Tests for the thumbnail handlers."""

    def test_success_returns_the_result_message(self, environment):
        event = s3_event(("test-bucket", "images/photo1.png"), ("test-bucket", "images/photo2.jpg"))

        result = handlers.thumbnail_handler(event, SimpleNamespace(aws_request_id="req-1"))

        assert result == {
            "savedThumbnails": [
                {"bucket": "test-bucket", "key": "thumbnails/photo1.png"},
                {"bucket": "test-bucket", "key": "thumbnails/photo2.jpg"},
            ],
            "problematicImages": [],
        }
        assert json.loads(environment.queue.messages[0]) == result

    def test_failed_image_fails_the_invocation(self, environment):
        event = s3_event(
            ("test-bucket", "images/photo1.png"),
            ("test-bucket", "images/missing.png"),
            ("test-bucket", "images/photo3.png"),
        )

        with pytest.raises(InvocationError, match="Error when processing images") as excinfo:
            handlers.aws_thumbnail_handler(event, None)

        assert "images/missing.png" in str(excinfo.value)
        message = json.loads(environment.queue.messages[0])
        assert len(message["savedThumbnails"]) == 2
        assert environment.opened_with == ["aws"]

    def test_delivery_failure_fails_the_invocation(self, environment):
        environment.queue.set_failure_mode(True, "queue unavailable")

        with pytest.raises(InvocationError, match="Unable to send the result message"):
            handlers.thumbnail_handler(s3_event(("test-bucket", "images/photo1.png")), None)

        assert environment.store.get_bucket("test-bucket").get_object("thumbnails/photo1.png")

    def test_alibaba_handler_forces_the_provider(self, environment):
        handlers.alibaba_thumbnail_handler(s3_event(("test-bucket", "images/photo3.png")), None)
        assert environment.opened_with == ["alibaba"]

    def test_malformed_event(self, environment):
        with pytest.raises(MalformedEventError):
            handlers.thumbnail_handler({"unexpected": True}, None)
        assert environment.queue.messages == []

    def test_missing_queue_is_a_configuration_error(self, environment):
        environment.queue = None

        with pytest.raises(ConfigurationError, match="queueUrl"):
            handlers.thumbnail_handler(s3_event(("test-bucket", "images/photo1.png")), None)


class TestSampleHandlers:
    """Tests for the object storage, notification and task handlers."""

    def test_object_storage_handler(self, environment):
        result = handlers.object_storage_handler({}, None)

        assert result["read"] == "Hello from the test file"
        written = environment.store.get_bucket("test-bucket").get_object(result["written"])
        assert written.body == b"Sample content."

    def test_notification_handler_on_aws(self, environment):
        assert handlers.notification_handler({}, None) == {"delivered": ["queue"]}
        assert environment.queue.messages == ["Sample content"]

    def test_notification_handler_on_alibaba(self, settings):
        env = Environment(provider="alibaba", with_topic=True)
        with patch.object(handlers, "open_drivers", env.open_drivers), patch.object(
            handlers, "get_settings", return_value=settings
        ):
            result = handlers.notification_handler({}, None)

        assert result == {"delivered": ["topic", "queue"]}
        assert env.topic.messages == ["sample-content"]
        assert env.queue.messages == ["sample-content"]

    def test_postgres_handler(self, settings):
        store = InMemoryRelationalStore()
        with patch.object(handlers, "get_settings", return_value=settings), patch.object(
            handlers, "create_relational_store", return_value=store
        ):
            assert handlers.postgres_handler({}, None) == "success"

        assert store.committed == {}
        assert store.close_count == 1
        assert store.connect_params["database"] == "tasks"

    def test_postgres_handler_failure(self, settings):
        store = InMemoryRelationalStore()
        store.fail_on(SQL_UPDATE, QueryError("deadlock detected"))
        with patch.object(handlers, "get_settings", return_value=settings), patch.object(
            handlers, "create_relational_store", return_value=store
        ):
            with pytest.raises(QueryError, match="deadlock detected"):
                handlers.postgres_handler({}, None)

        assert store.rollback_count == 1
        assert store.close_count == 1
