"""Testing utilities and fakes for the gateway."""

from .fakes import (
    FakeAsyncS3Client,
    FakeAsyncSQSClient,
    FakeBucket,
    FakeLogger,
    InMemoryObjectStore,
    InMemoryQueue,
    InMemoryRelationalStore,
    StoredObject,
    client_error,
    create_test_image,
    create_test_mpo,
    oss_event,
    s3_event,
    setup_test_object_store,
)

__all__ = [
    "FakeAsyncS3Client",
    "FakeAsyncSQSClient",
    "FakeBucket",
    "FakeLogger",
    "InMemoryObjectStore",
    "InMemoryQueue",
    "InMemoryRelationalStore",
    "StoredObject",
    "client_error",
    "create_test_image",
    "create_test_mpo",
    "oss_event",
    "s3_event",
    "setup_test_object_store",
]
