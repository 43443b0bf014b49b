"""Tests for the OSS and MNS drivers."""

import asyncio
import io
import json

import oss2
import pytest

from multicloud_gateway.core.exceptions import (
    AccessDeniedError,
    MalformedEventError,
    NotFoundError,
    TransportError,
)
from multicloud_gateway.core.models import ObjectLocator
from multicloud_gateway.drivers.alibaba import (
    MnsQueue,
    MnsTopic,
    OssObjectStore,
    mns_endpoint,
    oss_endpoint,
    translate_mns_error,
    translate_oss_error,
)
from multicloud_gateway.testing.fakes import oss_event


def oss_server_error(status, code, message="details"):
    return oss2.exceptions.ServerError(status, {}, b"", {"Code": code, "Message": message})


class FakeOssBucket:
    """Minimal stand-in for oss2.Bucket."""

    def __init__(self, name):
        self.name = name
        self.objects = {}
        self.headers = {}
        self.error = None

    def get_object(self, key):
        if self.error is not None:
            raise self.error
        if key not in self.objects:
            raise oss_server_error(404, "NoSuchKey", "The specified key does not exist.")
        return io.BytesIO(self.objects[key])

    def put_object(self, key, data, headers=None):
        if self.error is not None:
            raise self.error
        self.objects[key] = data
        self.headers[key] = headers or {}


class FakeMnsError(Exception):
    """Shaped like the MNS SDK exceptions: a ``type`` and a ``message``."""

    def __init__(self, type, message):
        super().__init__(f"{type}: {message}")
        self.type = type
        self.message = message


class FakeMnsMessage:
    def __init__(self, body):
        self.message_body = body


class FakeMnsEndpoint:
    """Records send_message / publish_message calls."""

    def __init__(self, error=None):
        self.messages = []
        self.error = error

    def _deliver(self, message):
        if self.error is not None:
            raise self.error
        self.messages.append(message.message_body)
        return type("Response", (), {"message_id": f"id-{len(self.messages)}"})()

    send_message = _deliver
    publish_message = _deliver


@pytest.fixture
def buckets():
    return {}


@pytest.fixture
def store(buckets):
    def bucket_factory(name):
        buckets[name] = FakeOssBucket(name)
        return buckets[name]

    return OssObjectStore(bucket_factory)


class TestParseOssNotification:
    """Tests for decoding OSS object created events."""

    def test_json_bytes(self, store):
        event = oss_event(("photos", "images/a.png"), ("photos", "images/b.png"))
        assert store.parse_creation_notification(event) == [
            ObjectLocator(bucket="photos", key="images/a.png"),
            ObjectLocator(bucket="photos", key="images/b.png"),
        ]

    def test_decoded_payload(self, store):
        event = json.loads(oss_event(("photos", "images/a.png")))
        assert store.parse_creation_notification(event)[0].key == "images/a.png"

    @pytest.mark.parametrize(
        "event", [b"not json", b'{"Records": []}', '{"events": [{"oss": {}}]}', 42]
    )
    def test_malformed_events(self, store, event):
        with pytest.raises(MalformedEventError):
            store.parse_creation_notification(event)


class TestOssObjectStore:
    """Tests for OssObjectStore."""

    def test_put_then_get(self, store, buckets):
        locator = ObjectLocator(bucket="photos", key="thumbnails/a.png")

        asyncio.run(store.put(locator, b"thumb", "image/png"))

        assert buckets["photos"].headers["thumbnails/a.png"] == {"Content-Type": "image/png"}
        assert asyncio.run(store.get(locator)) == b"thumb"

    def test_bucket_is_created_once(self, store, buckets):
        locator = ObjectLocator(bucket="photos", key="a")
        asyncio.run(store.put(locator, b"1", "text/plain"))
        first = buckets["photos"]
        asyncio.run(store.put(locator, b"2", "text/plain"))
        assert buckets["photos"] is first

    def test_missing_object(self, store):
        with pytest.raises(NotFoundError, match="NoSuchKey"):
            asyncio.run(store.get(ObjectLocator(bucket="photos", key="missing.png")))

    def test_access_denied(self, store, buckets):
        locator = ObjectLocator(bucket="photos", key="a")
        asyncio.run(store.put(locator, b"1", "text/plain"))
        buckets["photos"].error = oss_server_error(403, "AccessDenied")
        with pytest.raises(AccessDeniedError):
            asyncio.run(store.get(locator))


class TestMnsDrivers:
    """Tests for MnsQueue and MnsTopic."""

    def test_queue_send(self):
        endpoint = FakeMnsEndpoint()
        asyncio.run(MnsQueue(endpoint, FakeMnsMessage).send('{"a": 1}'))
        assert endpoint.messages == ['{"a": 1}']

    def test_topic_publish(self):
        endpoint = FakeMnsEndpoint()
        asyncio.run(MnsTopic(endpoint, FakeMnsMessage).send("sample-content"))
        assert endpoint.messages == ["sample-content"]

    def test_unknown_queue(self):
        endpoint = FakeMnsEndpoint(FakeMnsError("QueueNotExist", "The queue name you provided is not exist."))
        with pytest.raises(NotFoundError, match="QueueNotExist"):
            asyncio.run(MnsQueue(endpoint, FakeMnsMessage).send("m"))

    def test_network_failure(self):
        endpoint = FakeMnsEndpoint(FakeMnsError("NetworkException", "connection refused"))
        with pytest.raises(TransportError):
            asyncio.run(MnsTopic(endpoint, FakeMnsMessage).send("m"))


class TestTranslation:
    """Tests for the OSS and MNS error translators."""

    @pytest.mark.parametrize(
        "status, code, expected",
        [
            (404, "NoSuchBucket", NotFoundError),
            (403, "InvalidAccessKeyId", AccessDeniedError),
            (503, "ServiceUnavailable", TransportError),
        ],
    )
    def test_oss_status(self, status, code, expected):
        error = translate_oss_error(oss_server_error(status, code, "details"), "get")
        assert type(error) is expected
        assert str(error) == f"get failed: {code}: details"

    def test_oss_non_sdk_error(self):
        assert isinstance(translate_oss_error(ConnectionError("reset"), "put"), TransportError)

    @pytest.mark.parametrize(
        "error_type, expected",
        [
            ("TopicNotExist", NotFoundError),
            ("AccessDenied", AccessDeniedError),
            ("SecurityTokenExpired", AccessDeniedError),
            ("InternalError", TransportError),
        ],
    )
    def test_mns_types(self, error_type, expected):
        assert type(translate_mns_error(FakeMnsError(error_type, "m"), "send")) is expected

    def test_mns_error_without_type(self):
        error = translate_mns_error(OSError("unreachable"), "send")
        assert isinstance(error, TransportError)
        assert "OSError" in str(error)


def test_endpoints():
    assert oss_endpoint("cn-shanghai") == "https://oss-cn-shanghai.aliyuncs.com"
    assert oss_endpoint("cn-shanghai", internal=True) == (
        "https://oss-cn-shanghai-internal.aliyuncs.com"
    )
    assert mns_endpoint("1234", "cn-hangzhou") == "https://1234.mns.cn-hangzhou.aliyuncs.com"
