"""Alibaba Cloud drivers: OSS object storage, MNS queues and MNS topics.

The oss2 and MNS SDKs are blocking, so every call runs in a worker thread.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional

import oss2
from pydantic import BaseModel, ValidationError

from ..core.error_handling import with_error_handling
from ..core.exceptions import (
    AccessDeniedError,
    GatewayError,
    MalformedEventError,
    NotFoundError,
    TransportError,
)
from ..core.logging_config import get_logger
from ..core.models import ObjectLocator
from ..core.protocols import ObjectStore, Queue

MNS_NOT_FOUND_TYPES = {"QueueNotExist", "TopicNotExist", "NotFound"}
MNS_ACCESS_DENIED_TYPES = {
    "AccessDenied",
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
    "SecurityTokenExpired",
}


def translate_oss_error(error: Exception, operation: str) -> GatewayError:
    """Map oss2 exceptions onto the gateway error kinds using the HTTP status."""
    if isinstance(error, oss2.exceptions.OssError):
        description = f"{operation} failed: {error.code or error.status}: {error.message}"
        if error.status == 404:
            return NotFoundError(description)
        if error.status == 403:
            return AccessDeniedError(description)
        return TransportError(description)
    return TransportError(f"{operation} failed: {type(error).__name__}: {error}")


def translate_mns_error(error: Exception, operation: str) -> GatewayError:
    """Map MNS exceptions (which carry an error ``type``) onto the gateway error kinds."""
    error_type = getattr(error, "type", None)
    message = getattr(error, "message", None) or str(error)
    description = f"{operation} failed: {error_type or type(error).__name__}: {message}"
    if error_type in MNS_NOT_FOUND_TYPES:
        return NotFoundError(description)
    if error_type in MNS_ACCESS_DENIED_TYPES:
        return AccessDeniedError(description)
    return TransportError(description)


class _OssBucket(BaseModel):
    name: str


class _OssObject(BaseModel):
    key: str


class _OssEntity(BaseModel):
    bucket: _OssBucket
    object: _OssObject


class _OssEvent(BaseModel):
    oss: _OssEntity


class OssNotification(BaseModel):
    """Shape of the event OSS passes to a function on object creation."""

    events: List[_OssEvent]


class OssObjectStore(ObjectStore):
    """
    ObjectStore backed by oss2.

    Args:
        bucket_factory: Returns the oss2.Bucket (or a compatible object) for a
            bucket name; buckets are created once and reused.
    """

    def __init__(self, bucket_factory: Callable[[str], Any], timeout: Optional[float] = None):
        self._bucket_factory = bucket_factory
        self._buckets: Dict[str, Any] = {}
        self._timeout = timeout
        self._logger = get_logger("drivers.oss")

    def _use_bucket(self, name: str) -> Any:
        if name not in self._buckets:
            self._buckets[name] = self._bucket_factory(name)
        return self._buckets[name]

    def parse_creation_notification(self, raw_event: Any) -> List[ObjectLocator]:
        try:
            if isinstance(raw_event, (bytes, bytearray, str)):
                notification = OssNotification.model_validate_json(raw_event)
            else:
                notification = OssNotification.model_validate(raw_event)
        except ValidationError as e:
            raise MalformedEventError(f"Not an OSS object created event: {e}") from e

        return [
            ObjectLocator(bucket=event.oss.bucket.name, key=event.oss.object.key)
            for event in notification.events
        ]

    @with_error_handling(translate_oss_error)
    async def get(self, locator: ObjectLocator) -> bytes:
        self._logger.debug(f"Downloading oss://{locator}")
        bucket = self._use_bucket(locator.bucket)

        def _read() -> bytes:
            return bucket.get_object(locator.key).read()

        return await asyncio.to_thread(_read)

    @with_error_handling(translate_oss_error)
    async def put(self, locator: ObjectLocator, data: bytes, content_type: str) -> None:
        self._logger.debug(f"Uploading oss://{locator} ({len(data)} bytes)")
        bucket = self._use_bucket(locator.bucket)
        await asyncio.to_thread(
            bucket.put_object, locator.key, data, headers={"Content-Type": content_type}
        )


class MnsQueue(Queue):
    """
    Queue backed by an MNS queue.

    Args:
        mns_queue: ``mns.queue.Queue`` (or compatible) instance
        message_type: Message class accepted by ``send_message``
    """

    def __init__(self, mns_queue: Any, message_type: Callable[[str], Any], timeout: Optional[float] = None):
        self._mns_queue = mns_queue
        self._message_type = message_type
        self._timeout = timeout
        self._logger = get_logger("drivers.mns")

    @with_error_handling(translate_mns_error)
    async def send(self, message: str) -> None:
        response = await asyncio.to_thread(
            self._mns_queue.send_message, self._message_type(message)
        )
        self._logger.debug(
            f"Message sent to queue ({getattr(response, 'message_id', None)})"
        )


class MnsTopic(Queue):
    """Queue contract implemented by publishing to an MNS topic."""

    def __init__(self, mns_topic: Any, message_type: Callable[[str], Any], timeout: Optional[float] = None):
        self._mns_topic = mns_topic
        self._message_type = message_type
        self._timeout = timeout
        self._logger = get_logger("drivers.mns")

    @with_error_handling(translate_mns_error)
    async def send(self, message: str) -> None:
        response = await asyncio.to_thread(
            self._mns_topic.publish_message, self._message_type(message)
        )
        self._logger.debug(
            f"Message published to topic ({getattr(response, 'message_id', None)})"
        )


def oss_endpoint(region: str, internal: bool = False) -> str:
    """Public or VPC endpoint of OSS in a region ("cn-shanghai")."""
    suffix = "-internal" if internal else ""
    return f"https://oss-{region}{suffix}.aliyuncs.com"


def mns_endpoint(account_id: str, region: str) -> str:
    return f"https://{account_id}.mns.{region}.aliyuncs.com"

