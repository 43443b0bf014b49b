"""AWS drivers: S3 object storage and SQS messaging over aioboto3 clients."""

from typing import Any, List, Optional
from urllib.parse import unquote_plus

from botocore.exceptions import BotoCoreError, ClientError
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

# Conditional import for type checking clients
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from types_aiobotocore_s3.client import S3Client
    from types_aiobotocore_sqs.client import SQSClient
else:
    S3Client = Any
    SQSClient = Any

NOT_FOUND_CODES = {
    "NoSuchKey",
    "NoSuchBucket",
    "NotFound",
    "404",
    "AWS.SimpleQueueService.NonExistentQueue",
    "QueueDoesNotExist",
}
ACCESS_DENIED_CODES = {
    "AccessDenied",
    "AccessDeniedException",
    "InvalidAccessKeyId",
    "SignatureDoesNotMatch",
    "ExpiredToken",
    "403",
}


def translate_boto_error(error: Exception, operation: str) -> GatewayError:
    """Map botocore exceptions onto the gateway error kinds."""
    if isinstance(error, ClientError):
        code = str(error.response.get("Error", {}).get("Code", ""))
        message = error.response.get("Error", {}).get("Message") or str(error)
        if code in NOT_FOUND_CODES:
            return NotFoundError(f"{operation} failed: {code}: {message}")
        if code in ACCESS_DENIED_CODES:
            return AccessDeniedError(f"{operation} failed: {code}: {message}")
        return TransportError(f"{operation} failed: {code}: {message}")
    if isinstance(error, BotoCoreError):
        return TransportError(f"{operation} failed: {error}")
    return TransportError(f"{operation} failed: {type(error).__name__}: {error}")


class _S3Bucket(BaseModel):
    name: str


class _S3Object(BaseModel):
    key: str


class _S3Entity(BaseModel):
    bucket: _S3Bucket
    object: _S3Object


class _S3Record(BaseModel):
    s3: _S3Entity


class S3Notification(BaseModel):
    """Shape of the event S3 passes to a function on object creation."""

    Records: List[_S3Record]


def parse_s3_notification(raw_event: Any) -> List[ObjectLocator]:
    """Locators of the objects listed in an S3 object created event."""
    try:
        notification = S3Notification.model_validate(raw_event)
    except ValidationError as e:
        raise MalformedEventError(f"Not an S3 object created event: {e}") from e

    # S3 URL-encodes keys in notifications
    return [
        ObjectLocator(
            bucket=record.s3.bucket.name,
            key=unquote_plus(record.s3.object.key),
        )
        for record in notification.Records
    ]


class S3ObjectStore(ObjectStore):
    """ObjectStore backed by an aioboto3 S3 client."""

    def __init__(self, s3_client: S3Client, timeout: Optional[float] = None):
        self._s3_client = s3_client
        self._timeout = timeout
        self._logger = get_logger("drivers.s3")

    def parse_creation_notification(self, raw_event: Any) -> List[ObjectLocator]:
        return parse_s3_notification(raw_event)

    @with_error_handling(translate_boto_error)
    async def get(self, locator: ObjectLocator) -> bytes:
        self._logger.debug(f"Downloading s3://{locator}")
        response = await self._s3_client.get_object(Bucket=locator.bucket, Key=locator.key)
        async with response["Body"] as stream:
            return await stream.read()

    @with_error_handling(translate_boto_error)
    async def put(self, locator: ObjectLocator, data: bytes, content_type: str) -> None:
        self._logger.debug(f"Uploading s3://{locator} ({len(data)} bytes)")
        await self._s3_client.put_object(
            Bucket=locator.bucket,
            Key=locator.key,
            Body=data,
            ContentType=content_type,
        )


class SqsQueue(Queue):
    """Queue backed by an aioboto3 SQS client."""

    def __init__(
        self,
        sqs_client: SQSClient,
        queue_url: str,
        delay_seconds: int = 10,
        timeout: Optional[float] = None,
    ):
        self._sqs_client = sqs_client
        self._queue_url = queue_url
        self._delay_seconds = delay_seconds
        self._timeout = timeout
        self._logger = get_logger("drivers.sqs")

    @with_error_handling(translate_boto_error)
    async def send(self, message: str) -> None:
        response = await self._sqs_client.send_message(
            QueueUrl=self._queue_url,
            MessageBody=message,
            DelaySeconds=self._delay_seconds,
        )
        self._logger.debug(f"Message sent to {self._queue_url} ({response.get('MessageId')})")
