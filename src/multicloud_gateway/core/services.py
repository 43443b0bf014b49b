"""Provider-agnostic services built on the capability interfaces."""

import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .error_handling import BatchOperationContextManager
from .exceptions import GatewayError, image_error_handler
from .image_utils import (
    DEFAULT_THUMBNAIL_PREFIX,
    DEFAULT_THUMBNAIL_SIZE,
    calculate_thumbnail_key,
    content_type_for,
    cover_resize,
    describe_image,
    encode_image,
    image_format,
    load_image,
)
from .models import BatchResult, ObjectLocator, ThumbnailReport, TransformOutcome
from .observability import LogContext
from .protocols import LoggerProtocol, ObjectStore, Queue


def describe_error(error: BaseException) -> str:
    """Human readable, single line description of an error."""
    message = str(error)
    if isinstance(error, GatewayError) and message:
        return message
    return f"{type(error).__name__}: {message}" if message else type(error).__name__


class ThumbnailService:
    """Transform uploaded images into thumbnails and report the results."""

    def __init__(
        self,
        object_store: ObjectStore,
        queue: Queue,
        logger: LoggerProtocol,
        size: Tuple[int, int] = DEFAULT_THUMBNAIL_SIZE,
        prefix: str = DEFAULT_THUMBNAIL_PREFIX,
    ):
        self._object_store = object_store
        self._queue = queue
        self._logger = logger
        self._size = size
        self._prefix = prefix

    async def transform_images_to_thumbnails(
        self, locators: Sequence[ObjectLocator]
    ) -> BatchResult:
        """
        Load, resize and store every image, one after the other.

        Exactly one outcome is produced per input locator, in input order. A
        failing image never stops the batch.
        """
        log_context = LogContext(component="thumbnail_service").with_metadata(
            batch_size=len(locators)
        )
        self._logger.info(
            f"Creating thumbnails for {[locator.key for locator in locators]}",
            log_context,
        )

        outcomes: List[TransformOutcome] = []
        with BatchOperationContextManager("Thumbnail batch") as batch:
            for locator in locators:
                outcome = await self._transform_one(locator, log_context)
                if not outcome.success:
                    batch.add_error(outcome.error, str(locator))
                outcomes.append(outcome)

        return BatchResult(outcomes=tuple(outcomes))

    async def _transform_one(
        self, locator: ObjectLocator, log_context: LogContext
    ) -> TransformOutcome:
        context = log_context.with_metadata(bucket=locator.bucket, key=locator.key)
        start_time = time.time()
        try:
            self._logger.debug("Downloading image", context.with_operation("download_image"))
            image_bytes = await self._object_store.get(locator)

            with image_error_handler(locator.key):
                image = load_image(image_bytes)
                self._logger.debug(
                    "Image decoded",
                    context.with_operation("decode_image"),
                    **describe_image(image),
                )
                format_name = image_format(image)
                thumbnail = cover_resize(image, *self._size)
                thumbnail_bytes = encode_image(thumbnail, format_name)

            destination = ObjectLocator(
                bucket=locator.bucket,
                key=calculate_thumbnail_key(locator.key, self._prefix),
            )
            self._logger.debug(
                "Uploading thumbnail",
                context.with_operation("upload_thumbnail"),
                destination=destination.key,
                size=len(thumbnail_bytes),
            )
            await self._object_store.put(
                destination, thumbnail_bytes, content_type_for(format_name)
            )
        except Exception as error:  # noqa: BLE001
            description = describe_error(error)
            self._logger.error(
                "Unable to create the thumbnail",
                context.with_metadata(error=description),
            )
            return TransformOutcome.failed(locator, description)

        self._logger.info(
            "Thumbnail saved",
            context,
            destination=destination.key,
            processing_time_ms=(time.time() - start_time) * 1000,
        )
        return TransformOutcome.succeeded(locator, destination)

    async def send_transformation_result(self, result: BatchResult) -> None:
        """Send the JSON encoded result into the default queue."""
        self._logger.info("Sending the result message into the default queue")
        await self._queue.send(result.to_json())
        self._logger.info("Result message sent with success")

    async def run(self, locators: Sequence[ObjectLocator]) -> ThumbnailReport:
        """Transform the images, then publish the batch result."""
        result = await self.transform_images_to_thumbnails(locators)

        delivery_error: Optional[str] = None
        try:
            await self.send_transformation_result(result)
        except GatewayError as error:
            delivery_error = describe_error(error)
            self._logger.error(
                "Unable to send the result message into the default queue",
                error=delivery_error,
            )

        return ThumbnailReport(batch=result, delivery_error=delivery_error)


class NotificationSampleService:
    """Send a sample message to every configured destination."""

    def __init__(self, destinations: Sequence[Tuple[str, Queue]], logger: LoggerProtocol):
        self._destinations = destinations
        self._logger = logger

    async def send_samples(self, message: str = "Sample content") -> List[str]:
        """Send to each destination in order; the first failure propagates."""
        delivered = []
        for name, queue in self._destinations:
            self._logger.info(f"Sending a sample message to {name}...")
            await queue.send(message)
            self._logger.info(f"Message sent to {name} with success")
            delivered.append(name)
        return delivered


class ObjectStorageSampleService:
    """Read a test file from a bucket, then write a generated one."""

    def __init__(self, object_store: ObjectStore, bucket: str, logger: LoggerProtocol):
        self._object_store = object_store
        self._bucket = bucket
        self._logger = logger

    async def read_and_write(
        self, test_key: str = "test.txt", content: bytes = b"Sample content."
    ) -> Dict[str, Any]:
        self._logger.info("Read the test file...")
        data = await self._object_store.get(ObjectLocator(bucket=self._bucket, key=test_key))
        text = data.decode("utf-8", errors="replace")
        self._logger.info(f"Test file read with success (body = {text})")

        generated = ObjectLocator(
            bucket=self._bucket, key=f"generated_{int(time.time() * 1000)}.txt"
        )
        self._logger.info("Write a new test file...")
        await self._object_store.put(generated, content, "text/plain")
        self._logger.info(f"Test file written with success ({generated})")

        return {"read": text, "written": generated.key}
