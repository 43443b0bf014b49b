"""
Function entry points for AWS Lambda and Alibaba Cloud Function Compute.

Each handler follows the ``handler(event, context)`` contract of both
platforms: it returns the result payload on success and raises on failure.
The driver set is chosen from configuration (``CLOUD_PROVIDER``), or forced
by the provider-specific handlers.
"""

import asyncio
from typing import Any, Dict, Optional

from .core.exceptions import InvocationError
from .core.factories import (
    LoggerFactory,
    ServiceFactory,
    create_relational_store,
    open_drivers,
)
from .core.logging_config import get_logger
from .core.repositories import run_sample_workflow
from .core.settings import GatewaySettings, get_settings

SAMPLE_MESSAGES = {"aws": "Sample content", "alibaba": "sample-content"}


def _request_id(context: Any) -> Optional[str]:
    """Lambda exposes aws_request_id, Function Compute request_id."""
    return getattr(context, "aws_request_id", None) or getattr(context, "request_id", None)


async def handle_thumbnails(
    event: Any,
    context: Any,
    settings: GatewaySettings,
    provider: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a thumbnail for every object listed in the "object created" event
    and send the aggregated result to the configured queue.

    Raises:
        InvocationError: If any image failed or the result could not be sent
        MalformedEventError: If the event is not an object created notification
    """
    logger = get_logger("handlers")
    async with open_drivers(settings, context, provider) as drivers:
        service = ServiceFactory.create_thumbnail_service(drivers, settings)
        locators = drivers.object_store.parse_creation_notification(event)
        logger.info(
            f"Thumbnail invocation {_request_id(context)} on {drivers.provider}: "
            f"{len(locators)} object(s)"
        )
        report = await service.run(locators)

    if not report.ok:
        raise InvocationError(report.describe_failure())
    return report.batch.to_message()


async def handle_object_storage_sample(
    context: Any, settings: GatewaySettings, provider: Optional[str] = None
) -> Dict[str, Any]:
    async with open_drivers(settings, context, provider) as drivers:
        service = ServiceFactory.create_object_storage_service(drivers, settings)
        return await service.read_and_write()


async def handle_notification_sample(
    context: Any, settings: GatewaySettings, provider: Optional[str] = None
) -> Dict[str, Any]:
    async with open_drivers(settings, context, provider) as drivers:
        service = ServiceFactory.create_notification_service(drivers)
        delivered = await service.send_samples(SAMPLE_MESSAGES[drivers.provider])
    return {"delivered": delivered}


def thumbnail_handler(event: Any, context: Any = None) -> Dict[str, Any]:
    """Thumbnail handler for the provider configured by CLOUD_PROVIDER."""
    return asyncio.run(handle_thumbnails(event, context, get_settings()))


def aws_thumbnail_handler(event: Any, context: Any = None) -> Dict[str, Any]:
    """Thumbnail handler for S3 uploads; results go to SQS (queueUrl)."""
    return asyncio.run(handle_thumbnails(event, context, get_settings(), provider="aws"))


def alibaba_thumbnail_handler(event: Any, context: Any = None) -> Dict[str, Any]:
    """Thumbnail handler for OSS uploads; results go to MNS (queueName)."""
    return asyncio.run(handle_thumbnails(event, context, get_settings(), provider="alibaba"))


def postgres_handler(event: Any = None, context: Any = None) -> str:
    """Run the sample task workflow in one PostgreSQL transaction."""
    settings = get_settings()
    store = create_relational_store(settings)
    logger = LoggerFactory.create_logger("tasks")
    asyncio.run(run_sample_workflow(store, settings, logger))
    return "success"


def object_storage_handler(event: Any = None, context: Any = None) -> Dict[str, Any]:
    """Read test.txt from bucketName and write a generated file next to it."""
    return asyncio.run(handle_object_storage_sample(context, get_settings()))


def notification_handler(event: Any = None, context: Any = None) -> Dict[str, Any]:
    """Send a sample message to the configured queue (and topic on Alibaba Cloud)."""
    return asyncio.run(handle_notification_sample(context, get_settings()))
