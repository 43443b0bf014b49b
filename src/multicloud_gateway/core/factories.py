"""Factories wiring provider drivers into the services."""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, List, Optional, Tuple

import aioboto3
import oss2

from ..drivers.alibaba import (
    MnsQueue,
    MnsTopic,
    OssObjectStore,
    mns_endpoint,
    oss_endpoint,
)
from ..drivers.aws import S3ObjectStore, SqsQueue
from ..drivers.postgres import PostgresStore
from .exceptions import ConfigurationError
from .observability import create_logger
from .protocols import LoggerProtocol, ObjectStore, Queue, RelationalStore
from .services import NotificationSampleService, ObjectStorageSampleService, ThumbnailService
from .settings import GatewaySettings


@dataclass
class DriverSet:
    """Drivers of one provider, built for one invocation."""

    provider: str
    object_store: ObjectStore
    queue: Optional[Queue] = None
    topic: Optional[Queue] = None

    def require_queue(self) -> Queue:
        if self.queue is None:
            raise ConfigurationError(
                f"No queue configured for provider '{self.provider}' "
                "(set queueUrl on AWS or queueName on Alibaba Cloud)"
            )
        return self.queue

    def destinations(self) -> List[Tuple[str, Queue]]:
        """Every configured messaging destination, topic first."""
        found: List[Tuple[str, Queue]] = []
        if self.topic is not None:
            found.append(("topic", self.topic))
        if self.queue is not None:
            found.append(("queue", self.queue))
        return found


@dataclass(frozen=True)
class FunctionComputeCredentials:
    """Temporary credentials Function Compute attaches to the context."""

    access_key_id: str
    access_key_secret: str
    security_token: Optional[str]
    region: str
    account_id: Optional[str]

    @classmethod
    def from_context(cls, context: Any) -> "FunctionComputeCredentials":
        credentials = getattr(context, "credentials", None)
        access_key_id = getattr(credentials, "access_key_id", None)
        access_key_secret = getattr(credentials, "access_key_secret", None)
        region = getattr(context, "region", None)
        if not (access_key_id and access_key_secret and region):
            raise ConfigurationError(
                "The invocation context carries no Alibaba Cloud credentials/region"
            )
        return cls(
            access_key_id=access_key_id,
            access_key_secret=access_key_secret,
            security_token=getattr(credentials, "security_token", None),
            region=region,
            account_id=getattr(context, "account_id", None),
        )


class LoggerFactory:
    """Factory for creating logger instances."""

    @staticmethod
    def create_logger(name: str) -> LoggerProtocol:
        return create_logger(name)


@asynccontextmanager
async def open_aws_drivers(settings: GatewaySettings) -> AsyncIterator[DriverSet]:
    """S3 and SQS drivers sharing one aioboto3 session."""
    session = aioboto3.Session(region_name=settings.aws_region)
    client_kwargs = {}
    if settings.aws_endpoint_url:
        client_kwargs["endpoint_url"] = settings.aws_endpoint_url

    async with session.client("s3", **client_kwargs) as s3_client:  # type: ignore[reportUnknownMemberType]
        async with session.client("sqs", **client_kwargs) as sqs_client:  # type: ignore[reportUnknownMemberType]
            queue = None
            if settings.queue_url:
                queue = SqsQueue(
                    sqs_client,
                    settings.queue_url,
                    delay_seconds=settings.message_delay_seconds,
                    timeout=settings.call_timeout_seconds,
                )
            yield DriverSet(
                provider="aws",
                object_store=S3ObjectStore(s3_client, timeout=settings.call_timeout_seconds),
                queue=queue,
            )


def create_alibaba_drivers(settings: GatewaySettings, context: Any) -> DriverSet:
    """OSS and MNS drivers authenticated with the context's STS credentials."""
    credentials = FunctionComputeCredentials.from_context(context)

    if credentials.security_token:
        auth = oss2.StsAuth(
            credentials.access_key_id,
            credentials.access_key_secret,
            credentials.security_token,
        )
    else:
        auth = oss2.Auth(credentials.access_key_id, credentials.access_key_secret)
    endpoint = oss_endpoint(credentials.region, settings.oss_use_internal_endpoint)

    def bucket_factory(name: str) -> oss2.Bucket:
        return oss2.Bucket(auth, endpoint, name)

    drivers = DriverSet(
        provider="alibaba",
        object_store=OssObjectStore(bucket_factory, timeout=settings.call_timeout_seconds),
    )

    if settings.queue_name or settings.topic_name:
        # Provided by the "alibaba" extra (aliyun-mns-sdk)
        from mns.account import Account
        from mns.queue import Message
        from mns.topic import TopicMessage

        if not credentials.account_id:
            raise ConfigurationError("The invocation context carries no account id")
        account = Account(
            mns_endpoint(credentials.account_id, credentials.region),
            credentials.access_key_id,
            credentials.access_key_secret,
            credentials.security_token or "",
        )
        if settings.queue_name:
            drivers.queue = MnsQueue(
                account.get_queue(settings.queue_name),
                Message,
                timeout=settings.call_timeout_seconds,
            )
        if settings.topic_name:
            drivers.topic = MnsTopic(
                account.get_topic(settings.topic_name),
                TopicMessage,
                timeout=settings.call_timeout_seconds,
            )

    return drivers


@asynccontextmanager
async def open_drivers(
    settings: GatewaySettings, context: Any = None, provider: Optional[str] = None
) -> AsyncIterator[DriverSet]:
    """Build the driver set of the configured (or forced) provider."""
    provider = provider or settings.cloud_provider
    if provider == "aws":
        async with open_aws_drivers(settings) as drivers:
            yield drivers
    elif provider == "alibaba":
        yield create_alibaba_drivers(settings, context)
    else:
        raise ConfigurationError(f"Unknown cloud provider: {provider}")


def create_relational_store(settings: GatewaySettings) -> RelationalStore:
    return PostgresStore(
        require_transaction=settings.require_transaction,
        timeout=settings.call_timeout_seconds,
    )


class ServiceFactory:
    """Factory for the services, given an already built driver set."""

    @staticmethod
    def create_thumbnail_service(
        drivers: DriverSet,
        settings: GatewaySettings,
        logger: Optional[LoggerProtocol] = None,
    ) -> ThumbnailService:
        return ThumbnailService(
            object_store=drivers.object_store,
            queue=drivers.require_queue(),
            logger=logger or LoggerFactory.create_logger("thumbnails"),
            size=(settings.thumbnail_width, settings.thumbnail_height),
            prefix=settings.thumbnail_prefix,
        )

    @staticmethod
    def create_notification_service(
        drivers: DriverSet, logger: Optional[LoggerProtocol] = None
    ) -> NotificationSampleService:
        destinations = drivers.destinations()
        if not destinations:
            raise ConfigurationError("No queue or topic configured")
        return NotificationSampleService(
            destinations, logger or LoggerFactory.create_logger("notifications")
        )

    @staticmethod
    def create_object_storage_service(
        drivers: DriverSet,
        settings: GatewaySettings,
        logger: Optional[LoggerProtocol] = None,
    ) -> ObjectStorageSampleService:
        return ObjectStorageSampleService(
            drivers.object_store,
            settings.require("bucket_name"),
            logger or LoggerFactory.create_logger("object_storage"),
        )
