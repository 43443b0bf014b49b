"""Environment-driven configuration of the gateway."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class GatewaySettings(BaseSettings):
    """
    Settings shared by every handler.

    Values come from environment variables (function configuration), then
    the defaults below. The camelCase names are the ones used by the
    function deployment descriptors.
    """

    model_config = SettingsConfigDict(
        populate_by_name=True,
        extra="ignore",
    )

    cloud_provider: Literal["aws", "alibaba"] = Field(
        default="aws",
        validation_alias=AliasChoices("cloud_provider", "CLOUD_PROVIDER"),
    )

    # Messaging
    queue_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("queue_name", "queueName")
    )
    queue_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("queue_url", "queueUrl")
    )
    topic_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("topic_name", "topicName")
    )
    message_delay_seconds: int = Field(default=10, ge=0, le=900)

    # Object storage
    bucket_name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("bucket_name", "bucketName")
    )
    oss_use_internal_endpoint: bool = False

    # Relational store
    host: str = "localhost"
    port: int = 5432
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[SecretStr] = None
    require_transaction: bool = True

    # AWS
    aws_region: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("aws_region", "AWS_REGION", "AWS_DEFAULT_REGION"),
    )
    aws_endpoint_url: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("aws_endpoint_url", "AWS_ENDPOINT_URL")
    )

    # Thumbnails
    thumbnail_width: int = Field(default=200, gt=0)
    thumbnail_height: int = Field(default=200, gt=0)
    thumbnail_prefix: str = "thumbnails/"

    call_timeout_seconds: Optional[float] = Field(default=30.0, gt=0)

    def require(self, field_name: str) -> str:
        """Return a mandatory string setting or raise ConfigurationError."""
        value = getattr(self, field_name)
        if isinstance(value, SecretStr):
            value = value.get_secret_value()
        if not value:
            raise ConfigurationError(f"Missing required setting '{field_name}'")
        return value


@lru_cache()
def get_settings() -> GatewaySettings:
    """Settings of the current process, read once."""
    return GatewaySettings()
