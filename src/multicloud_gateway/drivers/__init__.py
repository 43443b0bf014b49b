"""Provider drivers implementing the capability interfaces."""

from .alibaba import MnsQueue, MnsTopic, OssObjectStore
from .aws import S3ObjectStore, SqsQueue
from .postgres import PostgresStore

__all__ = [
    "S3ObjectStore",
    "SqsQueue",
    "OssObjectStore",
    "MnsQueue",
    "MnsTopic",
    "PostgresStore",
]
