"""Shared data models for the gateway."""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class ObjectLocator(BaseModel):
    """Bucket and key identifying a stored object."""

    model_config = ConfigDict(frozen=True)

    bucket: str
    key: str

    def __str__(self) -> str:
        return f"{self.bucket}/{self.key}"


class TransformOutcome(BaseModel):
    """Result of the thumbnail pipeline for one input object."""

    model_config = ConfigDict(frozen=True)

    source: ObjectLocator
    saved: Optional[ObjectLocator] = None
    error: str = ""

    @classmethod
    def succeeded(cls, source: ObjectLocator, saved: ObjectLocator) -> "TransformOutcome":
        return cls(source=source, saved=saved)

    @classmethod
    def failed(cls, source: ObjectLocator, error: str) -> "TransformOutcome":
        return cls(source=source, error=error or "unknown error")

    @property
    def success(self) -> bool:
        return self.saved is not None


class BatchResult(BaseModel):
    """Ordered outcomes of one thumbnail invocation, one per input object."""

    model_config = ConfigDict(frozen=True)

    outcomes: Tuple[TransformOutcome, ...] = ()

    @property
    def successes(self) -> List[TransformOutcome]:
        return [outcome for outcome in self.outcomes if outcome.success]

    @property
    def failures(self) -> List[TransformOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.success]

    def to_message(self) -> Dict[str, Any]:
        """Build the outbound notification body."""
        return {
            "savedThumbnails": [
                {"bucket": o.saved.bucket, "key": o.saved.key}
                for o in self.successes
                if o.saved is not None
            ],
            "problematicImages": [
                {"bucket": o.source.bucket, "key": o.source.key, "error": o.error}
                for o in self.failures
            ],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_message())


class ThumbnailReport(BaseModel):
    """Aggregate outcome of a thumbnail invocation, including result delivery."""

    model_config = ConfigDict(frozen=True)

    batch: BatchResult
    delivery_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return not self.batch.failures and self.delivery_error is None

    def describe_failure(self) -> str:
        """Human readable description of every problem, empty when ok."""
        parts = []
        problematic = self.batch.to_message()["problematicImages"]
        if problematic:
            parts.append(f"Error when processing images: {json.dumps(problematic)}.")
        if self.delivery_error is not None:
            parts.append(
                f"Unable to send the result message into the default queue: {self.delivery_error}."
            )
        return " ".join(parts)


class Task(BaseModel):
    """Row of the task table."""

    model_config = ConfigDict(validate_assignment=True)

    id: UUID = Field(default_factory=uuid4, frozen=True)
    description: str
    created_at: datetime
    priority: int


class QueryResult(BaseModel):
    """Rows and affected row count returned by a relational query."""

    rows: List[Dict[str, Any]] = Field(default_factory=list)
    count: int = 0
