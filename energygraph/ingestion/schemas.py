"""
Pydantic Schemas for Ingestion Layer.

Input records for papers, grid events and policies, plus the report
returned by an ingestion run.
"""

import json
from collections.abc import Sequence
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class RecordValidationError(ValueError):
    """Raised when an input record collection is malformed."""

    def __init__(self, collection: str, message: str) -> None:
        super().__init__(message)
        self.collection = collection


class _Record(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


class PaperRecord(_Record):
    """A research paper, e.g. an arXiv entry."""

    id: str = Field(..., min_length=1, description="External paper ID")
    title: str = Field(..., description="Paper title")
    summary: str = Field(default="", description="Abstract")
    published: str | None = Field(default=None, description="Publication timestamp (ISO-8601)")


class EventRecord(_Record):
    """A grid event such as an outage."""

    external_id: str = Field(..., min_length=1, description="External event ID")
    name: str = Field(..., description="Event name")
    description: str = Field(default="", description="What happened")
    start_time: str | None = None
    end_time: str | None = None
    region: str | None = Field(default=None, description="Affected region")
    asset_type: str | None = Field(default=None, description="Asset class, e.g. Transmission")
    severity: float | None = Field(default=None, ge=0.0, le=1.0, description="Severity in [0, 1]")


class PolicyRecord(_Record):
    """An energy policy or regulation."""

    external_id: str = Field(..., min_length=1, description="External policy ID")
    name: str = Field(..., description="Policy name")
    description: str = Field(default="", description="What the policy does")
    jurisdiction: str | None = Field(default=None, description="Where the policy applies")
    start_date: str | None = None
    end_date: str | None = None
    category: str | None = Field(default=None, description="e.g. Subsidy, Mandate")


RecordT = TypeVar("RecordT", bound=BaseModel)


def load_records(
    raw: str | Sequence[Any] | None,
    model: type[RecordT],
    collection: str,
) -> list[RecordT]:
    """
    Parse and validate one record collection.

    Args:
        raw: JSON text, a list of dicts/models, or None (treated as empty)
        model: Record model to validate against
        collection: Collection name used in error messages ("Papers", ...)

    Returns:
        Validated records in input order

    Raises:
        RecordValidationError: On invalid JSON, a non-list payload, or a schema violation
    """
    if raw is None:
        return []

    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise RecordValidationError(collection, f"{collection} JSON is invalid.") from e

    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        raise RecordValidationError(collection, f"{collection} JSON must be a list of records.")

    records: list[RecordT] = []
    for position, item in enumerate(raw):
        if isinstance(item, model):
            records.append(item)
            continue
        try:
            data = item.model_dump() if isinstance(item, BaseModel) else item
            records.append(model.model_validate(data))
        except ValidationError as e:
            raise RecordValidationError(
                collection,
                f"{collection} record {position} is invalid: {e.error_count()} error(s)\n{e}",
            ) from e

    return records


class IngestionReport(BaseModel):
    """Counts from one ingestion run."""

    papers: int = Field(default=0, ge=0)
    events: int = Field(default=0, ge=0)
    policies: int = Field(default=0, ge=0)
    locations: int = Field(default=0, ge=0, description="Distinct locations touched")
    relationships_added: int = Field(default=0, ge=0)
    derived_links: int = Field(default=0, ge=0, description="Relationships from link inference")
    duration_seconds: float = Field(default=0.0, ge=0.0)

    @property
    def entities_ingested(self) -> int:
        return self.papers + self.events + self.policies
