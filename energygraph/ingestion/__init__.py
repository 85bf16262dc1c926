"""
Ingestion Layer.

Record validation, canonical text, embedding and graph population.
"""

from energygraph.ingestion.linker import KeywordLinkRule, LinkRule, infer_links
from energygraph.ingestion.pipeline import (
    EmbedFn,
    IngestionPipeline,
    event_text,
    paper_text,
    policy_text,
)
from energygraph.ingestion.schemas import (
    EventRecord,
    IngestionReport,
    PaperRecord,
    PolicyRecord,
    RecordValidationError,
    load_records,
)

__all__ = [
    "IngestionPipeline",
    "IngestionReport",
    "EmbedFn",
    "paper_text",
    "event_text",
    "policy_text",
    "KeywordLinkRule",
    "LinkRule",
    "infer_links",
    "PaperRecord",
    "EventRecord",
    "PolicyRecord",
    "RecordValidationError",
    "load_records",
]
