"""Pydantic schemas for request/response validation."""
from hitstats.schemas.event import EventRecord
from hitstats.schemas.ingest import IngestEvent, IngestRequest, IngestResponse
from hitstats.schemas.stats import StatsResponse

__all__ = ["EventRecord", "IngestEvent", "IngestRequest", "IngestResponse", "StatsResponse"]
