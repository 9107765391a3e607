"""Schemas for event ingestion."""
from datetime import datetime, timezone
from typing import List, Optional
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from hitstats.constants import FEED_CONTENT_TYPES, VisitorType
from hitstats.schemas.event import EventRecord
from hitstats.utils.exceptions import ValidationError


def content_type_to_type(content_type: str) -> str:
    """Map a response content type to a pre-set visitor type ("" if none)."""
    ct = content_type.lower()
    if ct.startswith(FEED_CONTENT_TYPES):
        return VisitorType.FEED
    return ""


class IngestEvent(BaseModel):
    """One raw hit as reported by the proxy in front of the site."""
    eventId: str = Field("", description="Caller-side event ID, for tracing only")
    timestamp: Optional[datetime] = Field(None, description="Time of the hit (defaults to now)")
    host: str = ""
    path: str = ""
    query: str = ""
    ip: str = ""
    userAgent: str = ""
    referrer: str = ""
    contentType: str = Field("", description="Response content type; RSS/Atom marks a feed hit")
    setCookie: str = Field("", description="Token of a first-visit cookie issued with this response")
    uniq: str = Field("", description="Fingerprint presented back in a visitor cookie")
    secondVisit: bool = Field(False, description="True if the request presented a first-visit cookie")

    def to_record(self, now: Optional[datetime] = None) -> EventRecord:
        """Convert to an unclassified EventRecord with UTC date and time."""
        ts = self.timestamp or now or datetime.now(timezone.utc)
        if ts.tzinfo is not None:
            ts = ts.astimezone(timezone.utc)
        return EventRecord(
            date=ts.date(),
            time=ts.time().replace(microsecond=0, tzinfo=None),
            host=self.host,
            path=self.path,
            query=self.query,
            ip=self.ip,
            user_agent=self.userAgent,
            referrer=self.referrer,
            type=content_type_to_type(self.contentType),
            set_cookie=self.setCookie,
            uniq=self.uniq,
            second_visit=self.secondVisit,
        )


class IngestRequest(BaseModel):
    """Request schema for /api/ingest endpoint."""
    events: List[IngestEvent] = Field(..., description="Batch of raw hits")


class IngestResponse(BaseModel):
    """Response schema for /api/ingest endpoints."""
    success: bool
    message: str
    events_received: int


def parse_ndjson(body: bytes) -> List[IngestEvent]:
    """
    Parse newline-delimited JSON events.

    Blank lines are skipped. One malformed line rejects the whole body.

    Args:
        body: Raw request body

    Returns:
        Parsed events in order

    Raises:
        ValidationError: If any line is not a valid event
    """
    events = []
    for lineno, line in enumerate(body.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        try:
            events.append(IngestEvent.model_validate_json(line))
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid event on line {lineno}: {e.error_count()} error(s)") from e
    return events
