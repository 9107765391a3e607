"""Event ingestion endpoints."""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from hitstats.auth.api_key import verify_api_key
from hitstats.config import settings
from hitstats.database import get_db
from hitstats.schemas.ingest import IngestEvent, IngestRequest, IngestResponse, parse_ndjson
from hitstats.services.store import insert_events
from hitstats.utils.exceptions import (
    StoreError,
    ValidationError,
    payload_too_large_error,
    validation_error,
)
from hitstats.utils.logger import logger

router = APIRouter(prefix="/api", tags=["ingest"], dependencies=[Depends(verify_api_key)])


def _store_batch(db: Session, events: List[IngestEvent]) -> IngestResponse:
    """Classify and store a parsed batch; the whole batch succeeds or fails."""
    if not events:
        return IngestResponse(success=True, message="No events to ingest", events_received=0)

    if len(events) > settings.max_batch_events:
        logger.warning(f"Rejecting batch of {len(events)} events (limit {settings.max_batch_events})")
        raise payload_too_large_error(
            f"Batch of {len(events)} events exceeds limit of {settings.max_batch_events}"
        )

    try:
        records = insert_events(db, [event.to_record() for event in events])
    except StoreError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to ingest events",
        )

    return IngestResponse(
        success=True,
        message="Events ingested successfully",
        events_received=len(records),
    )


@router.post("/ingest", response_model=IngestResponse, status_code=status.HTTP_202_ACCEPTED)
async def ingest_events(
    request: IngestRequest,
    db: Session = Depends(get_db),
) -> IngestResponse:
    """
    Ingest a batch of raw hits.

    Every event is classified (agent, type, OS, multiplier), fingerprinted and
    written in a single transaction. Events flagged as a second visit re-tag
    the rows of their first visit with the presented fingerprint.

    Args:
        request: Batch of raw events
        db: Database session

    Returns:
        Ingest response with the number of stored events
    """
    return _store_batch(db, request.events)


@router.post("/ingest/ndjson", response_model=IngestResponse, status_code=status.HTTP_202_ACCEPTED)
async def ingest_ndjson(
    request: Request,
    db: Session = Depends(get_db),
) -> IngestResponse:
    """
    Ingest newline-delimited JSON hits, one event object per line.

    A single malformed line rejects the whole body before anything is stored.

    Args:
        request: Raw HTTP request
        db: Database session

    Returns:
        Ingest response with the number of stored events
    """
    body = await request.body()
    try:
        events = parse_ndjson(body)
    except ValidationError as e:
        logger.warning(f"Rejecting NDJSON batch: {e}")
        raise validation_error(str(e))

    return _store_batch(db, events)
