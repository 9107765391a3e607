"""Record store for classified hits.

Batches are written in a single transaction under a process-wide lock, so a
batch is either fully visible or not visible at all. Rows are append-only;
the only post-insert mutation is the cookie-correlation upgrade, which
rewrites the uniq column of rows issued a first-visit cookie.
"""
import threading
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hitstats.models.stat import Stat
from hitstats.schemas.event import EventRecord
from hitstats.services.classifier import analyze
from hitstats.utils.exceptions import StoreError
from hitstats.utils.logger import logger

# Serializes every write transaction against the stats table
_write_lock = threading.Lock()


def _null(value: str) -> Optional[str]:
    """Store empty strings as NULL."""
    return value or None


def build_row(record: EventRecord, now: Optional[datetime] = None) -> Stat:
    """
    Build a stats row from an analyzed record.

    Missing date/time default to the ingestion time (UTC).

    Args:
        record: Analyzed event record
        now: Ingestion timestamp override

    Returns:
        Unsaved Stat instance
    """
    now = now or datetime.now(timezone.utc)
    return Stat(
        date=record.date or now.date(),
        time=record.time or now.time().replace(microsecond=0),
        host=_null(record.host),
        path=_null(record.path),
        query=_null(record.query),
        ip=_null(record.ip),
        user_agent=_null(record.user_agent),
        referrer=_null(record.referrer),
        type=_null(record.type),
        agent=_null(record.agent),
        os=_null(record.os),
        ref_domain=_null(record.ref_domain),
        mult=record.mult or 1,
        set_cookie=_null(record.set_cookie),
        uniq=record.uniq,
    )


def upgrade_cookie(db: Session, uniq: str) -> int:
    """
    Re-tag every row issued the first-visit cookie ``uniq`` with that fingerprint.

    Only the uniq column is rewritten. Pending rows must be flushed first.

    Args:
        db: Database session with an open transaction
        uniq: Fingerprint presented back by a second visit

    Returns:
        Number of rows rewritten
    """
    updated = (
        db.query(Stat)
        .filter(Stat.set_cookie == uniq)
        .update({Stat.uniq: uniq}, synchronize_session=False)
    )
    if updated:
        logger.debug(f"Cookie upgrade re-tagged {updated} row(s)")
    return updated


def insert_events(db: Session, records: Sequence[EventRecord]) -> List[EventRecord]:
    """
    Classify, fingerprint and persist a batch of hits atomically.

    Records flagged as a second visit trigger the cookie upgrade inside the
    same transaction, after every earlier record of the batch is flushed.

    Args:
        db: Database session
        records: Raw event records

    Returns:
        The analyzed records, in input order

    Raises:
        StoreError: If the batch could not be written; nothing was persisted
    """
    analyzed = [analyze(record) for record in records]
    if not analyzed:
        return analyzed

    now = datetime.now(timezone.utc)
    with _write_lock:
        try:
            upgrades = 0
            for record in analyzed:
                db.add(build_row(record, now))
                if record.second_visit and record.uniq:
                    db.flush()
                    upgrades += upgrade_cookie(db, record.uniq)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to store batch of {len(analyzed)} events: {e}", exc_info=True)
            raise StoreError(f"Failed to store batch of {len(analyzed)} events") from e

    logger.info(f"Stored {len(analyzed)} events ({upgrades} rows upgraded by cookie)")
    return analyzed
