"""Aggregation queries over the stats table.

A visitor produces many rows sharing one uniq, and a feed aggregator may
report the same subscriber count on every poll. Unique counts are therefore
always computed as the sum, over uniq groups, of the maximum mult within the
group. Raw hit counts simply count rows. Every query here depends only on
the stored rows, never on insertion order or batch boundaries.
"""
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, func, select, true
from sqlalchemy.orm import Session

from hitstats.constants import FILTER_COLUMNS
from hitstats.models.stat import Stat


@dataclass
class StatsFilter:
    """Date range plus equality filters on whitelisted columns."""
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    filters: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        unknown = set(self.filters) - set(FILTER_COLUMNS)
        if unknown:
            raise ValueError(f"Unsupported filter column(s): {', '.join(sorted(unknown))}")

    def conditions(self) -> List[Any]:
        clauses = []
        if self.date_from is not None:
            clauses.append(Stat.date >= self.date_from)
        if self.date_to is not None:
            clauses.append(Stat.date <= self.date_to)
        for column, value in sorted(self.filters.items()):
            clauses.append(getattr(Stat, column) == value)
        return clauses


@dataclass
class RowCount:
    """One row of a top-N table; value None is the "others" bucket."""
    value: Optional[str]
    count: int


def _where(stats_filter: Optional[StatsFilter]):
    clauses = stats_filter.conditions() if stats_filter else []
    return and_(true(), *clauses)


def _column(name: str):
    if name not in FILTER_COLUMNS:
        raise ValueError(f"Unsupported column: {name}")
    return getattr(Stat, name)


def hit_count(db: Session, stats_filter: Optional[StatsFilter] = None) -> int:
    """Number of stored rows matching the filter."""
    query = select(func.count()).select_from(Stat).where(_where(stats_filter))
    return db.execute(query).scalar_one()


def unique_count(db: Session, stats_filter: Optional[StatsFilter] = None) -> int:
    """Deduplicated visitor count: SUM over uniq groups of MAX(mult)."""
    per_uniq = (
        select(func.max(Stat.mult).label("mult"))
        .where(_where(stats_filter))
        .group_by(Stat.uniq)
        .subquery()
    )
    query = select(func.coalesce(func.sum(per_uniq.c.mult), 0))
    return int(db.execute(query).scalar_one())


def unique_by_type(db: Session, stats_filter: Optional[StatsFilter] = None) -> Dict[str, int]:
    """Deduplicated visitor count per visitor type."""
    per_uniq = (
        select(Stat.type, func.max(Stat.mult).label("mult"))
        .where(_where(stats_filter))
        .group_by(Stat.type, Stat.uniq)
        .subquery()
    )
    query = (
        select(per_uniq.c.type, func.sum(per_uniq.c.mult))
        .group_by(per_uniq.c.type)
    )
    return {
        visitor_type: int(count)
        for visitor_type, count in db.execute(query)
        if visitor_type is not None
    }


def unique_by_type_and_date(
    db: Session,
    stats_filter: Optional[StatsFilter] = None,
) -> Dict[str, Dict[date, int]]:
    """Deduplicated visitor count per visitor type per day."""
    per_uniq = (
        select(Stat.type, Stat.date, func.max(Stat.mult).label("mult"))
        .where(_where(stats_filter))
        .group_by(Stat.type, Stat.date, Stat.uniq)
        .subquery()
    )
    query = (
        select(per_uniq.c.type, per_uniq.c.date, func.sum(per_uniq.c.mult))
        .group_by(per_uniq.c.type, per_uniq.c.date)
    )
    result: Dict[str, Dict[date, int]] = defaultdict(dict)
    for visitor_type, day, count in db.execute(query):
        if visitor_type is None or day is None:
            continue
        result[visitor_type][day] = int(count)
    return dict(result)


def top_values(
    db: Session,
    column: str,
    stats_filter: Optional[StatsFilter] = None,
    limit: int = 10,
    unique: bool = False,
) -> List[RowCount]:
    """
    Top values of a column, followed by an "others" bucket.

    With ``unique`` the counts follow the deduplication rule: each uniq
    contributes its max mult once, attributed to one of its values of the
    column (the greatest, so the result is deterministic).

    Args:
        db: Database session
        column: One of FILTER_COLUMNS
        stats_filter: Optional filter
        limit: Number of named rows
        unique: Count deduplicated visitors instead of hits

    Returns:
        Up to ``limit`` rows ordered by count, then the others bucket if non-empty
    """
    target = _column(column)
    if unique:
        base = (
            select(func.max(target).label("value"), func.max(Stat.mult).label("weight"))
            .where(_where(stats_filter))
            .group_by(Stat.uniq)
            .subquery()
        )
        weight = func.sum(base.c.weight)
    else:
        base = (
            select(target.label("value"))
            .where(_where(stats_filter))
            .subquery()
        )
        weight = func.count()

    ranked = db.execute(
        select(base.c.value, weight.label("count"))
        .where(base.c.value.is_not(None))
        .group_by(base.c.value)
        .order_by(weight.desc(), base.c.value)
    ).all()

    rows = [RowCount(value=str(value), count=int(count)) for value, count in ranked[:limit]]
    others = sum(int(count) for _, count in ranked[limit:])
    if others > 0:
        rows.append(RowCount(value=None, count=others))
    return rows


def date_range(db: Session) -> Tuple[Optional[date], Optional[date]]:
    """Earliest and latest stored dates."""
    first, last = db.execute(select(func.min(Stat.date), func.max(Stat.date))).one()
    return first, last


def distinct_hosts(db: Session) -> List[str]:
    """Every non-empty host present in the table, sorted."""
    query = (
        select(Stat.host)
        .where(Stat.host.is_not(None))
        .distinct()
        .order_by(Stat.host)
    )
    return [host for host in db.execute(query).scalars() if host]
