"""Stats summary endpoint."""
from datetime import date, datetime, timezone
from typing import Dict, Optional
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hitstats.auth.api_key import verify_api_key
from hitstats.config import settings
from hitstats.constants import FILTER_COLUMNS
from hitstats.database import get_db
from hitstats.schemas.stats import ColumnBreakdown, RowCountItem, StatsResponse
from hitstats.services import aggregation
from hitstats.utils.logger import logger

router = APIRouter(prefix="/api", tags=["stats"], dependencies=[Depends(verify_api_key)])


def extract_filters(request: Request) -> Dict[str, str]:
    """Collect equality filters on whitelisted columns from the query string."""
    filters = {}
    for column in FILTER_COLUMNS:
        value = request.query_params.get(column)
        if value is not None:
            filters[column] = value
    return filters


def _items(rows) -> list[RowCountItem]:
    return [RowCountItem(value=row.value, count=row.count) for row in rows]


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    request: Request,
    date_from: Optional[date] = Query(None, alias="from", description="First day (YYYY-MM-DD)"),
    date_to: Optional[date] = Query(None, alias="to", description="Last day (YYYY-MM-DD)"),
    db: Session = Depends(get_db),
) -> StatsResponse:
    """
    Summarize stored hits for a date range and optional column filters.

    Unique visitor figures follow the max-mult-per-uniq-then-sum rule. Missing
    dates default to the current calendar year. If the store cannot be
    queried the summary is returned empty.

    Args:
        request: HTTP request (column filters are read from its query string)
        date_from: First day of the range
        date_to: Last day of the range
        db: Database session

    Returns:
        Stats summary
    """
    today = datetime.now(timezone.utc).date()
    date_from = date_from or date(today.year, 1, 1)
    date_to = date_to or date(today.year, 12, 31)
    filters = extract_filters(request)

    response = StatsResponse(date_from=date_from, date_to=date_to, filters=filters)
    stats_filter = aggregation.StatsFilter(date_from=date_from, date_to=date_to, filters=filters)

    try:
        response.hits = aggregation.hit_count(db, stats_filter)
        response.uniques = aggregation.unique_count(db, stats_filter)
        response.uniques_by_type = aggregation.unique_by_type(db, stats_filter)
        response.visits_by_type_date = aggregation.unique_by_type_and_date(db, stats_filter)
        for column in FILTER_COLUMNS:
            response.top[column] = ColumnBreakdown(
                hits=_items(aggregation.top_values(db, column, stats_filter, settings.top_limit)),
                uniques=_items(
                    aggregation.top_values(db, column, stats_filter, settings.top_limit, unique=True)
                ),
            )
        response.first_date, response.last_date = aggregation.date_range(db)
        response.hosts = aggregation.distinct_hosts(db)
    except SQLAlchemyError as e:
        logger.error(f"Failed to query stats: {e}", exc_info=True)
        return StatsResponse(date_from=date_from, date_to=date_to, filters=filters)

    return response
