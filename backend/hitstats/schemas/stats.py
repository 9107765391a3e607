"""Schemas for the stats summary endpoint."""
from datetime import date
from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class RowCountItem(BaseModel):
    """One row of a top-N table; value None is the "others" bucket."""
    value: Optional[str]
    count: int


class ColumnBreakdown(BaseModel):
    """Top values of one column, as hits and as unique visitors."""
    hits: List[RowCountItem] = Field(default_factory=list)
    uniques: List[RowCountItem] = Field(default_factory=list)


class StatsResponse(BaseModel):
    """Response schema for /api/stats endpoint."""
    date_from: date
    date_to: date
    filters: Dict[str, str] = Field(default_factory=dict)
    hits: int = 0
    uniques: int = 0
    uniques_by_type: Dict[str, int] = Field(default_factory=dict)
    visits_by_type_date: Dict[str, Dict[date, int]] = Field(default_factory=dict)
    top: Dict[str, ColumnBreakdown] = Field(default_factory=dict)
    first_date: Optional[date] = None
    last_date: Optional[date] = None
    hosts: List[str] = Field(default_factory=list)
