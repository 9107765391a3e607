"""Schema for a single classified traffic event."""
import datetime as dt
from typing import Optional
from pydantic import BaseModel, Field


class EventRecord(BaseModel):
    """
    One ingested hit.

    Derivable fields (agent, type, os, ref_domain, mult, uniq) start empty and
    are filled by the analyzer; a value supplied by the caller is never
    overwritten. A mult of 0 means "not derived yet".
    """
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    host: str = ""
    path: str = ""
    query: str = ""
    ip: str = ""
    user_agent: str = ""
    referrer: str = ""
    type: str = ""
    agent: str = ""
    os: str = ""
    ref_domain: str = ""
    mult: int = Field(0, ge=0)
    set_cookie: str = ""
    uniq: str = ""
    second_visit: bool = False

    class Config:
        frozen = True
