"""Stat model for classified traffic hits."""
from sqlalchemy import Column, Date, Enum, Index, Integer, String, Time
from hitstats.constants import OperatingSystem, VisitorType
from hitstats.database import Base


class Stat(Base):
    """One classified hit. Rows are append-only except for the uniq column."""
    __tablename__ = "stats"

    id = Column(Integer, primary_key=True, autoincrement=True)
    date = Column(Date, nullable=True)
    time = Column(Time, nullable=True)
    host = Column(String, nullable=True)
    path = Column(String, nullable=True)
    query = Column(String, nullable=True)
    ip = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    referrer = Column(String, nullable=True)
    type = Column(Enum(*VisitorType.ALL, name="agent_type_t"), nullable=True)
    agent = Column(String, nullable=True)
    os = Column(Enum(*OperatingSystem.ALL, name="agent_os_t"), nullable=True)
    ref_domain = Column(String, nullable=True)
    mult = Column(Integer, nullable=False, default=1)
    set_cookie = Column(String, nullable=True, index=True)  # First-visit cookie token
    uniq = Column(String, nullable=False, index=True)  # Visitor fingerprint

    __table_args__ = (
        Index("idx_stats_host_date", "host", "date"),
    )
