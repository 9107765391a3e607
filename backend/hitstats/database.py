"""Database connection and session management."""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool
from hitstats.config import settings

# SQLite connections are shared across request threads; an in-memory database
# only exists for the lifetime of its single connection.
if settings.database_url.startswith("sqlite"):
    sqlite_options = {"connect_args": {"check_same_thread": False}}
    if settings.database_url in ("sqlite://", "sqlite:///:memory:"):
        sqlite_options["poolclass"] = StaticPool
    engine = create_engine(
        settings.database_url,
        echo=settings.environment == "development",
        **sqlite_options,
    )
elif settings.environment in ("development", "production"):
    # Check if using pooler connection (pgbouncer / supabase pooler)
    if "pooler." in settings.database_url or settings.database_url.endswith(":6543"):
        engine = create_engine(
            settings.database_url,
            poolclass=NullPool,  # Required for pooler connections
            echo=settings.environment == "development",
        )
    else:
        # Direct connection for stationary servers
        engine = create_engine(
            settings.database_url,
            pool_size=20,
            max_overflow=10,
            echo=settings.environment == "development",
        )
else:
    engine = create_engine(
        settings.database_url,
        poolclass=NullPool,
        echo=True,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Dependency for getting database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None) -> None:
    """Create the stats table and its indexes if they do not exist."""
    # Import models so they register on Base.metadata
    from hitstats import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
