"""
Database Connection and Setup
"""
from sqlalchemy import create_engine, text
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker
from bridge.core.config import settings

DATABASE_URL = settings.database_url

if not DATABASE_URL:
    raise RuntimeError("Invalid configuration: DATABASE_URL (or POSTGRES_USER/POSTGRES_PASSWORD) is not set")

# SQLite is used for local runs and tests; handlers run in a thread pool
if DATABASE_URL.startswith("sqlite"):
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        echo=False
    )
else:
    engine = create_engine(
        DATABASE_URL,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        echo=False
    )

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()

# Errors meaning "the store could not be reached", as opposed to a bad query
STORE_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError)


def get_db():
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Initialize database (create tables)"""
    # Import models so they register on Base.metadata
    import bridge.models  # noqa: F401
    Base.metadata.create_all(bind=engine)


def ping_db() -> bool:
    """Check the database answers a trivial query"""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except STORE_UNAVAILABLE_ERRORS:
        return False
