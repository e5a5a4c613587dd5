import functools
import logging

from sqlalchemy import create_engine               # SQLAlchemy engine factory
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base        # Base class for models
from sqlalchemy.orm import sessionmaker            # session factory

from config.settings import settings               # ✅ env based settings

logger = logging.getLogger(__name__)

# ✅ engine built from the configured DB URL
engine = create_engine(settings.DATABASE_URL, pool_pre_ping=True)

# ✅ session factory used by every request
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# ✅ declarative Base shared by all models
Base = declarative_base()


# ==========================================================
# [common] request-scoped DB session
# ==========================================================
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ==========================================================
# [common] reconnect once on a dropped connection
# ==========================================================
def retry_once(func):
    """
    Re-run a unit of work a single time when the connection was lost.

    The wrapped function receives the session as its first argument. On
    OperationalError the session is rolled back, the pool is disposed so the
    next checkout opens a fresh connection, and the call is replayed once.
    """
    @functools.wraps(func)
    def wrapper(db, *args, **kwargs):
        try:
            return func(db, *args, **kwargs)
        except OperationalError:
            logger.warning("DB connection lost in %s, reconnecting once", func.__name__)
            db.rollback()
            db.get_bind().dispose()
            return func(db, *args, **kwargs)
    return wrapper
