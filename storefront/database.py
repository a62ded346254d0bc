import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from storefront.config import settings
from storefront.errors import Conflict, StorageError

logger = logging.getLogger(__name__)

connect_args = {}
if settings.DATABASE_URL.startswith("sqlite"):
    connect_args["check_same_thread"] = False

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    pass


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session):
    """Commit on success, roll back on any error.

    SQLAlchemy failures surface as StorageError so callers see a classified,
    retryable error instead of a driver exception.
    """
    try:
        yield db
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Constraint violated, rolled back: %s", exc.orig)
        raise Conflict("Change conflicts with existing data") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Transaction rolled back: %s", exc)
        raise StorageError("Database operation failed") from exc
    except Exception:
        db.rollback()
        raise


def init_db(bind=None):
    # Import all models so Base.metadata knows about them
    import storefront.models.announcement  # noqa: F401
    import storefront.models.delivery_company  # noqa: F401
    import storefront.models.inventory_history  # noqa: F401
    import storefront.models.order  # noqa: F401
    import storefront.models.product  # noqa: F401
    import storefront.models.store_settings  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
