# shopcart/data/database.py
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from shopcart.domain.errors import ShopError, StoreFailure
from shopcart.utils.logging import get_logger
from shopcart.utils.settings import DATABASE_URL

logger = get_logger(__name__)


def build_engine(url: str):
    # postgres:// z heroku/render -> postgresql://
    if url.startswith("postgres://"):
        url = url.replace("postgres://", "postgresql://", 1)

    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(url, pool_pre_ping=True, pool_size=10, max_overflow=20)


engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Sesja bazy jako zaleznosc FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind=None):
    # import modeli zeby zarejestrowac je w Base.metadata
    import shopcart.data.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info(f"Tables ready: {list(Base.metadata.tables.keys())}")


@contextmanager
def transaction(db: Session):
    """
    Jedna jednostka pracy: wszystko albo nic.

    Commit po wyjsciu z bloku, rollback przy kazdym bledzie. Bledy bazy
    ida do logow z tracebackiem i wychodza jako StoreFailure, wywolujacy
    nie widzi szczegolow sterownika.
    """
    try:
        yield db
        db.commit()
    except ShopError:
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Store failure, transaction rolled back: {e}", exc_info=True)
        raise StoreFailure() from e
    except Exception:
        db.rollback()
        raise
