import importlib
import os

from sqlalchemy import create_engine, event
from sqlalchemy.orm import declarative_base, sessionmaker

from marketplace.config import settings
from marketplace.utils.logging import get_logger

logger = get_logger(__name__)

DATABASE_URL = settings.DATABASE_URL

connect_args = {}
if DATABASE_URL.startswith("sqlite"):
    # sessions are handed across FastAPI's threadpool
    connect_args["check_same_thread"] = False

engine = create_engine(DATABASE_URL, future=True, echo=False, connect_args=connect_args)

if DATABASE_URL.startswith("sqlite"):

    @event.listens_for(engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

MODEL_MODULES = [
    "marketplace.models.category",
    "marketplace.models.product",
    "marketplace.models.user",
    "marketplace.models.cart",
    "marketplace.models.order",
]


def init_db(reset: bool = False):
    """
    Initialize DB schema.

    Tables are dropped and recreated when ``reset`` is true or the RESET_DB
    env var is set to 1/true/yes. Otherwise existing tables are left alone.
    """
    env_reset = os.environ.get("RESET_DB", "false").lower() in ("1", "true", "yes")

    # metadata is only populated once every model module is imported
    for mod in MODEL_MODULES:
        importlib.import_module(mod)

    if reset or env_reset:
        logger.info("Resetting database schema")
        Base.metadata.drop_all(bind=engine)

    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized: %s", sorted(Base.metadata.tables))


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
