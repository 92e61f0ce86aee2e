import logging
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from nexusnoir.db.session import engine, Base
import nexusnoir.db.base  # noqa: F401  registers every model on Base.metadata

logger = logging.getLogger(__name__)


def create_all_tables() -> bool:
    try:
        inspector = inspect(engine)
        existing_tables = inspector.get_table_names()

        Base.metadata.create_all(bind=engine)

        new_tables = set(inspect(engine).get_table_names()) - set(existing_tables)
        if new_tables:
            logger.info(f"Created new tables: {new_tables}")

        return True
    except SQLAlchemyError as e:
        logger.error(f"Error creating database tables: {e}")
        return False
