import logging
from sqlalchemy import text
from tenacity import retry, stop_after_attempt, wait_fixed

from database.models import Base

logger = logging.getLogger(__name__)


@retry(stop=stop_after_attempt(5), wait=wait_fixed(2), reraise=True)
def init_db(bind):
    """Create the marketplace tables, retrying while the database starts up."""
    logger.info("Initializing database...")
    try:
        with bind.connect() as connection:
            connection.execute(text("SELECT 1"))
            logger.info("Database reachable.")

        Base.metadata.create_all(bind=bind)
        logger.info("Tables created or verified.")

    except Exception as e:
        logger.error(f"Error initializing DB: {e}")
        raise


if __name__ == "__main__":
    from core.config_loader import load_config
    from database.database import create_db_engine

    logging.basicConfig(level=logging.INFO)
    init_db(create_db_engine(load_config().database.url))
