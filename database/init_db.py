import logging

from sqlalchemy import text
from tenacity import retry, stop_after_attempt, wait_fixed

from database.database import Database

logger = logging.getLogger(__name__)


@retry(stop=stop_after_attempt(5), wait=wait_fixed(2))
def init_db(db: Database):
    logger.info("Initializing database...")
    try:
        with db.engine.connect() as connection:
            connection.execute(text("SELECT 1"))

        db.create_all()
        logger.info("Tables created or verified.")

    except Exception as e:
        logger.error(f"Error initializing DB: {e}")
        raise
