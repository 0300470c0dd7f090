from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker


def create_db_engine(database_url: str):
    """Engine for ``database_url`` (``database.url`` in config.yaml)."""
    return create_engine(database_url, pool_pre_ping=True)


def create_session_factory(bind) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind)
