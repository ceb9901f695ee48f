# database.py

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker


# Base class for our database models
Base = declarative_base()


def make_session_factory(database_url: str):
    """Create the engine and a session factory for the SQL job store."""
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    engine = create_engine(database_url, connect_args=connect_args)
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
