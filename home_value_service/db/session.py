from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from home_value_service.core.config import settings

# SQLite connections are shared with FastAPI's threadpool, so the
# same-thread check has to be disabled for local runs.
connect_args = (
    {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
)

# The engine is the entry point to the database. It's configured with the
# database URL and handles the connection pooling.
engine = create_engine(
    settings.DATABASE_URL, pool_pre_ping=True, connect_args=connect_args
)

# SessionLocal is a factory for creating new Session objects.
# One session per inbound request.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        # Runs after the endpoint has finished, even if there was an error.
        db.close()
