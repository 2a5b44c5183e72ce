from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from leadcrm.config import settings


def make_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # FastAPI serves sync endpoints from a threadpool
        connect_args["check_same_thread"] = False
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


engine = make_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
