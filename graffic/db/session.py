from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from graffic.core.config import settings


def make_engine(url: str = settings.DATABASE_URL):
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


engine = make_engine()

SessionLocal = sessionmaker(
    engine,
    expire_on_commit=False,
)

