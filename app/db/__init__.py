from .base import Base
from .session import engine, SessionLocal


def init_db():
    """Create all tables registered on Base."""
    from app import models  # noqa: F401  registers mappers

    Base.metadata.create_all(bind=engine)


# Export for convenience
__all__ = ["Base", "engine", "SessionLocal", "init_db"]
