# app/config/database.py
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from .settings import settings

engine_kwargs = {
    "echo": settings.debug
}

# Pool solo aplica a motores con conexiones reales (no SQLite en memoria)
if not settings.database_url.startswith("sqlite"):
    engine_kwargs.update({
        "pool_pre_ping": True,
        "pool_recycle": 300,
    })

# Create engine
engine = create_engine(
    settings.database_url_with_ssl,
    **engine_kwargs
)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Database dependency
def get_db():
    """Database dependency for FastAPI"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
