from __future__ import annotations
from sqlalchemy import create_engine
from sqlalchemy.sql import text
from sqlalchemy.orm import sessionmaker, declarative_base
from .settings import settings


DATABASE_URL = settings.database_url

# SQLite needs cross-thread access (sync routes run in the threadpool) and a busy timeout for concurrent writers
_connect_args = {"check_same_thread": False, "timeout": 30} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=_connect_args, future=True, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def get_db():
	db = SessionLocal()
	try:
		yield db
	finally:
		db.close()


def check_database() -> None:
	"""Round-trip a trivial query; raises when the database is unreachable."""
	with engine.connect() as conn:
		conn.execute(text("SELECT 1"))
