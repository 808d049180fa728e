"""
SQLAlchemy schema and engine setup for the scan event store.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from sqlalchemy import JSON, DateTime, Enum as SAEnum, Integer, String, Text, create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from autopulse.models import FoundStatus, ProcessStatus


class Base(DeclarativeBase):
    pass


def _enum_column(enum_cls) -> SAEnum:
    # Store "Found", "Retry", ... rather than the member names
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=16,
        values_callable=lambda members: [member.value for member in members],
    )


class ScanEventRecord(Base):
    __tablename__ = "scan_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    file_path: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    file_hash: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    found_status: Mapped[FoundStatus] = mapped_column(
        _enum_column(FoundStatus), nullable=False, default=FoundStatus.PENDING, index=True
    )
    process_status: Mapped[ProcessStatus] = mapped_column(
        _enum_column(ProcessStatus), nullable=False, default=ProcessStatus.PENDING, index=True
    )

    failed_times: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    next_retry_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    targets_hit: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    found_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    processed_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)


def create_database_engine(database_url: str) -> Engine:
    """
    Create the engine (and connection pool) shared by the scheduler and the API.

    SQLite files get their parent directory created, cross-thread use enabled
    and WAL journaling so readers don't block the scheduler's writes.
    """
    url = make_url(database_url)
    connect_args = {}

    is_sqlite = url.get_backend_name() == "sqlite"
    if is_sqlite:
        connect_args["check_same_thread"] = False
        if url.database and url.database != ":memory:":
            Path(url.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)

    if is_sqlite:
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

    return engine


class Database:
    """Owns the engine and session factory for one database URL."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = create_database_engine(database_url)
        self.session_factory = sessionmaker(self.engine, expire_on_commit=False)
        logging.info(f"Database engine created for {self.engine.url.render_as_string(hide_password=True)}")

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()
        logging.info("Database engine disposed")
