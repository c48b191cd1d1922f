"""Database connection and models for the federation service."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Index,
    String,
    Text,
    create_engine,
)
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool

from federation.config import DATABASE_URL, ROOT_APP_ID

Base = declarative_base()


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def gen_uuid() -> str:
    return str(uuid.uuid4())


class App(Base):
    """A tenant. ``settings`` is a JSON object holding per-provider OAuth keys."""

    __tablename__ = "apps"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, default="")
    active = Column(Boolean, default=True, server_default="1", nullable=False)
    settings = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utcnow)

    @property
    def is_root(self) -> bool:
        return self.id == ROOT_APP_ID

    def get_settings(self) -> dict:
        if not self.settings:
            return {}
        return json.loads(self.settings)

    def set_settings(self, settings: dict) -> None:
        self.settings = json.dumps(settings)


class LocalUser(Base):
    __tablename__ = "local_users"

    id = Column(String, primary_key=True, default=gen_uuid)
    appid = Column(String, nullable=False)
    identifier = Column(String, nullable=False)
    email = Column(String, nullable=True)
    name = Column(String, nullable=False)
    picture = Column(String, nullable=True)
    active = Column(Boolean, default=True, server_default="1", nullable=False)
    password = Column(String, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (Index("ix_local_user_app_identifier", "appid", "identifier", unique=True),)

    def __repr__(self) -> str:
        return f"<LocalUser {self.appid}/{self.identifier} active={self.active}>"


_db_url = DATABASE_URL
if _db_url and _db_url.startswith("postgres://"):
    _db_url = _db_url.replace("postgres://", "postgresql://", 1)

if _db_url and _db_url.startswith("postgresql"):
    engine = create_engine(_db_url, poolclass=QueuePool, pool_size=5, max_overflow=10, pool_pre_ping=True)
else:
    engine = create_engine(
        "sqlite:///federation.db",
        echo=False,
        connect_args={"check_same_thread": False},
    )

# Users handed out by the store outlive their session
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


def init_db():
    """Create tables if they don't exist (idempotent)."""
    Base.metadata.create_all(bind=engine)
