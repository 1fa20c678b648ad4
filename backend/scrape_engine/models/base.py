"""Base database configuration and mixins."""

import uuid

from sqlalchemy import Column, DateTime, Uuid, create_engine, func
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, declared_attr, sessionmaker
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    @declared_attr
    def __tablename__(cls) -> str:
        return cls.__name__.lower() + "s"


class TimestampMixin:
    created_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class UUIDMixin:
    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )


def make_engine(database_url: str, echo: bool = False) -> Engine:
    if database_url.startswith("sqlite"):
        # Store writes happen from worker threads
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)
    return create_engine(
        database_url,
        echo=echo,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
    )


def make_session_factory(database_url: str, echo: bool = False, create_tables: bool = False) -> sessionmaker:
    engine = make_engine(database_url, echo=echo)
    if create_tables:
        create_schema(engine)
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
    )


def create_schema(engine: Engine) -> None:
    # Import models so their tables are registered on Base.metadata
    from scrape_engine.models import scraped_posting  # noqa: F401

    Base.metadata.create_all(engine)
