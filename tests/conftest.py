"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from gatotkota.database.models import Base, Forum, Level, Role, User

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=UTC)

LADDER = [
    ("Level Gundala", 0),
    ("Level GatotKaca", 100),
    ("Level SriAsih", 250),
    ("Level Godam", 500),
    ("Level Aquanus", 1000),
]


@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with all GatotKota tables.

    StaticPool keeps every session on the same in-memory database.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def engine(db_engine):
    return db_engine


@pytest.fixture
def levels(engine) -> dict[str, int]:
    """Insert the five-tier ladder; returns name → id."""
    with Session(engine) as session:
        rows = [Level(name=name, points=pts) for name, pts in LADDER]
        session.add_all(rows)
        session.commit()
        return {lvl.name: lvl.id for lvl in rows}


def make_user(
    engine,
    username: str,
    *,
    full_name: str | None = None,
    role: Role = Role.USER,
    current_points: int = 0,
    level_id: int | None = None,
) -> int:
    with Session(engine) as session:
        user = User(
            username=username,
            full_name=full_name,
            role=role,
            current_points=current_points,
            level_id=level_id,
        )
        session.add(user)
        session.commit()
        return user.id


def make_forum(
    engine,
    user_id: int,
    *,
    title: str = "Jalan berlubang",
    created_at: datetime = NOW,
    views: int = 0,
    upvotes: int = 0,
    deleted_at: datetime | None = None,
) -> int:
    with Session(engine) as session:
        forum = Forum(
            user_id=user_id,
            title=title,
            created_at=created_at,
            views_count=views,
            upvotes=upvotes,
            deleted_at=deleted_at,
        )
        session.add(forum)
        session.commit()
        return forum.id
