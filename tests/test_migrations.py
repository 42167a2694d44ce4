"""
tests/test_migrations.py — Alembic Migration Tests
===================================================
Runs ``alembic upgrade head`` against a throwaway SQLite file and checks
the resulting schema works with the services.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text

from conftest import NOW
from gatotkota.services import notification_service as ns

ROOT = Path(__file__).resolve().parents[1]


@pytest.fixture
def migrated_engine(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setenv("DATABASE_URL", url)

    cfg = Config()
    cfg.set_main_option("script_location", str(ROOT / "alembic"))
    command.upgrade(cfg, "head")

    engine = create_engine(url)
    yield engine
    engine.dispose()


def test_upgrade_creates_every_table(migrated_engine):
    tables = set(inspect(migrated_engine).get_table_names())
    assert {
        "users",
        "levels",
        "point_rules",
        "point_transactions",
        "notifications",
        "forums",
        "comments",
    } <= tables


def test_imported_like_rows_keep_count_in_message(migrated_engine):
    created = NOW.strftime("%Y-%m-%d %H:%M:%S.%f")
    with migrated_engine.begin() as conn:
        conn.execute(text(
            "INSERT INTO users (id, username, role, current_points) VALUES "
            "(1, 'pelapor', 'user', 0), (2, 'budi', 'user', 0)"
        ))
        conn.execute(text(
            "INSERT INTO forums (id, user_id, title) VALUES (1, 1, 'Lampu mati')"
        ))
        # Row shape from the old inbox: no aggregate_count column value
        conn.execute(
            text(
                "INSERT INTO notifications (user_id, forum_id, title, message, type, "
                "is_read, created_at) VALUES (1, 1, 'Andi dan lainnya', "
                "'Andi dan 3 lainnya menyukai laporan Anda', 'like', 0, :created)"
            ),
            {"created": created},
        )

    with migrated_engine.connect() as conn:
        assert conn.scalar(text("SELECT aggregate_count FROM notifications")) is None

    note = ns.send_like_notification(
        migrated_engine, 1, 2, "Budi", now=NOW + timedelta(minutes=5)
    )

    assert note.aggregate_count == 5
    assert note.message == "Budi dan 4 lainnya menyukai laporan Anda"
