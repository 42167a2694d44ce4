"""
tests/test_notification_service.py — Notification Coalescer & Inbox Tests
==========================================================================
"""

from __future__ import annotations

from datetime import timedelta

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from conftest import NOW, make_forum, make_user
from gatotkota.database.models import Comment, Notification, NotificationType
from gatotkota.services import notification_service as ns


def _inbox(engine, user_id, type_=None):
    stmt = select(Notification).where(Notification.user_id == user_id)
    if type_ is not None:
        stmt = stmt.where(Notification.type == type_)
    with Session(engine) as session:
        return session.scalars(stmt.order_by(Notification.id)).all()


def _add_comment(engine, forum_id, user_id, content="ok", parent_id=None) -> int:
    with Session(engine) as session:
        comment = Comment(
            forum_id=forum_id, user_id=user_id, content=content, parent_id=parent_id
        )
        session.add(comment)
        session.commit()
        return comment.id


# ---------------------------------------------------------------------------
# Likes
# ---------------------------------------------------------------------------
class TestLikeCoalescing:
    def test_single_like(self, engine):
        author = make_user(engine, "author")
        liker = make_user(engine, "budi")
        fid = make_forum(engine, author)

        ns.send_like_notification(engine, fid, liker, "Budi", now=NOW)

        (note,) = _inbox(engine, author, NotificationType.LIKE)
        assert note.title == "Budi"
        assert note.message == "Budi menyukai laporan Anda"
        assert note.aggregate_count == 1
        assert note.forum_id == fid

    def test_three_likers_fold_into_one_row(self, engine):
        author = make_user(engine, "author")
        fid = make_forum(engine, author)
        likers = [make_user(engine, name) for name in ("andi", "budi", "citra")]

        for minute, (uid, name) in enumerate(zip(likers, ["Andi", "Budi", "Citra"])):
            ns.send_like_notification(
                engine, fid, uid, name, now=NOW + timedelta(minutes=minute * 10)
            )

        notes = _inbox(engine, author, NotificationType.LIKE)
        assert len(notes) == 1
        assert notes[0].aggregate_count == 3
        assert notes[0].title == "Citra dan lainnya"
        assert notes[0].message == "Citra dan 2 lainnya menyukai laporan Anda"

    def test_coalesced_row_is_unread_again(self, engine):
        author = make_user(engine, "author")
        fid = make_forum(engine, author)
        first = ns.send_like_notification(engine, fid, make_user(engine, "a"), "A", now=NOW)
        assert ns.mark_as_read(engine, first.id, author, now=NOW)

        ns.send_like_notification(
            engine, fid, make_user(engine, "b"), "B", now=NOW + timedelta(minutes=5)
        )

        (note,) = _inbox(engine, author, NotificationType.LIKE)
        assert note.is_read is False
        assert note.read_at is None

    def test_outside_window_starts_new_row(self, engine):
        author = make_user(engine, "author")
        fid = make_forum(engine, author)
        ns.send_like_notification(engine, fid, make_user(engine, "a"), "A", now=NOW)
        ns.send_like_notification(
            engine, fid, make_user(engine, "b"), "B", now=NOW + timedelta(minutes=61)
        )

        notes = _inbox(engine, author, NotificationType.LIKE)
        assert len(notes) == 2
        assert all(n.aggregate_count == 1 for n in notes)

    def test_separate_reports_not_coalesced(self, engine):
        author = make_user(engine, "author")
        liker = make_user(engine, "budi")
        f1 = make_forum(engine, author, title="satu")
        f2 = make_forum(engine, author, title="dua")

        ns.send_like_notification(engine, f1, liker, "Budi", now=NOW)
        ns.send_like_notification(engine, f2, liker, "Budi", now=NOW)

        assert len(_inbox(engine, author, NotificationType.LIKE)) == 2

    def test_legacy_row_count_parsed_from_message(self, engine):
        author = make_user(engine, "author")
        fid = make_forum(engine, author)
        with Session(engine) as session:
            session.add(Notification(
                user_id=author,
                forum_id=fid,
                title="Andi dan lainnya",
                message="Andi dan 4 lainnya menyukai laporan Anda",
                type=NotificationType.LIKE,
                created_at=NOW,
            ))
            session.flush()
            # Rows written before the counter column existed
            session.execute(update(Notification).values(aggregate_count=None))
            session.commit()

        ns.send_like_notification(
            engine, fid, make_user(engine, "budi"), "Budi", now=NOW + timedelta(minutes=1)
        )

        (note,) = _inbox(engine, author, NotificationType.LIKE)
        assert note.aggregate_count == 6
        assert note.message == "Budi dan 5 lainnya menyukai laporan Anda"

    def test_legacy_aggregate_without_number(self, engine):
        author = make_user(engine, "author")
        fid = make_forum(engine, author)
        with Session(engine) as session:
            session.add(Notification(
                user_id=author,
                forum_id=fid,
                title="Andi dan lainnya",
                message="Andi dan lainnya menyukai laporan Anda",
                type=NotificationType.LIKE,
                created_at=NOW,
            ))
            session.flush()
            session.execute(update(Notification).values(aggregate_count=None))
            session.commit()

        ns.send_like_notification(
            engine, fid, make_user(engine, "budi"), "Budi", now=NOW + timedelta(minutes=1)
        )

        (note,) = _inbox(engine, author, NotificationType.LIKE)
        assert note.aggregate_count == 3
        assert note.message == "Budi dan 2 lainnya menyukai laporan Anda"

    def test_self_like_is_silent(self, engine):
        author = make_user(engine, "author")
        fid = make_forum(engine, author)
        assert ns.send_like_notification(engine, fid, author, "Author", now=NOW) is None
        assert _inbox(engine, author) == []

    def test_unknown_forum(self, engine):
        liker = make_user(engine, "budi")
        assert ns.send_like_notification(engine, 999, liker, "Budi", now=NOW) is None


# ---------------------------------------------------------------------------
# Comments & replies
# ---------------------------------------------------------------------------
class TestCommentNotifications:
    def test_root_comment_notifies_author(self, engine):
        author = make_user(engine, "author")
        commenter = make_user(engine, "sari")
        fid = make_forum(engine, author)

        ns.send_comment_notification(engine, fid, commenter, "Sari")

        (note,) = _inbox(engine, author, NotificationType.FORUM_COMMENT)
        assert note.title == "Sari"
        assert note.message == "Sari mengomentari laporan Anda"

    def test_reply_notifies_parent_author(self, engine):
        author = make_user(engine, "author")
        first = make_user(engine, "sari")
        replier = make_user(engine, "rudi")
        fid = make_forum(engine, author)
        parent = _add_comment(engine, fid, first)

        ns.send_comment_notification(engine, fid, replier, "Rudi", parent_comment_id=parent)

        (note,) = _inbox(engine, first, NotificationType.FORUM_COMMENT)
        assert note.message == "Rudi membalas komentar Anda"
        assert _inbox(engine, author) == []

    def test_self_comment_is_silent(self, engine):
        author = make_user(engine, "author")
        fid = make_forum(engine, author)
        assert ns.send_comment_notification(engine, fid, author, "Author") is None
        assert _inbox(engine, author) == []

    def test_reply_to_own_comment_is_silent(self, engine):
        author = make_user(engine, "author")
        commenter = make_user(engine, "sari")
        fid = make_forum(engine, author)
        parent = _add_comment(engine, fid, commenter)

        assert ns.send_comment_notification(
            engine, fid, commenter, "Sari", parent_comment_id=parent
        ) is None


# ---------------------------------------------------------------------------
# Mentions
# ---------------------------------------------------------------------------
class TestMentions:
    def test_mentions_resolve_by_username_and_full_name(self, engine):
        author = make_user(engine, "author")
        mentioner = make_user(engine, "sari")
        budi = make_user(engine, "budi")
        dewi = make_user(engine, "dw88", full_name="Dewi Lestari")
        fid = make_forum(engine, author)

        content = "Tolong cek @budi dan @dewi, terima kasih"
        sent = ns.send_mention_notifications(engine, fid, mentioner, "sari", content)

        assert {n.user_id for n in sent} == {budi, dewi}
        (note,) = _inbox(engine, budi, NotificationType.MENTION)
        assert note.title == "@sari"
        assert note.message == f'@sari menyebut Anda dalam komentar: "{content[:50]}..."'

    def test_same_user_notified_once(self, engine):
        author = make_user(engine, "author")
        mentioner = make_user(engine, "sari")
        budi = make_user(engine, "budi", full_name="Budi Santoso")
        fid = make_forum(engine, author)

        sent = ns.send_mention_notifications(
            engine, fid, mentioner, "sari", "@budi @budi @Santoso"
        )

        assert [n.user_id for n in sent] == [budi]

    def test_mentioner_not_notified(self, engine):
        author = make_user(engine, "author")
        mentioner = make_user(engine, "sari")
        fid = make_forum(engine, author)

        assert ns.send_mention_notifications(engine, fid, mentioner, "sari", "@sari") == []

    def test_unknown_handle_skipped(self, engine):
        author = make_user(engine, "author")
        mentioner = make_user(engine, "sari")
        fid = make_forum(engine, author)

        assert ns.send_mention_notifications(engine, fid, mentioner, "sari", "@nobody") == []

    def test_wildcards_in_handle_are_literal(self, engine):
        make_user(engine, "budi", full_name="Budi")
        with Session(engine) as session:
            assert ns.resolve_mentioned_user(session, "%") is None


# ---------------------------------------------------------------------------
# Status, system, points
# ---------------------------------------------------------------------------
class TestStatusNotifications:
    def test_resolved_template(self, engine):
        author = make_user(engine, "author")
        fid = make_forum(engine, author)

        ns.send_status_update_notification(engine, fid, "resolved", "Pak Admin")

        (note,) = _inbox(engine, author, NotificationType.STATUS_CHANGE)
        assert note.title == "Dinas Pekerjaan Umum"
        assert note.message == "Laporan Anda telah selesai ditangani."

    def test_unknown_status_uses_admin_name(self, engine):
        author = make_user(engine, "author")
        fid = make_forum(engine, author)

        ns.send_status_update_notification(engine, fid, "archived", "Pak Admin")

        (note,) = _inbox(engine, author, NotificationType.STATUS_CHANGE)
        assert note.title == "Pak Admin"
        assert note.message == 'Status laporan Anda telah diperbarui menjadi "archived".'

    def test_unknown_forum(self, engine):
        assert ns.send_status_update_notification(engine, 123, "resolved") is None

    def test_system_notification(self, engine):
        uid = make_user(engine, "budi")
        note = ns.send_system_notification(engine, uid, "Pemeliharaan", "Server down 22:00")
        assert note.type == NotificationType.SYSTEM

    def test_store_failure_returns_none(self, engine):
        # title is NOT NULL
        uid = make_user(engine, "budi")
        assert ns.create_notification(
            engine,
            user_id=uid,
            type_=NotificationType.SYSTEM,
            title=None,
            message="x",
        ) is None


# ---------------------------------------------------------------------------
# Inbox & retention
# ---------------------------------------------------------------------------
class TestInbox:
    def _seed(self, engine, user_id, count):
        for i in range(count):
            ns.create_notification(
                engine,
                user_id=user_id,
                type_=NotificationType.SYSTEM,
                title=f"t{i}",
                message="m",
                now=NOW + timedelta(minutes=i),
            )

    def test_list_newest_first(self, engine):
        uid = make_user(engine, "budi")
        self._seed(engine, uid, 3)
        assert [n.title for n in ns.list_notifications(engine, uid)] == ["t2", "t1", "t0"]
        assert len(ns.list_notifications(engine, uid, limit=2)) == 2

    def test_mark_as_read_only_for_recipient(self, engine):
        uid = make_user(engine, "budi")
        other = make_user(engine, "sari")
        note = ns.create_notification(
            engine, user_id=uid, type_=NotificationType.SYSTEM, title="t", message="m"
        )

        assert ns.mark_as_read(engine, note.id, other) is False
        assert ns.get_unread_count(engine, uid) == 1
        assert ns.mark_as_read(engine, note.id, uid) is True
        assert ns.get_unread_count(engine, uid) == 0

    def test_mark_all_as_read(self, engine):
        uid = make_user(engine, "budi")
        self._seed(engine, uid, 4)
        assert ns.mark_all_as_read(engine, uid) == 4
        assert ns.mark_all_as_read(engine, uid) == 0
        assert ns.get_unread_count(engine, uid) == 0

    def test_cleanup_deletes_old_rows(self, engine):
        uid = make_user(engine, "budi")
        for age_days in (40, 31, 29, 1):
            ns.create_notification(
                engine,
                user_id=uid,
                type_=NotificationType.SYSTEM,
                title=f"{age_days}d",
                message="m",
                now=NOW - timedelta(days=age_days),
            )

        assert ns.cleanup_old_notifications(engine, now=NOW) == 2
        assert {n.title for n in ns.list_notifications(engine, uid)} == {"29d", "1d"}

    def test_cleanup_custom_retention(self, engine):
        uid = make_user(engine, "budi")
        ns.create_notification(
            engine,
            user_id=uid,
            type_=NotificationType.SYSTEM,
            title="old",
            message="m",
            now=NOW - timedelta(days=8),
        )
        assert ns.cleanup_old_notifications(engine, 7, now=NOW) == 1
