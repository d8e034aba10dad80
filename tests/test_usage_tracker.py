from datetime import datetime, timezone

import pytest

from knowledgebase.core.database import Database
from knowledgebase.models.document import KnowledgeDocument
from knowledgebase.utils import usage_tracker
from knowledgebase.utils.usage_tracker import (
    get_usage_stats,
    record_query,
    refresh_document_counts,
    upsert_usage_stats,
)

SEPTEMBER = datetime(2026, 9, 20, 12, 0, tzinfo=timezone.utc)
OCTOBER = datetime(2026, 10, 2, 9, 30, tzinfo=timezone.utc)


def freeze(monkeypatch, when):
    monkeypatch.setattr(usage_tracker, "utcnow", lambda: when)


@pytest.mark.asyncio
async def test_query_count_restarts_after_document_change_in_new_month(tmp_path, monkeypatch):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'usage.db'}")
    await db.create_all()
    try:
        async with db.sessionmaker() as session:
            freeze(monkeypatch, SEPTEMBER)
            await record_query(session, "user-1")
            await record_query(session, "user-1")
            assert (await get_usage_stats(session, "user-1")).queries_this_month == 2

            # First activity of the new month is a document save, not a question
            freeze(monkeypatch, OCTOBER)
            session.add(KnowledgeDocument(owner_id="user-1", title="Notes", type="file", content="hello"))
            await session.commit()
            await refresh_document_counts(session, "user-1")

            await record_query(session, "user-1")

            stats = await get_usage_stats(session, "user-1")
            assert stats.queries_this_month == 1
            assert stats.queries_month == "2026-10"
            assert stats.total_documents == 1
    finally:
        await db.dispose()


@pytest.mark.asyncio
async def test_query_count_keeps_growing_within_month(tmp_path, monkeypatch):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'usage.db'}")
    await db.create_all()
    try:
        async with db.sessionmaker() as session:
            freeze(monkeypatch, OCTOBER)
            await record_query(session, "user-1")
            await refresh_document_counts(session, "user-1")
            await record_query(session, "user-1")

            assert (await get_usage_stats(session, "user-1")).queries_this_month == 2
    finally:
        await db.dispose()


@pytest.mark.asyncio
async def test_manual_count_is_stamped_with_current_month(tmp_path, monkeypatch):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'usage.db'}")
    await db.create_all()
    try:
        async with db.sessionmaker() as session:
            freeze(monkeypatch, OCTOBER)
            await upsert_usage_stats(session, "user-1", queries_this_month=5)
            await record_query(session, "user-1")

            assert (await get_usage_stats(session, "user-1")).queries_this_month == 6
    finally:
        await db.dispose()
