"""Проверяет учёт визитов: идемпотентность по (страница, IP) и монотонность счетчиков."""

import asyncio

from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.models.page_view import PageView, PageVisitor
from app.services import visits
from app.services.visits import (
    list_page_views,
    list_unique_visitors,
    normalize_page_key,
    record_visit,
)


def test_normalize_page_key() -> None:
    assert normalize_page_key("") == "/"
    assert normalize_page_key("/") == "/"
    assert normalize_page_key("/index.html") == "/"
    assert normalize_page_key("/About/") == "/about"
    assert normalize_page_key("/contact.html?ref=nav") == "/contact"
    assert normalize_page_key("/articles") == "/articles"
    assert normalize_page_key("/articles/belajar-python") == "/articles/:slug"
    assert normalize_page_key("/articles/42/") == "/articles/:slug"


def run_visits(session_factory, calls: list[tuple[str, str]]):
    async def scenario():
        results = []
        totals = []
        for page, ip in calls:
            async with session_factory() as db:
                results.append(await record_visit(db, page, ip))
            async with session_factory() as db:
                totals.append(await db.scalar(select(PageView.total).where(PageView.page == normalize_page_key(page))))
        return results, totals

    return asyncio.run(scenario())


def test_repeat_visit_from_same_address_counts_once(session_factory) -> None:
    results, totals = run_visits(session_factory, [("/", "10.0.0.1"), ("/", "10.0.0.1"), ("/", "10.0.0.1")])

    assert [result.ok for result in results] == [True, True, True]
    assert [result.counted for result in results] == [True, False, False]
    assert totals == [1, 1, 1]

    async def ledger_rows() -> int:
        async with session_factory() as db:
            return await db.scalar(
                select(func.count()).select_from(PageVisitor).where(PageVisitor.page == "/", PageVisitor.ip_address == "10.0.0.1")
            )

    assert asyncio.run(ledger_rows()) == 1


def test_new_address_increments_total(session_factory) -> None:
    _, totals = run_visits(session_factory, [("/", "10.0.0.1"), ("/", "10.0.0.1"), ("/", "10.0.0.2")])

    assert totals == [1, 1, 2]


def test_totals_are_monotonic_and_hits_count_every_visit(session_factory) -> None:
    calls = [
        ("/", "a"),
        ("/about", "a"),
        ("/", "b"),
        ("/", "a"),
        ("/articles/one", "a"),
        ("/articles/two", "a"),
        ("/articles/two", "b"),
    ]
    run_visits(session_factory, calls)

    async def snapshot():
        async with session_factory() as db:
            return await list_page_views(db), await list_unique_visitors(db)

    page_views, unique_visitors = asyncio.run(snapshot())

    by_page = {row.page: (row.total, row.hits) for row in page_views}
    assert by_page == {"/": (2, 3), "/about": (1, 1), "/articles/:slug": (2, 3)}
    assert unique_visitors == [("/", 2), ("/about", 1), ("/articles/:slug", 2)]


def test_storage_error_is_reported_not_raised(session_factory, monkeypatch) -> None:
    def broken_insert(db):
        def insert(table):
            raise OperationalError("INSERT", {}, Exception("database is locked"))

        return insert

    monkeypatch.setattr(visits, "_insert_for", broken_insert)

    async def scenario():
        async with session_factory() as db:
            return await record_visit(db, "/", "10.0.0.1")

    result = asyncio.run(scenario())

    assert not result.ok
    assert not result.counted
    assert "database is locked" in result.error


def test_connection_error_is_reported_not_raised(session_factory, monkeypatch) -> None:
    def unreachable_insert(db):
        def insert(table):
            raise ConnectionRefusedError(111, "Connect call failed ('127.0.0.1', 5432)")

        return insert

    monkeypatch.setattr(visits, "_insert_for", unreachable_insert)

    async def scenario():
        async with session_factory() as db:
            return await record_visit(db, "/", "10.0.0.1")

    result = asyncio.run(scenario())

    assert not result.ok
    assert "Connect call failed" in result.error


def test_failed_rollback_does_not_escape() -> None:
    class UnreachableSession:
        class bind:
            class dialect:
                name = "postgresql"

        async def execute(self, statement):
            raise ConnectionRefusedError(111, "Connect call failed")

        async def rollback(self) -> None:
            raise OSError("connection already closed")

    result = asyncio.run(record_visit(UnreachableSession(), "/about", "10.0.0.1"))

    assert not result.ok
    assert not result.counted
