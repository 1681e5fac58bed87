"""Stale application cleanup."""

import asyncio
import logging
from contextlib import asynccontextmanager

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.dml import Delete

from permit_office.core.models import Application
from permit_office.jobs import reaper
from permit_office.jobs.reaper import purge_stale_applications, run_reaper

from conftest import create_application, create_park


async def _numbers(db: AsyncSession):
    result = await db.execute(select(Application.application_number).order_by(Application.application_number))
    return list(result.scalars().all())


@pytest.mark.asyncio
async def test_only_old_pending_unpaid_applications_are_removed(db_session: AsyncSession) -> None:
    park = await create_park(db_session)
    await create_application(db_session, park, "APP-2025-0001", age_hours=30)
    await create_application(db_session, park, "APP-2025-0002", age_hours=1)
    await create_application(db_session, park, "APP-2025-0003", age_hours=30, is_paid=True)
    await create_application(db_session, park, "APP-2025-0004", age_hours=30, status="approved")
    await create_application(db_session, park, "APP-2025-0005", age_hours=30, status="disapproved")

    deleted = await purge_stale_applications(db_session)

    assert deleted == 1
    assert await _numbers(db_session) == [
        "APP-2025-0002",
        "APP-2025-0003",
        "APP-2025-0004",
        "APP-2025-0005",
    ]


@pytest.mark.asyncio
async def test_second_run_is_a_no_op(db_session: AsyncSession) -> None:
    park = await create_park(db_session)
    await create_application(db_session, park, "APP-2025-0001", age_hours=48)
    await create_application(db_session, park, "APP-2025-0002", age_hours=25)

    assert await purge_stale_applications(db_session) == 2
    assert await purge_stale_applications(db_session) == 0
    assert await _numbers(db_session) == []


@pytest.mark.asyncio
async def test_max_age_is_configurable(db_session: AsyncSession) -> None:
    park = await create_park(db_session)
    await create_application(db_session, park, "APP-2025-0001", age_hours=3)

    assert await purge_stale_applications(db_session, max_age_hours=24) == 0
    assert await purge_stale_applications(db_session, max_age_hours=2) == 1


@pytest.mark.asyncio
async def test_failed_delete_is_logged_and_the_rest_still_run(db_session: AsyncSession, monkeypatch, caplog) -> None:
    park = await create_park(db_session)
    await create_application(db_session, park, "APP-2025-0001", age_hours=30)
    await create_application(db_session, park, "APP-2025-0002", age_hours=30)

    real_execute = db_session.execute
    failures = []

    async def flaky_execute(statement, *args, **kwargs):
        if isinstance(statement, Delete) and not failures:
            failures.append(statement)
            raise OperationalError("DELETE FROM applications", {}, Exception("database is locked"))
        return await real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db_session, "execute", flaky_execute)

    with caplog.at_level(logging.ERROR, logger="permit_office.jobs.reaper"):
        deleted = await purge_stale_applications(db_session)

    assert deleted == 1
    assert len(failures) == 1
    assert len(await _numbers(db_session)) == 1
    assert "Failed to delete stale application" in caplog.text


def _session_factory(db: AsyncSession):
    @asynccontextmanager
    async def factory():
        yield db

    return factory


@pytest.mark.asyncio
async def test_run_reaper_purges_before_first_sleep(db_session: AsyncSession, monkeypatch) -> None:
    park = await create_park(db_session)
    await create_application(db_session, park, "APP-2025-0001", age_hours=30)
    purged = asyncio.Event()

    async def purge_and_signal(db, max_age_hours=24):
        count = await purge_stale_applications(db, max_age_hours=max_age_hours)
        purged.set()
        return count

    monkeypatch.setattr(reaper, "purge_stale_applications", purge_and_signal)

    task = asyncio.create_task(run_reaper(_session_factory(db_session), interval_seconds=3600))
    try:
        await asyncio.wait_for(purged.wait(), timeout=2)
    finally:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    assert await _numbers(db_session) == []


@pytest.mark.asyncio
async def test_run_reaper_repeats_and_survives_a_failed_run(db_session: AsyncSession, monkeypatch) -> None:
    runs = []

    async def fake_purge(db, max_age_hours=24):
        runs.append(max_age_hours)
        if len(runs) == 1:
            raise RuntimeError("database unavailable")
        return 0

    monkeypatch.setattr(reaper, "purge_stale_applications", fake_purge)

    task = asyncio.create_task(run_reaper(_session_factory(db_session), interval_seconds=0.01, max_age_hours=6))
    try:
        for _ in range(100):
            if len(runs) >= 3:
                break
            await asyncio.sleep(0.01)
    finally:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    assert len(runs) >= 3
    assert set(runs) == {6}
