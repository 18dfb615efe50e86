"""
CrudLab Backend — Cursor Pagination Tests
==========================================

Runs against the in-memory SQLite schema. Rows get explicit created_at
values so page boundaries are deterministic; some tests give every row the
same timestamp to exercise the id tie-breaker.
"""

from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest

from crudlab.models.patient import Patient, PatientGender
from crudlab.services.pagination import paginate, parse_cursor

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


async def _seed_patients(session, count, hospital=None, same_time=False):
    hospital = hospital or uuid4()
    for i in range(count):
        session.add(
            Patient(
                name=f"Patient {i}",
                diagnosed_with="Flu",
                address="1 Main St",
                age=30 + i,
                blood_group="O+",
                gender=PatientGender.FEMALE,
                admitted_in=hospital,
                created_at=BASE_TIME if same_time else BASE_TIME + timedelta(minutes=i),
            )
        )
    await session.flush()
    return hospital


CURSOR_ID = "0b7e2c1a-4f8e-4d3b-9a51-3c2f0e6d8a11"


@pytest.mark.parametrize(
    "cursor, expected",
    [
        (None, (None, None)),
        ("", (None, None)),
        ("not-a-date", (None, None)),
        ("2026-01-01T00:00:00+00:00", (BASE_TIME, None)),
        ("2026-01-01T00:00:00Z", (BASE_TIME, None)),
        (f"2026-01-01T00:00:00+00:00|{CURSOR_ID}", (BASE_TIME, UUID(CURSOR_ID))),
        (f"2026-01-01T00:00:00Z|{CURSOR_ID}", (BASE_TIME, UUID(CURSOR_ID))),
        ("2026-01-01T00:00:00+00:00|not-a-uuid", (None, None)),
        (f"garbage|{CURSOR_ID}", (None, None)),
    ],
)
def test_parse_cursor(cursor, expected):
    assert parse_cursor(cursor) == expected


@pytest.mark.asyncio
async def test_first_page_newest_first(db_session):
    await _seed_patients(db_session, 5)

    rows, total, next_cursor, has_more = await paginate(db_session, Patient, limit=2)

    assert [r.name for r in rows] == ["Patient 4", "Patient 3"]
    assert total == 5
    assert has_more is True
    assert next_cursor is not None


@pytest.mark.asyncio
async def test_walks_all_pages_without_gaps(db_session):
    await _seed_patients(db_session, 5)

    seen = []
    cursor = None
    while True:
        rows, total, cursor, has_more = await paginate(
            db_session, Patient, limit=2, cursor=cursor
        )
        seen.extend(r.name for r in rows)
        if not has_more:
            break

    assert seen == [f"Patient {i}" for i in range(4, -1, -1)]
    assert cursor is None


@pytest.mark.asyncio
async def test_ascending_sort(db_session):
    await _seed_patients(db_session, 3)

    rows, _, next_cursor, has_more = await paginate(
        db_session, Patient, limit=2, sort="created_at_asc"
    )
    assert [r.name for r in rows] == ["Patient 0", "Patient 1"]

    rows, _, _, has_more = await paginate(
        db_session, Patient, limit=2, cursor=next_cursor, sort="created_at_asc"
    )
    assert [r.name for r in rows] == ["Patient 2"]
    assert has_more is False


@pytest.mark.asyncio
async def test_filters_apply_to_rows_and_total(db_session):
    hospital = await _seed_patients(db_session, 3)
    await _seed_patients(db_session, 2)

    rows, total, _, _ = await paginate(
        db_session, Patient, [Patient.admitted_in == hospital], limit=10
    )

    assert total == 3
    assert all(r.admitted_in == hospital for r in rows)


@pytest.mark.asyncio
async def test_invalid_cursor_returns_first_page(db_session):
    await _seed_patients(db_session, 3)

    rows, total, _, _ = await paginate(db_session, Patient, limit=10, cursor="garbage")

    assert len(rows) == 3
    assert total == 3


@pytest.mark.asyncio
async def test_next_cursor_carries_id(db_session):
    await _seed_patients(db_session, 3)

    rows, _, next_cursor, _ = await paginate(db_session, Patient, limit=2)

    assert next_cursor == f"{rows[-1].created_at.isoformat()}|{rows[-1].id}"


@pytest.mark.asyncio
@pytest.mark.parametrize("sort", ["created_at_desc", "created_at_asc"])
async def test_tied_timestamps_are_not_skipped(db_session, sort):
    await _seed_patients(db_session, 4, same_time=True)

    seen = []
    cursor = None
    for _ in range(4):
        rows, total, cursor, has_more = await paginate(
            db_session, Patient, limit=2, cursor=cursor, sort=sort
        )
        seen.extend(r.id for r in rows)
        if not has_more:
            break

    assert total == 4
    assert len(seen) == 4
    assert len(set(seen)) == 4
    expected = sorted(seen, reverse=(sort == "created_at_desc"))
    assert seen == expected


@pytest.mark.asyncio
async def test_bare_timestamp_cursor_still_accepted(db_session):
    await _seed_patients(db_session, 3)

    rows, _, _, _ = await paginate(
        db_session, Patient, limit=10, cursor="2026-01-01T00:01:00Z"
    )

    assert [r.name for r in rows] == ["Patient 0"]
