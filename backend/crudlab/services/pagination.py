"""
CrudLab Backend — Cursor Pagination
====================================

What:  Shared cursor-based pagination over any DocumentMixin model.
Why:   Every list endpoint pages the same way (created_at cursor), so the
       query building lives here instead of in each service.

How cursor works:
    - Default sort created_at DESC, id DESC; the cursor is
      "<created_at iso>|<id>" of the last item on the previous page
    - DESC pages continue at rows strictly before (created_at, id),
      ASC pages at rows strictly after it, so rows sharing a timestamp
      are neither skipped nor repeated
    - A bare ISO timestamp is still accepted and compares created_at only
    - One extra row is fetched to compute has_more without a second query
    - total_count ignores the cursor (it counts the whole filtered set)

An unparseable cursor is ignored and the first page is returned.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import and_, asc, desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

CURSOR_SEPARATOR = "|"


def parse_cursor(cursor: Optional[str]) -> Tuple[Optional[datetime], Optional[uuid.UUID]]:
    """
    Split a cursor into (created_at, id).

    Returns (None, None) for a missing or unparseable cursor, and
    (created_at, None) for a bare ISO timestamp.
    """
    if not cursor:
        return None, None

    timestamp, _, raw_id = cursor.partition(CURSOR_SEPARATOR)
    # fromisoformat only accepts a "Z" suffix from Python 3.11 on
    if timestamp.endswith(("Z", "z")):
        timestamp = timestamp[:-1] + "+00:00"

    try:
        created_at = datetime.fromisoformat(timestamp)
        row_id = uuid.UUID(raw_id) if raw_id else None
    except ValueError:
        logger.debug("Ignoring invalid pagination cursor: %r", cursor)
        return None, None
    return created_at, row_id


def encode_cursor(row: Any) -> str:
    return f"{row.created_at.isoformat()}{CURSOR_SEPARATOR}{row.id}"


async def paginate(
    db: AsyncSession,
    model: Any,
    filters: Sequence[Any] = (),
    limit: int = 20,
    cursor: Optional[str] = None,
    sort: str = "created_at_desc",
) -> Tuple[List[Any], int, Optional[str], bool]:
    """
    Fetch one page of `model` rows matching `filters`.

    Returns:
        (rows, total_count, next_cursor, has_more)
    """
    ascending = sort == "created_at_asc"

    query = select(model)
    for condition in filters:
        query = query.where(condition)

    cursor_dt, cursor_id = parse_cursor(cursor)
    if cursor_dt is not None:
        if ascending:
            after_time = model.created_at > cursor_dt
            same_time = model.id > cursor_id if cursor_id is not None else None
        else:
            after_time = model.created_at < cursor_dt
            same_time = model.id < cursor_id if cursor_id is not None else None

        if same_time is None:
            query = query.where(after_time)
        else:
            query = query.where(or_(after_time, and_(model.created_at == cursor_dt, same_time)))

    if ascending:
        query = query.order_by(asc(model.created_at), asc(model.id))
    else:
        query = query.order_by(desc(model.created_at), desc(model.id))

    result = await db.execute(query.limit(limit + 1))
    rows = list(result.scalars().all())

    count_query = select(func.count(model.id))
    for condition in filters:
        count_query = count_query.where(condition)
    count_result = await db.execute(count_query)
    total_count = count_result.scalar() or 0

    has_more = len(rows) > limit
    if has_more:
        rows = rows[:limit]

    next_cursor = None
    if has_more and rows:
        next_cursor = encode_cursor(rows[-1])

    return rows, total_count, next_cursor, has_more
