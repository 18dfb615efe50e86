"""
CrudLab Backend — Request Dependencies
=======================================

What:  Resolves the current user for routes that act on "my" data, and
       the shared list query parameters.
How:   The API sits behind a gateway that authenticates the caller and
       forwards the user's id in the X-User-ID header. This dependency only
       loads that user; it does not verify credentials itself.

Usage:
    @router.get("/current-user")
    async def current_user(user: User = Depends(get_current_user)): ...
"""

import logging
import uuid
from typing import Optional

from fastapi import Depends, Header, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crudlab.database import get_db_session
from crudlab.exceptions import AuthenticationError
from crudlab.models.user import User
from crudlab.schemas.common import PaginationParams

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-User-ID"


async def get_current_user(
    x_user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER),
    db: AsyncSession = Depends(get_db_session),
) -> User:
    """
    Raises:
        AuthenticationError: header missing, not a UUID, or no such user (→ 401)
    """
    if not x_user_id:
        raise AuthenticationError()

    try:
        user_id = uuid.UUID(x_user_id)
    except ValueError:
        raise AuthenticationError(context={"reason": "malformed_user_id"})

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        logger.warning("Request for unknown user %s", user_id)
        raise AuthenticationError(context={"reason": "unknown_user", "user_id": str(user_id)})
    return user


def pagination_params(
    limit: int = Query(default=20, ge=1, le=100, description="Items per page (max 100)"),
    cursor: Optional[str] = Query(
        default=None,
        description="created_at (ISO 8601) of the last item of the previous page",
    ),
    sort: str = Query(
        default="created_at_desc",
        pattern="^created_at_(asc|desc)$",
        description="'created_at_desc' (newest first) or 'created_at_asc'",
    ),
) -> PaginationParams:
    return PaginationParams(limit=limit, cursor=cursor, sort=sort)
