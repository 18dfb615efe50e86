"""
CrudLab Backend — Password Hashing
===================================

What:  bcrypt hashing and verification for user passwords.
How:   bcrypt is CPU-bound (~100ms per hash at the default cost), so both
       calls run in Starlette's threadpool to keep the event loop free.

bcrypt only reads the first 72 bytes of a password. Longer inputs are
truncated explicitly so hashing and verification always agree.
"""

import bcrypt
from starlette.concurrency import run_in_threadpool

BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def _hash_sync(password: str) -> str:
    return bcrypt.hashpw(_encode(password), bcrypt.gensalt()).decode("utf-8")


def _verify_sync(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_encode(password), hashed.encode("utf-8"))
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


async def hash_password(password: str) -> str:
    return await run_in_threadpool(_hash_sync, password)


async def verify_password(password: str, hashed: str) -> bool:
    """True when `password` matches the stored bcrypt hash."""
    if not password or not hashed:
        return False
    return await run_in_threadpool(_verify_sync, password, hashed)
