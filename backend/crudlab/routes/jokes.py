"""
CrudLab Backend — Jokes Route
==============================

GET /api/jokes returns a fixed list of five jokes as a bare JSON array,
without the ApiResponse envelope; the frontend demo reads it directly.
"""

from typing import List

from fastapi import APIRouter

from crudlab.schemas.joke import Joke

router = APIRouter(prefix="/api", tags=["Jokes"])

JOKES: List[Joke] = [
    Joke(
        id=1,
        title="Programming Joke",
        content="Why do programmers prefer dark mode? Because light attracts bugs!",
    ),
    Joke(
        id=2,
        title="Dad Joke",
        content="Why don't scientists trust atoms? Because they make up everything!",
    ),
    Joke(
        id=3,
        title="Pun Joke",
        content="I used to be a baker because I kneaded dough.",
    ),
    Joke(
        id=4,
        title="Math Joke",
        content=(
            "Why was the equal sign so humble? Because he knew he wasn't "
            "less than or greater than anyone else."
        ),
    ),
    Joke(
        id=5,
        title="Nature Joke",
        content="Why did the scarecrow win an award? Because he was outstanding in his field!",
    ),
]


@router.get("/jokes", response_model=List[Joke], summary="List jokes")
async def list_jokes() -> List[Joke]:
    return JOKES
