from pydantic import BaseModel


class Joke(BaseModel):
    id: int
    title: str
    content: str
