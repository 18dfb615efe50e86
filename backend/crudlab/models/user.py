"""
CrudLab Backend — User Model
=============================

What:  ORM model for the `users` table.
Who:   Read and updated by UserService; referenced by todos, sub-todos
       and orders through foreign keys.

Column notes:
    - email: unique, stored lower-cased so lookups are case-insensitive
    - password: bcrypt hash only; UserResponse never exposes it
    - avatar / cover_image: Cloudinary URLs, NULL until uploaded
"""

from typing import Optional

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from crudlab.database import Base, DocumentMixin


class User(DocumentMixin, Base):
    __tablename__ = "users"

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False, unique=True, index=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    cover_image: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
