"""
User Store Module

Locally registered accounts. Passwords are stored and compared as plain text.
"""

from typing import Optional

from data.database import CacheDatabase
from data.models import User


class UserStore:
    """Users table access."""

    def __init__(self, database: CacheDatabase):
        self.db = database

    def get_user_by_email(self, email: str) -> Optional[User]:
        rows = self.db.query("SELECT email, password FROM users WHERE email = :email", {"email": email})
        return User.from_row(rows[0]) if rows else None

    def get_user(self, email: str, password: str) -> Optional[User]:
        rows = self.db.query(
            "SELECT email, password FROM users WHERE email = :email AND password = :password",
            {"email": email, "password": password},
        )
        return User.from_row(rows[0]) if rows else None

    def insert_user(self, user: User) -> None:
        self.db.execute(
            "INSERT OR REPLACE INTO users (email, password) VALUES (:email, :password)",
            {"email": user.email, "password": user.password},
        )
