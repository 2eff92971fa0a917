"""
Favorite Store Module

SQL implementation of per-user favorites. Rows are keyed by
(post_id, user_key) and hold a snapshot of the post taken at favoriting time.
"""

from typing import List, Optional

from data.database import CacheDatabase
from data.models import Favorite
from utils.logger import get_logger

logger = get_logger(__name__)

FAVORITE_COLUMNS = "post_id, user_key, title, body, original_user_id"


class FavoriteStore:
    """Favorites table access."""

    def __init__(self, database: CacheDatabase):
        self.db = database

    def get_favorites_for_user(self, user_key: str) -> List[Favorite]:
        rows = self.db.query(
            f"SELECT {FAVORITE_COLUMNS} FROM favorites WHERE user_key = :user_key ORDER BY post_id DESC",
            {"user_key": user_key},
        )
        return [Favorite.from_row(row) for row in rows]

    def get_favorite(self, post_id: int, user_key: str) -> Optional[Favorite]:
        rows = self.db.query(
            f"SELECT {FAVORITE_COLUMNS} FROM favorites WHERE post_id = :post_id AND user_key = :user_key",
            {"post_id": post_id, "user_key": user_key},
        )
        return Favorite.from_row(rows[0]) if rows else None

    def upsert_favorite(self, favorite: Favorite) -> None:
        self.db.execute(
            f"INSERT OR REPLACE INTO favorites ({FAVORITE_COLUMNS}) "
            "VALUES (:post_id, :user_key, :title, :body, :original_user_id)",
            {
                "post_id": favorite.post_id,
                "user_key": favorite.user_key,
                "title": favorite.title,
                "body": favorite.body,
                "original_user_id": favorite.original_user_id,
            },
        )

    def count_favorites_for_post(self, post_id: int) -> int:
        return int(self.db.query_scalar(
            "SELECT COUNT(*) FROM favorites WHERE post_id = :post_id", {"post_id": post_id}
        ) or 0)

    def delete_favorite(self, post_id: int, user_key: str) -> None:
        self.db.execute(
            "DELETE FROM favorites WHERE post_id = :post_id AND user_key = :user_key",
            {"post_id": post_id, "user_key": user_key},
        )

    def delete_all_favorites_for_user(self, user_key: str) -> None:
        deleted = self.db.execute(
            "DELETE FROM favorites WHERE user_key = :user_key",
            {"user_key": user_key},
        )
        logger.info(f"Deleted {deleted} favorites for {user_key}")
