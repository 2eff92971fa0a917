"""
Post Cache Module

SQL implementation of the local post cache used as the offline store for the
feed. Listing queries go through pandas so the rows come back as one frame.
"""

from typing import List, Optional

import pandas as pd

from data.database import CacheDatabase
from data.models import Post, post_to_params
from utils.helpers import LIKE_ESCAPE_CHAR, escape_like
from utils.logger import get_logger

logger = get_logger(__name__)

POST_COLUMNS = "id, user_id, title, body, is_favorite"

# Remote content replaces the row; the cache-local favorite flag is kept
UPSERT_POST = """
INSERT INTO posts (id, user_id, title, body, is_favorite)
VALUES (:id, :user_id, :title, :body, :is_favorite)
ON CONFLICT (id) DO UPDATE SET
    user_id = excluded.user_id,
    title = excluded.title,
    body = excluded.body
"""


def _frame_to_posts(frame: pd.DataFrame) -> List[Post]:
    return [Post.from_row(row) for row in frame.to_dict("records")]


class PostCacheStore:
    """Local cache of posts, ordered by descending id on every listing."""

    def __init__(self, database: CacheDatabase):
        self.db = database

    def upsert_posts(self, posts: List[Post]) -> None:
        if not posts:
            return
        self.db.execute(UPSERT_POST, [post_to_params(post) for post in posts])
        logger.debug(f"Cached {len(posts)} posts")

    def get_all_posts(self) -> List[Post]:
        frame = self.db.read_frame(f"SELECT {POST_COLUMNS} FROM posts ORDER BY id DESC")
        return _frame_to_posts(frame)

    def get_post(self, post_id: int) -> Optional[Post]:
        rows = self.db.query(f"SELECT {POST_COLUMNS} FROM posts WHERE id = :id", {"id": post_id})
        return Post.from_row(rows[0]) if rows else None

    def get_favorite_flagged_posts(self) -> List[Post]:
        frame = self.db.read_frame(
            f"SELECT {POST_COLUMNS} FROM posts WHERE is_favorite = 1 ORDER BY id DESC"
        )
        return _frame_to_posts(frame)

    def search_posts(self, query: str, in_title: bool = True, in_body: bool = True) -> List[Post]:
        """
        Case-insensitive substring search over title and/or body.

        With neither field selected every post is returned, matching the
        behaviour of an unfiltered listing.
        """
        clauses = []
        if in_title:
            clauses.append(f"LOWER(title) LIKE :pattern ESCAPE '{LIKE_ESCAPE_CHAR}'")
        if in_body:
            clauses.append(f"LOWER(body) LIKE :pattern ESCAPE '{LIKE_ESCAPE_CHAR}'")
        if not clauses:
            return self.get_all_posts()

        pattern = f"%{escape_like(query.lower())}%"
        frame = self.db.read_frame(
            f"SELECT {POST_COLUMNS} FROM posts WHERE {' OR '.join(clauses)} ORDER BY id DESC",
            {"pattern": pattern},
        )
        return _frame_to_posts(frame)

    def search_posts_by_title(self, query: str) -> List[Post]:
        return self.search_posts(query, in_title=True, in_body=False)

    def search_posts_by_body(self, query: str) -> List[Post]:
        return self.search_posts(query, in_title=False, in_body=True)

    def get_posts_by_author(self, user_id: int) -> List[Post]:
        frame = self.db.read_frame(
            f"SELECT {POST_COLUMNS} FROM posts WHERE user_id = :user_id ORDER BY id DESC",
            {"user_id": user_id},
        )
        return _frame_to_posts(frame)

    def set_favorite_flag(self, post_id: int, is_favorite: bool) -> None:
        self.db.execute(
            "UPDATE posts SET is_favorite = :flag WHERE id = :id",
            {"flag": 1 if is_favorite else 0, "id": post_id},
        )

    def count_posts(self) -> int:
        return int(self.db.query_scalar("SELECT COUNT(*) FROM posts") or 0)

    def clear_all_posts(self) -> None:
        self.db.execute("DELETE FROM posts")
        logger.info("Cleared all cached posts")
