"""
Comment Cache Module

SQL implementation of the cached comments of each post.
"""

from typing import List

from data.database import CacheDatabase
from data.models import Comment

COMMENT_COLUMNS = "id, post_id, name, email, body"


class CommentCacheStore:
    """Comments table access, ordered by ascending comment id."""

    def __init__(self, database: CacheDatabase):
        self.db = database

    def get_comments_for_post(self, post_id: int) -> List[Comment]:
        rows = self.db.query(
            f"SELECT {COMMENT_COLUMNS} FROM comments WHERE post_id = :post_id ORDER BY id ASC",
            {"post_id": post_id},
        )
        return [Comment.from_row(row) for row in rows]

    def get_all_comments(self) -> List[Comment]:
        rows = self.db.query(f"SELECT {COMMENT_COLUMNS} FROM comments ORDER BY post_id ASC, id ASC")
        return [Comment.from_row(row) for row in rows]

    def upsert_comments(self, comments: List[Comment]) -> None:
        if not comments:
            return
        self.db.execute(
            f"INSERT OR REPLACE INTO comments ({COMMENT_COLUMNS}) "
            "VALUES (:id, :post_id, :name, :email, :body)",
            [
                {"id": c.id, "post_id": c.post_id, "name": c.name, "email": c.email, "body": c.body}
                for c in comments
            ],
        )

    def count_comments_for_post(self, post_id: int) -> int:
        return int(self.db.query_scalar(
            "SELECT COUNT(*) FROM comments WHERE post_id = :post_id", {"post_id": post_id}
        ) or 0)

    def delete_comments_for_post(self, post_id: int) -> None:
        self.db.execute("DELETE FROM comments WHERE post_id = :post_id", {"post_id": post_id})

    def clear_all_comments(self) -> None:
        self.db.execute("DELETE FROM comments")
