"""
Data Layer Protocol Definitions

This module defines typing.Protocol interfaces for data layer operations.
These protocols enable dependency injection for cache operations,
making services testable without a real database.

Protocols defined:
- PostCache: The local cache of posts (offline store for the feed)
- FavoriteStorage: Per-user favorites keyed by (post id, user key)
- CommentCache: Cached comments per post
- UserStorage: Locally registered accounts
"""

from typing import Protocol, Optional, List

from data.models import Post, Favorite, Comment, User


class PostCache(Protocol):
    """Protocol defining the interface for the local post cache.

    Implementations should provide methods for:
    - Inserting or replacing posts by id
    - Listing posts ordered by descending id
    - Case-insensitive substring search over title and body
    - Maintaining the cache-local favorite flag

    This protocol abstracts database operations, allowing services to work
    with any compatible storage backend (real database, in-memory fake, etc.).
    """

    def upsert_posts(self, posts: List[Post]) -> None:
        """Insert posts, replacing the content of rows with the same id.

        Args:
            posts: Posts to store.
        """
        ...

    def get_all_posts(self) -> List[Post]:
        """Return every cached post ordered by descending id."""
        ...

    def get_post(self, post_id: int) -> Optional[Post]:
        """Return one cached post, or None if it is not cached."""
        ...

    def get_favorite_flagged_posts(self) -> List[Post]:
        """Return cached posts whose favorite flag is set, ordered by descending id."""
        ...

    def search_posts(self, query: str, in_title: bool = True, in_body: bool = True) -> List[Post]:
        """Case-insensitive substring search.

        Args:
            query: Substring to look for.
            in_title: Match against the title.
            in_body: Match against the body.

        Returns:
            Matching posts ordered by descending id.
        """
        ...

    def get_posts_by_author(self, user_id: int) -> List[Post]:
        """Return cached posts written by one author, ordered by descending id."""
        ...

    def set_favorite_flag(self, post_id: int, is_favorite: bool) -> None:
        """Set the cache-local favorite flag of one post."""
        ...

    def count_posts(self) -> int:
        """Return the number of cached posts."""
        ...

    def clear_all_posts(self) -> None:
        """Delete every cached post."""
        ...


class FavoriteStorage(Protocol):
    """Protocol defining the interface for favorites storage.

    Rows are keyed by (post_id, user_key); writing the same key twice keeps
    the last write.
    """

    def get_favorites_for_user(self, user_key: str) -> List[Favorite]:
        """Return the user's favorites ordered by descending post id."""
        ...

    def get_favorite(self, post_id: int, user_key: str) -> Optional[Favorite]:
        """Return one favorite, or None if the user has not favorited the post."""
        ...

    def upsert_favorite(self, favorite: Favorite) -> None:
        """Insert or replace a favorite row."""
        ...

    def count_favorites_for_post(self, post_id: int) -> int:
        """Return how many users have favorited the post."""
        ...

    def delete_favorite(self, post_id: int, user_key: str) -> None:
        """Delete one favorite row; deleting a missing row is not an error."""
        ...

    def delete_all_favorites_for_user(self, user_key: str) -> None:
        """Delete every favorite row of a user."""
        ...


class CommentCache(Protocol):
    """Protocol defining the interface for cached comments."""

    def get_comments_for_post(self, post_id: int) -> List[Comment]:
        """Return the cached comments of a post ordered by ascending id."""
        ...

    def upsert_comments(self, comments: List[Comment]) -> None:
        """Insert or replace comments by id."""
        ...

    def count_comments_for_post(self, post_id: int) -> int:
        """Return the number of cached comments for a post."""
        ...

    def delete_comments_for_post(self, post_id: int) -> None:
        """Delete the cached comments of a post."""
        ...

    def clear_all_comments(self) -> None:
        """Delete every cached comment."""
        ...


class UserStorage(Protocol):
    """Protocol defining the interface for locally registered accounts."""

    def get_user_by_email(self, email: str) -> Optional[User]:
        """Return the user registered with this email, or None."""
        ...

    def get_user(self, email: str, password: str) -> Optional[User]:
        """Return the user matching both email and password, or None."""
        ...

    def insert_user(self, user: User) -> None:
        """Insert or replace a user."""
        ...
