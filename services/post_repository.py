"""
Post Repository Module

Mediates between the remote feed and the local post cache: every post fetched
from the remote feed is persisted before it is handed back, and cache queries
are exposed for offline use.
"""

from typing import List, Optional

from data.models import Post
from data.protocols import PostCache
from services.protocols import FeedClientProtocol
from utils.logger import get_logger

logger = get_logger(__name__)


class PostRepository:
    """Remote fetch with persist-on-fetch, plus cache reads."""

    def __init__(self, feed_client: FeedClientProtocol, post_cache: PostCache):
        self.feed_client = feed_client
        self.post_cache = post_cache

    def refresh_posts(self) -> int:
        """
        Fetch the full remote feed and store it in the cache.

        Returns:
            int: Number of posts fetched.

        Raises:
            FeedError: If the remote feed fails.
            DatabaseError: If the posts cannot be cached.
        """
        posts = self.feed_client.fetch_all()
        self.post_cache.upsert_posts(posts)
        logger.info(f"Refreshed cache with {len(posts)} posts")
        return len(posts)

    def load_posts_page(self, page: int, limit: int) -> List[Post]:
        """
        Fetch one page from the remote feed and store it in the cache.

        Raises:
            FeedError: If the remote feed fails.
            DatabaseError: If the posts cannot be cached.
        """
        posts = self.feed_client.fetch_page(page, limit)
        self.post_cache.upsert_posts(posts)
        return posts

    def get_all_posts(self) -> List[Post]:
        return self.post_cache.get_all_posts()

    def get_post(self, post_id: int) -> Optional[Post]:
        return self.post_cache.get_post(post_id)

    def get_favorite_posts(self) -> List[Post]:
        return self.post_cache.get_favorite_flagged_posts()

    def search_posts(self, query: str, in_title: bool = True, in_body: bool = True) -> List[Post]:
        return self.post_cache.search_posts(query, in_title=in_title, in_body=in_body)

    def search_posts_advanced(self, query: str, in_title: bool = True, in_body: bool = True,
                              user_id: Optional[int] = None) -> List[Post]:
        """Search the cache; an author id takes precedence over the text query."""
        if user_id is not None:
            return self.post_cache.get_posts_by_author(user_id)
        return self.search_posts(query, in_title=in_title, in_body=in_body)

    def clear_all_posts(self) -> None:
        self.post_cache.clear_all_posts()
