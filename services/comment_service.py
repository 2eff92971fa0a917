"""
Comment Service Module

Loads the comments of a post from the remote feed, caches them, and serves the
cached copy when the remote feed is unreachable.
"""

from typing import List

from data.models import Comment
from data.protocols import CommentCache
from services.protocols import FeedClientProtocol
from utils.exceptions import DatabaseError, FeedError, FeedFetchError
from utils.logger import get_logger

logger = get_logger(__name__)


class CommentService:
    """Remote comments with a cache fallback."""

    def __init__(self, feed_client: FeedClientProtocol, comment_cache: CommentCache):
        self.feed_client = feed_client
        self.comment_cache = comment_cache

    def get_cached_comments(self, post_id: int) -> List[Comment]:
        return self.comment_cache.get_comments_for_post(post_id)

    def load_comments_for_post(self, post_id: int) -> List[Comment]:
        """
        Fetch and cache the comments of a post.

        If the remote feed fails, cached comments are returned instead when
        there are any.

        Args:
            post_id: The post whose comments to load

        Returns:
            List[Comment]: Comments ordered as served (remote) or by id (cache)

        Raises:
            FeedFetchError: If the remote feed fails and nothing is cached
        """
        try:
            comments = self.feed_client.fetch_comments(post_id)
        except FeedError as e:
            logger.warning(f"Fetching comments for post {post_id} failed: {e}")
            return self._cached_or_raise(post_id, e)

        self.comment_cache.upsert_comments(comments)
        return comments

    def _cached_or_raise(self, post_id: int, error: FeedError) -> List[Comment]:
        try:
            cached = self.comment_cache.get_comments_for_post(post_id)
        except DatabaseError as db_error:
            logger.error(f"Reading cached comments for post {post_id} failed: {db_error}")
            raise FeedFetchError(str(error)) from error

        if not cached:
            raise FeedFetchError(str(error)) from error

        logger.info(f"Serving {len(cached)} cached comments for post {post_id}")
        return cached

    def get_comment_count(self, post_id: int) -> int:
        return self.comment_cache.count_comments_for_post(post_id)

    def clear_comments_for_post(self, post_id: int) -> None:
        self.comment_cache.delete_comments_for_post(post_id)
        logger.info(f"Cleared cached comments for post {post_id}")
