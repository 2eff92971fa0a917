"""
Feed Client Module

This module talks to the remote post feed, a JSONPlaceholder-compatible REST
API. It provides paged and full post listings and per-post comments, and turns
every transport or decoding problem into a FeedError.
"""

from typing import Any, Callable, Dict, List, Optional, TypeVar

import requests

from config import settings
from data.models import Comment, Post
from utils.exceptions import FeedDecodeError, FeedFetchError
from utils.helpers import join_url
from utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class PostApiClient:
    """HTTP client for the remote post feed."""

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            base_url: API root; defaults to settings.POSTS_API_BASE_URL.
            timeout: Seconds per request; defaults to settings.REQUEST_TIMEOUT.
            session: Pre-built requests session (mainly for tests).
        """
        self.base_url = base_url or settings.POSTS_API_BASE_URL
        self.timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT
        self.session = session or requests.Session()
        self.session.headers.update(settings.REQUEST_HEADERS)

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Perform a GET and decode the JSON body.

        Raises:
            FeedFetchError: On network errors, timeouts and non-2xx statuses.
            FeedDecodeError: If the body is not JSON.
        """
        url = join_url(self.base_url, path)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.Timeout as e:
            logger.error(f"Request timed out for {url}: {e}")
            raise FeedFetchError(f"Request timed out: {url}") from e
        except requests.RequestException as e:
            logger.error(f"Request failed for {url}: {e}")
            raise FeedFetchError(f"Network error: {e}") from e

        if not response.ok:
            logger.error(f"HTTP error {response.status_code} for {url}")
            raise FeedFetchError(
                f"Failed to fetch posts: {response.status_code} {response.reason or ''}".strip(),
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from {url}: {e}")
            raise FeedDecodeError("Empty or invalid response body") from e

    @staticmethod
    def _decode_list(payload: Any, decoder: Callable[[Dict[str, Any]], T]) -> List[T]:
        if not isinstance(payload, list):
            raise FeedDecodeError("Expected a JSON array in response body")
        try:
            return [decoder(item) for item in payload]
        except (KeyError, TypeError, ValueError) as e:
            raise FeedDecodeError(f"Malformed item in response body: {e}") from e

    def fetch_page(self, page: int, limit: int) -> List[Post]:
        """
        Fetch one page of posts.

        Args:
            page: 1-indexed page number.
            limit: Number of posts per page.

        Returns:
            List[Post]: The posts of that page.
        """
        if page < 1:
            raise ValueError(f"page must be >= 1, got {page}")
        if limit < 1:
            raise ValueError(f"limit must be > 0, got {limit}")

        payload = self._get_json("posts", params={"_page": page, "_limit": limit})
        posts = self._decode_list(payload, Post.from_api)
        logger.info(f"Fetched page {page} ({len(posts)} posts)")
        return posts

    def fetch_all(self) -> List[Post]:
        """Fetch the complete post feed."""
        posts = self._decode_list(self._get_json("posts"), Post.from_api)
        logger.info(f"Fetched full feed ({len(posts)} posts)")
        return posts

    def fetch_comments(self, post_id: int) -> List[Comment]:
        """Fetch the comments of one post."""
        comments = self._decode_list(self._get_json(f"posts/{post_id}/comments"), Comment.from_api)
        logger.info(f"Fetched {len(comments)} comments for post {post_id}")
        return comments
