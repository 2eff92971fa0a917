"""
Shared Test Fixtures for the Post Feed Application

This module provides common fixtures used across all test modules.
Fixtures include in-memory fakes for the remote feed and the cache stores,
a controllable clock, HTTP response mocks, a temporary SQLite database,
and data factories for test objects.
"""

import pytest
from unittest.mock import MagicMock
from typing import Optional, Dict, Any, List
import threading
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from data.models import Comment, Favorite, Post, User
from utils.exceptions import QueryError


# =============================================================================
# Data Factories
# =============================================================================

def make_post(post_id: int, user_id: int = 1, title: Optional[str] = None,
              body: Optional[str] = None, is_favorite: bool = False) -> Post:
    return Post(
        id=post_id,
        user_id=user_id,
        title=title if title is not None else f"Post title {post_id}",
        body=body if body is not None else f"Body of post {post_id}",
        is_favorite=is_favorite,
    )


def make_posts(count: int, start_id: int = 1) -> List[Post]:
    return [make_post(i) for i in range(start_id, start_id + count)]


def make_comment(comment_id: int, post_id: int = 1) -> Comment:
    return Comment(
        id=comment_id,
        post_id=post_id,
        name=f"Commenter {comment_id}",
        email=f"commenter{comment_id}@example.com",
        body=f"Comment {comment_id} on post {post_id}",
    )


@pytest.fixture
def post_factory():
    """
    Factory fixture for creating Post objects.

    Usage:
        def test_something(post_factory):
            post = post_factory(1, title="Hello")
    """
    return make_post


@pytest.fixture
def api_post_payload():
    """Factory for remote JSON post objects as served by the feed API."""
    def _create(post_id: int, user_id: int = 1, title: str = "title", body: str = "body") -> Dict[str, Any]:
        return {"userId": user_id, "id": post_id, "title": title, "body": body}
    return _create


# =============================================================================
# In-Memory Collaborators
# =============================================================================

class FakeFeedClient:
    """
    Remote feed double serving ``posts`` in order.

    Set ``error`` to make every call fail. ``page_gates`` maps a page number
    to a threading.Event the call waits on, and ``fetch_all_gates`` is a list
    of events consumed one per fetch_all call.
    """

    def __init__(self, posts: Optional[List[Post]] = None):
        self.posts = list(posts or [])
        self.comments: Dict[int, List[Comment]] = {}
        self.error: Optional[Exception] = None
        self.page_calls: List[tuple] = []
        self.fetch_all_calls = 0
        self.comment_calls: List[int] = []
        self.page_gates: Dict[int, threading.Event] = {}
        self.fetch_all_gates: List[threading.Event] = []

    def _check(self) -> None:
        if self.error is not None:
            raise self.error

    def fetch_page(self, page: int, limit: int) -> List[Post]:
        self.page_calls.append((page, limit))
        gate = self.page_gates.get(page)
        if gate is not None:
            gate.wait(5)
        self._check()
        start = (page - 1) * limit
        return self.posts[start:start + limit]

    def fetch_all(self) -> List[Post]:
        self.fetch_all_calls += 1
        if self.fetch_all_gates:
            self.fetch_all_gates.pop(0).wait(5)
        self._check()
        return list(self.posts)

    def fetch_comments(self, post_id: int) -> List[Comment]:
        self.comment_calls.append(post_id)
        self._check()
        return list(self.comments.get(post_id, []))

    def close(self) -> None:
        pass


class InMemoryPostCache:
    """Dict-backed post cache; ``read_error`` fails every read."""

    def __init__(self, posts: Optional[List[Post]] = None):
        self.posts: Dict[int, Post] = {}
        self.read_error: Optional[Exception] = None
        self.upsert_posts(posts or [])

    def _check_read(self) -> None:
        if self.read_error is not None:
            raise self.read_error

    def upsert_posts(self, posts: List[Post]) -> None:
        for post in posts:
            existing = self.posts.get(post.id)
            keep_flag = existing.is_favorite if existing else post.is_favorite
            self.posts[post.id] = post.with_favorite(keep_flag)

    def get_all_posts(self) -> List[Post]:
        self._check_read()
        return sorted(self.posts.values(), key=lambda p: p.id, reverse=True)

    def get_post(self, post_id: int) -> Optional[Post]:
        self._check_read()
        return self.posts.get(post_id)

    def get_favorite_flagged_posts(self) -> List[Post]:
        return [p for p in self.get_all_posts() if p.is_favorite]

    def search_posts(self, query: str, in_title: bool = True, in_body: bool = True) -> List[Post]:
        if not in_title and not in_body:
            return self.get_all_posts()
        q = query.lower()
        return [p for p in self.get_all_posts()
                if (in_title and q in p.title.lower()) or (in_body and q in p.body.lower())]

    def get_posts_by_author(self, user_id: int) -> List[Post]:
        return [p for p in self.get_all_posts() if p.user_id == user_id]

    def set_favorite_flag(self, post_id: int, is_favorite: bool) -> None:
        if post_id in self.posts:
            self.posts[post_id] = self.posts[post_id].with_favorite(is_favorite)

    def count_posts(self) -> int:
        return len(self.posts)

    def clear_all_posts(self) -> None:
        self.posts.clear()


class InMemoryFavoriteStore:
    """Dict-backed favorites keyed by (post id, user key); ``write_error`` fails writes
    and ``read_error`` fails per-user reads."""

    def __init__(self):
        self.rows: Dict[tuple, Favorite] = {}
        self.write_error: Optional[Exception] = None
        self.read_error: Optional[Exception] = None

    def _check_write(self) -> None:
        if self.write_error is not None:
            raise self.write_error

    def get_favorites_for_user(self, user_key: str) -> List[Favorite]:
        if self.read_error is not None:
            raise self.read_error
        rows = [f for (_, key), f in self.rows.items() if key == user_key]
        return sorted(rows, key=lambda f: f.post_id, reverse=True)

    def get_favorite(self, post_id: int, user_key: str) -> Optional[Favorite]:
        return self.rows.get((post_id, user_key))

    def upsert_favorite(self, favorite: Favorite) -> None:
        self._check_write()
        self.rows[(favorite.post_id, favorite.user_key)] = favorite

    def count_favorites_for_post(self, post_id: int) -> int:
        return sum(1 for (pid, _) in self.rows if pid == post_id)

    def delete_favorite(self, post_id: int, user_key: str) -> None:
        self._check_write()
        self.rows.pop((post_id, user_key), None)

    def delete_all_favorites_for_user(self, user_key: str) -> None:
        self._check_write()
        for key in [k for k in self.rows if k[1] == user_key]:
            del self.rows[key]


class InMemoryCommentCache:

    def __init__(self):
        self.comments: Dict[int, Comment] = {}
        self.read_error: Optional[Exception] = None

    def get_comments_for_post(self, post_id: int) -> List[Comment]:
        if self.read_error is not None:
            raise self.read_error
        return sorted((c for c in self.comments.values() if c.post_id == post_id), key=lambda c: c.id)

    def upsert_comments(self, comments: List[Comment]) -> None:
        for comment in comments:
            self.comments[comment.id] = comment

    def count_comments_for_post(self, post_id: int) -> int:
        return len(self.get_comments_for_post(post_id))

    def delete_comments_for_post(self, post_id: int) -> None:
        for comment_id in [c.id for c in self.comments.values() if c.post_id == post_id]:
            del self.comments[comment_id]

    def clear_all_comments(self) -> None:
        self.comments.clear()


class InMemoryUserStore:

    def __init__(self):
        self.users: Dict[str, User] = {}

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.users.get(email)

    def get_user(self, email: str, password: str) -> Optional[User]:
        user = self.users.get(email)
        return user if user is not None and user.password == password else None

    def insert_user(self, user: User) -> None:
        self.users[user.email] = user


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def feed_client():
    return FakeFeedClient()


@pytest.fixture
def post_cache():
    return InMemoryPostCache()


@pytest.fixture
def favorite_store():
    return InMemoryFavoriteStore()


@pytest.fixture
def comment_cache():
    return InMemoryCommentCache()


@pytest.fixture
def user_store():
    return InMemoryUserStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session():
    from services.session import SessionStore
    return SessionStore.in_memory()


@pytest.fixture
def post_repository(feed_client, post_cache):
    from services.post_repository import PostRepository
    return PostRepository(feed_client, post_cache)


@pytest.fixture
def favorite_repository(favorite_store, post_cache):
    from services.favorite_repository import FavoriteRepository
    return FavoriteRepository(favorite_store, post_cache)


@pytest.fixture
def engine_factory(post_repository, favorite_repository, session, clock):
    """
    Factory fixture for PostFeedEngine instances over the in-memory fakes.

    Usage:
        def test_paging(engine_factory):
            engine = engine_factory(page_size=3)
    """
    from services.feed_engine import PostFeedEngine

    def _create(page_size: int = 3, debounce_seconds: float = 1.0):
        return PostFeedEngine(
            post_repository,
            favorite_repository,
            session,
            page_size=page_size,
            debounce_seconds=debounce_seconds,
            clock=clock,
        )
    return _create


@pytest.fixture
def query_error():
    return QueryError("Error executing statement: disk I/O error")


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
def cache_database(tmp_path):
    """
    A real SQLite cache database in a temporary directory.

    Yields:
        CacheDatabase: An open database with the schema created.
    """
    from data.database import CacheDatabase

    database = CacheDatabase(f"sqlite:///{tmp_path / 'cache.db'}")
    database.connect()
    yield database
    database.close()


# =============================================================================
# Logging Fixtures
# =============================================================================

@pytest.fixture
def capture_logs():
    """
    Capture log messages for assertion in tests.

    Returns:
        list: A list that will contain captured log records.
    """
    import logging

    class LogCapture(logging.Handler):
        def __init__(self):
            super().__init__()
            self.records = []

        def emit(self, record):
            self.records.append(record)

    handler = LogCapture()
    handler.setLevel(logging.DEBUG)

    app_logger = logging.getLogger("post_feed")
    original_level = app_logger.level
    app_logger.setLevel(logging.DEBUG)
    app_logger.addHandler(handler)

    yield handler.records

    app_logger.removeHandler(handler)
    app_logger.setLevel(original_level)


# =============================================================================
# HTTP Fixtures
# =============================================================================

@pytest.fixture
def mock_http_response():
    """
    Factory fixture for creating mock HTTP responses.

    Usage:
        def test_http_request(mock_http_response):
            response = mock_http_response(status_code=200, json_data=[{'id': 1}])

    Returns:
        callable: A factory function for creating mock responses.
    """
    def _create_response(
        status_code: int = 200,
        json_data: Any = None,
        reason: str = 'OK',
        invalid_json: bool = False,
        url: str = 'https://example.com/posts'
    ) -> MagicMock:
        """
        Create a mock HTTP response object.

        Args:
            status_code: HTTP status code (default 200).
            json_data: Value returned from response.json().
            reason: HTTP reason phrase.
            invalid_json: If True, response.json() raises ValueError.
            url: The URL of the response.

        Returns:
            MagicMock: A mock response object mimicking requests.Response.
        """
        mock_response = MagicMock()
        mock_response.status_code = status_code
        mock_response.reason = reason
        mock_response.url = url
        mock_response.ok = 200 <= status_code < 300

        if invalid_json:
            mock_response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")
        else:
            mock_response.json.return_value = json_data

        return mock_response

    return _create_response


@pytest.fixture
def mock_requests_session(mock_http_response):
    """
    A MagicMock standing in for requests.Session.

    Usage:
        def test_api_call(mock_requests_session):
            mock_requests_session.get.return_value = ...
    """
    session = MagicMock()
    session.headers = {}
    session.get.return_value = mock_http_response(json_data=[])
    return session
