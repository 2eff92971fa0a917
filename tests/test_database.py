"""
Tests for the Cache Database and the SQL Stores

Tests for the database module including connection management and statement
execution, plus the post cache, favorites, comments and user stores running
against a real SQLite file.
"""

import pytest
from unittest.mock import patch
import pandas as pd
from sqlalchemy.exc import OperationalError
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from conftest import make_comment, make_post, make_posts
from data.database import CacheDatabase
from data.post_cache import PostCacheStore
from data.favorite_store import FavoriteStore
from data.comment_cache import CommentCacheStore
from data.user_store import UserStore
from data.models import Favorite, User
from utils.exceptions import DatabaseError, QueryError
from utils.exceptions import ConnectionError as DatabaseConnectionError

USER = "reader@example.com"


class TestConnectionManagement:
    """Tests for database connection management."""

    def test_connect_creates_schema(self, tmp_path):
        """Test that connect() opens the file and creates every table."""
        db = CacheDatabase(f"sqlite:///{tmp_path / 'new.db'}")

        result = db.connect()

        assert result is True
        assert db.is_open
        tables = {row["name"] for row in db.query("SELECT name FROM sqlite_master WHERE type = 'table'")}
        assert {"posts", "favorites", "comments", "users"} <= tables
        db.close()

    def test_connect_is_idempotent(self, cache_database):
        """Test that a second connect() keeps the same engine."""
        engine = cache_database.engine

        cache_database.connect()

        assert cache_database.engine is engine

    def test_connect_failure_raises_connection_error(self):
        """Test that an unopenable database raises DatabaseConnectionError."""
        db = CacheDatabase("sqlite:////nonexistent-dir/sub/cache.db")

        with pytest.raises(DatabaseConnectionError):
            db.connect()

        assert not db.is_open

    def test_close_when_not_connected(self):
        """Test that close() on an unopened handle is a no-op."""
        db = CacheDatabase("sqlite://")

        db.close()

        assert not db.is_open

    def test_context_manager(self, tmp_path):
        """Test that the context manager opens and closes the database."""
        with CacheDatabase(f"sqlite:///{tmp_path / 'ctx.db'}") as db:
            assert db.is_open
        assert not db.is_open

    def test_default_url_from_settings(self):
        """Test that the URL defaults to settings.CACHE_DATABASE_URL."""
        with patch('data.database.settings') as mock_settings:
            mock_settings.CACHE_DATABASE_URL = "sqlite:///configured.db"
            db = CacheDatabase()

        assert db.database_url == "sqlite:///configured.db"

    def test_in_memory_database_is_shared_across_threads(self):
        """Test that an in-memory database keeps its tables for worker threads."""
        import threading

        with CacheDatabase("sqlite://") as db:
            result = {}
            worker = threading.Thread(target=lambda: result.update(n=db.query_scalar("SELECT COUNT(*) FROM posts")))
            worker.start()
            worker.join()

        assert result["n"] == 0


class TestStatementExecution:
    """Tests for execute/query helpers."""

    def test_statements_require_open_database(self):
        """Test that using a closed database raises DatabaseConnectionError."""
        db = CacheDatabase("sqlite://")

        with pytest.raises(DatabaseConnectionError):
            db.query("SELECT 1")

    def test_execute_returns_rowcount(self, cache_database):
        """Test that execute() reports affected rows."""
        cache_database.execute(
            "INSERT INTO users (email, password) VALUES (:email, :password)",
            {"email": USER, "password": "secret"},
        )

        count = cache_database.execute("DELETE FROM users WHERE email = :email", {"email": USER})

        assert count == 1

    def test_execute_empty_batch_is_noop(self, cache_database):
        """Test that an empty parameter list does nothing."""
        assert cache_database.execute("DELETE FROM users", []) == 0

    def test_bad_statement_raises_query_error(self, cache_database):
        """Test that SQL errors surface as QueryError."""
        with pytest.raises(QueryError):
            cache_database.execute("INSERT INTO missing_table VALUES (1)")

    def test_query_error_is_database_error(self, cache_database):
        """Test that QueryError is part of the DatabaseError hierarchy."""
        with pytest.raises(DatabaseError):
            cache_database.query("SELECT * FROM missing_table")

    def test_read_frame_returns_dataframe(self, cache_database):
        """Test that read_frame() returns a pandas DataFrame."""
        PostCacheStore(cache_database).upsert_posts(make_posts(2))

        frame = cache_database.read_frame("SELECT id FROM posts ORDER BY id")

        assert isinstance(frame, pd.DataFrame)
        assert list(frame["id"]) == [1, 2]

    def test_read_frame_wraps_driver_errors(self, cache_database):
        """Test that read_frame() converts SQLAlchemy errors."""
        with patch('data.database.pd.read_sql', side_effect=OperationalError("SELECT", {}, Exception("locked"))):
            with pytest.raises(QueryError):
                cache_database.read_frame("SELECT id FROM posts")


class TestPostCache:
    """Tests for the SQL post cache."""

    @pytest.fixture
    def cache(self, cache_database):
        return PostCacheStore(cache_database)

    def test_posts_listed_by_descending_id(self, cache):
        """Test the cache ordering contract."""
        cache.upsert_posts([make_post(2), make_post(5), make_post(1)])

        assert [p.id for p in cache.get_all_posts()] == [5, 2, 1]

    def test_empty_cache(self, cache):
        """Test that an empty cache lists nothing."""
        assert cache.get_all_posts() == []
        assert cache.count_posts() == 0

    def test_upsert_replaces_content(self, cache):
        """Test that a post with an existing id replaces the stored content."""
        cache.upsert_posts([make_post(1, title="old")])
        cache.upsert_posts([make_post(1, title="new", user_id=7)])

        post = cache.get_post(1)
        assert post.title == "new"
        assert post.user_id == 7
        assert cache.count_posts() == 1

    def test_upsert_keeps_favorite_flag(self, cache):
        """Test that refreshed remote content keeps the cache-local flag."""
        cache.upsert_posts([make_post(1)])
        cache.set_favorite_flag(1, True)

        cache.upsert_posts([make_post(1, title="refreshed")])

        post = cache.get_post(1)
        assert post.is_favorite is True
        assert post.title == "refreshed"

    def test_get_missing_post(self, cache):
        assert cache.get_post(42) is None

    def test_favorite_flagged_posts(self, cache):
        """Test that only flagged posts are listed as favorites."""
        cache.upsert_posts(make_posts(4))
        cache.set_favorite_flag(2, True)
        cache.set_favorite_flag(4, True)

        assert [p.id for p in cache.get_favorite_flagged_posts()] == [4, 2]

    def test_search_is_case_insensitive(self, cache):
        """Test that search ignores case in title and body."""
        cache.upsert_posts([
            make_post(1, title="Hello World", body="x"),
            make_post(2, title="other", body="says HELLO"),
            make_post(3, title="none", body="none"),
        ])

        assert [p.id for p in cache.search_posts("hello")] == [2, 1]
        assert [p.id for p in cache.search_posts_by_title("hello")] == [1]
        assert [p.id for p in cache.search_posts_by_body("hello")] == [2]

    def test_search_treats_wildcards_literally(self, cache):
        """Test that % and _ in the query are not LIKE wildcards."""
        cache.upsert_posts([make_post(1, title="100% sure"), make_post(2, title="1000 sure")])

        assert [p.id for p in cache.search_posts("100%")] == [1]
        assert cache.search_posts("a_b") == []

    def test_posts_by_author(self, cache):
        cache.upsert_posts([make_post(1, user_id=1), make_post(2, user_id=2), make_post(3, user_id=1)])

        assert [p.id for p in cache.get_posts_by_author(1)] == [3, 1]

    def test_clear_all_posts(self, cache):
        cache.upsert_posts(make_posts(3))

        cache.clear_all_posts()

        assert cache.count_posts() == 0


class TestFavoriteStore:
    """Tests for the SQL favorites store."""

    @pytest.fixture
    def store(self, cache_database):
        return FavoriteStore(cache_database)

    def test_favorites_are_per_user(self, store):
        """Test that favorites are keyed by (post id, user key)."""
        store.upsert_favorite(Favorite.from_post(make_post(1), USER))
        store.upsert_favorite(Favorite.from_post(make_post(1), "other@example.com"))
        store.upsert_favorite(Favorite.from_post(make_post(3), USER))

        assert [f.post_id for f in store.get_favorites_for_user(USER)] == [3, 1]
        assert len(store.get_favorites_for_user("other@example.com")) == 1

    def test_last_write_wins(self, store):
        """Test that writing the same key twice keeps the second row."""
        store.upsert_favorite(Favorite.from_post(make_post(1, title="first"), USER))
        store.upsert_favorite(Favorite.from_post(make_post(1, title="second"), USER))

        favorites = store.get_favorites_for_user(USER)
        assert len(favorites) == 1
        assert favorites[0].title == "second"

    def test_favorite_snapshot_round_trip(self, store):
        """Test that the stored snapshot keeps the original author."""
        store.upsert_favorite(Favorite.from_post(make_post(4, user_id=9), USER))

        favorite = store.get_favorite(4, USER)
        assert favorite.original_user_id == 9
        assert favorite.to_post().is_favorite is True

    def test_delete_missing_favorite_is_noop(self, store):
        store.delete_favorite(99, USER)

        assert store.get_favorite(99, USER) is None

    def test_count_favorites_for_post(self, store):
        """Test that the count spans every user."""
        store.upsert_favorite(Favorite.from_post(make_post(1), USER))
        store.upsert_favorite(Favorite.from_post(make_post(1), "other@example.com"))
        store.upsert_favorite(Favorite.from_post(make_post(2), USER))

        assert store.count_favorites_for_post(1) == 2
        assert store.count_favorites_for_post(3) == 0

    def test_delete_all_for_user(self, store):
        """Test that clearing one user's favorites leaves others intact."""
        store.upsert_favorite(Favorite.from_post(make_post(1), USER))
        store.upsert_favorite(Favorite.from_post(make_post(2), "other@example.com"))

        store.delete_all_favorites_for_user(USER)

        assert store.get_favorites_for_user(USER) == []
        assert len(store.get_favorites_for_user("other@example.com")) == 1


class TestCommentCache:
    """Tests for the SQL comment cache."""

    @pytest.fixture
    def cache(self, cache_database):
        return CommentCacheStore(cache_database)

    def test_comments_per_post_ordered_by_id(self, cache):
        cache.upsert_comments([make_comment(3, post_id=1), make_comment(1, post_id=1), make_comment(2, post_id=2)])

        assert [c.id for c in cache.get_comments_for_post(1)] == [1, 3]
        assert cache.count_comments_for_post(1) == 2

    def test_upsert_replaces_by_id(self, cache):
        cache.upsert_comments([make_comment(1, post_id=1)])
        cache.upsert_comments([make_comment(1, post_id=1)])

        assert cache.count_comments_for_post(1) == 1

    def test_delete_comments_for_post(self, cache):
        cache.upsert_comments([make_comment(1, post_id=1), make_comment(2, post_id=2)])

        cache.delete_comments_for_post(1)

        assert cache.get_comments_for_post(1) == []
        assert [c.id for c in cache.get_all_comments()] == [2]


class TestUserStore:
    """Tests for the SQL user store."""

    def test_lookup_by_email_and_credentials(self, cache_database):
        store = UserStore(cache_database)
        store.insert_user(User(USER, "Secret#123"))

        assert store.get_user_by_email(USER) == User(USER, "Secret#123")
        assert store.get_user(USER, "Secret#123") is not None
        assert store.get_user(USER, "wrong") is None
        assert store.get_user_by_email("nobody@example.com") is None
