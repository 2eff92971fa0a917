"""
Post Feed Application

This is the main entry point for the Post Feed application.
It shows a paged feed of posts from the remote API, keeps a local cache for
offline use, and manages per-user favorites and a local login session.
"""

import sys
import asyncio
import argparse
import logging
from typing import List, Optional

from config import settings
from config.validators import validate_settings
from utils.logger import get_logger, setup_file_logging
from utils.exceptions import AuthError, FavoriteError, PostFeedError, RegistrationError
from utils.helpers import truncate_text
from utils.validators import get_password_strength
from data.database import CacheDatabase
from data.models import Post
from data.post_cache import PostCacheStore
from data.favorite_store import FavoriteStore
from data.comment_cache import CommentCacheStore
from data.user_store import UserStore
from services.feed_client import PostApiClient
from services.post_repository import PostRepository
from services.favorite_repository import FavoriteRepository
from services.session import SessionStore
from services.feed_engine import PostFeedEngine, ToggleOutcome
from services.presentation import FeedSnapshot, FeedView
from services.comment_service import CommentService
from services.post_details_service import PostDetailsService
from services.favorites_service import FavoritesService
from services.auth_service import AuthService

# Set up logging
logger = get_logger(__name__)


def format_post(post: Post, is_favorite: bool = False, body_length: int = 80) -> str:
    """Render one post as a two-line listing entry."""
    star = "*" if is_favorite else " "
    return f"{star} [{post.id}] {post.title}\n      {truncate_text(post.body.replace(chr(10), ' '), body_length)}"


class PostFeedApp:
    """
    Main application class for the Post Feed.

    Owns the cache database, the remote client and the session, and wires the
    repositories and services on top of them.
    """

    def __init__(self, database: Optional[CacheDatabase] = None,
                 feed_client: Optional[PostApiClient] = None,
                 session: Optional[SessionStore] = None,
                 output=None, validate: bool = True):
        """
        Initialize the application; collaborators default to the configured ones.

        Args:
            database: Cache database handle, opened here if not open yet
            feed_client: Remote feed client
            session: Login session store
            output: Callable used to print results (defaults to print)
            validate: Whether to validate settings first
        """
        if validate:
            validate_settings()

        self.database = database or CacheDatabase()
        if not self.database.is_open:
            self.database.connect()
        self.feed_client = feed_client or PostApiClient()
        self.session = session or SessionStore.from_settings()
        self.output = output or print

        post_cache = PostCacheStore(self.database)
        self.post_repository = PostRepository(self.feed_client, post_cache)
        self.favorite_repository = FavoriteRepository(FavoriteStore(self.database), post_cache)
        self.comment_service = CommentService(self.feed_client, CommentCacheStore(self.database))
        self.post_details_service = PostDetailsService(self.post_repository, self.comment_service)
        self.favorites_service = FavoritesService(self.favorite_repository, self.session)
        self.auth_service = AuthService(UserStore(self.database), self.session)

    def close(self) -> None:
        self.feed_client.close()
        self.database.close()

    def create_engine(self, debounce_seconds: Optional[float] = None) -> PostFeedEngine:
        return PostFeedEngine(
            self.post_repository,
            self.favorite_repository,
            self.session,
            page_size=settings.POSTS_PER_PAGE,
            debounce_seconds=debounce_seconds,
        )

    # =========================================================================
    # Commands
    # =========================================================================

    async def show_feed(self, pages: int = 1, query: str = "", favorites_only: bool = False,
                        force: bool = False) -> bool:
        """
        Load the feed and print the visible posts.

        Returns:
            bool: False if the feed ended in a blocking error
        """
        # Pages are requested back to back, so no debounce
        engine = self.create_engine(debounce_seconds=0)
        try:
            if force:
                await engine.refresh_favorites()
                await engine.force_refresh()
            else:
                await engine.start()

            for _ in range(max(pages, 1) - 1):
                if not await engine.load_more():
                    break

            if query:
                engine.search(query)
            if favorites_only:
                await engine.show_favorites_only(True)

            self._print_snapshot(engine.state)
            return not engine.state.is_error_blocking
        finally:
            await engine.close()

    def _print_snapshot(self, snapshot: FeedSnapshot) -> None:
        if snapshot.error_message:
            self.output(f"! {snapshot.error_message}")
        for post in snapshot.posts:
            self.output(format_post(post, snapshot.is_favorite(post)))
        more = " (more available)" if snapshot.has_more_posts and snapshot.view is FeedView.ALL else ""
        self.output(f"-- {len(snapshot.posts)} posts, view: {snapshot.view.value}{more}")

    def show_post(self, post_id: int) -> bool:
        details = self.post_details_service.load_post_details(post_id)
        if details.post is not None:
            self.output(f"[{details.post.id}] {details.post.title}\n\n{details.post.body}\n")
            self.output(f"Comments ({len(details.comments)}):")
            for comment in details.comments:
                self.output(f"  {comment.name} <{comment.email}>\n    {comment.body.replace(chr(10), ' ')}")
        if details.error_message:
            self.output(f"! {details.error_message}")
        return details.post is not None and details.error_message is None

    async def toggle_favorite(self, post_id: int) -> bool:
        post = self.post_repository.get_post(post_id)
        if post is None:
            self.output(f"! Post {post_id} is not cached; load the feed first")
            return False

        engine = self.create_engine()
        try:
            await engine.refresh_favorites()
            outcome = await engine.toggle_favorite(post)
        finally:
            await engine.close()

        if outcome is ToggleOutcome.ADDED:
            self.output(f"Added post {post_id} to favorites")
        elif outcome is ToggleOutcome.REMOVED:
            self.output(f"Removed post {post_id} from favorites")
        else:
            self.output(f"! {engine.state.error_message}")
        return outcome in (ToggleOutcome.ADDED, ToggleOutcome.REMOVED)

    def list_favorites(self, clear: bool = False) -> bool:
        try:
            if clear:
                self.favorites_service.clear_favorites()
                self.output("Cleared all favorites")
                return True
            favorites = self.favorites_service.list_favorites()
        except FavoriteError as e:
            self.output(f"! {e}")
            return False

        for favorite in favorites:
            self.output(format_post(favorite.to_post(), is_favorite=True))
        self.output(f"-- {len(favorites)} favorites")
        return True

    def search_cache(self, query: str, in_title: bool = True, in_body: bool = True,
                     author_id: Optional[int] = None) -> bool:
        """Search every cached post, not just a loaded page; works offline."""
        posts = self.post_repository.search_posts_advanced(query, in_title=in_title, in_body=in_body,
                                                           user_id=author_id)
        for post in posts:
            self.output(format_post(post, post.is_favorite))
        self.output(f"-- {len(posts)} cached posts")
        return True

    def clear_cache(self) -> bool:
        self.post_repository.clear_all_posts()
        self.comment_service.comment_cache.clear_all_comments()
        self.output("Cleared cached posts and comments")
        return True

    def register(self, email: str, password: str) -> bool:
        try:
            self.auth_service.register(email, password)
        except RegistrationError as e:
            for error in e.errors or [str(e)]:
                self.output(f"! {error}")
            return False
        strength = get_password_strength(password)
        self.output(f"Registered {email} (password strength: {strength.value})")
        return True

    def login(self, email: str, password: str) -> bool:
        try:
            user = self.auth_service.login(email, password)
        except AuthError as e:
            self.output(f"! {e}")
            return False
        self.output(f"Logged in as {user.email}")
        return True

    def logout(self) -> bool:
        self.auth_service.logout()
        self.output("Logged out")
        return True


def parse_arguments(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Post Feed Application')
    parser.add_argument('--log-file', type=str, default=settings.LOG_FILE, help='Log file path')
    parser.add_argument('--log-level', type=str, choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        default=settings.LOG_LEVEL.upper(), help='Logging level')
    subparsers = parser.add_subparsers(dest='command', required=True)

    feed = subparsers.add_parser('feed', help='Show the post feed')
    feed.add_argument('--pages', type=int, default=1, help='Number of pages to load')
    feed.add_argument('--search', type=str, default='', help='Filter loaded posts by text')
    feed.add_argument('--favorites-only', action='store_true', help='Show only favorite posts')
    feed.add_argument('--force', action='store_true', help='Discard loaded state and reload from page 1')

    post = subparsers.add_parser('post', help='Show a cached post with its comments')
    post.add_argument('post_id', type=int)

    search = subparsers.add_parser('search', help='Search all cached posts')
    search.add_argument('query', type=str, nargs='?', default='')
    fields = search.add_mutually_exclusive_group()
    fields.add_argument('--title-only', action='store_true', help='Match titles only')
    fields.add_argument('--body-only', action='store_true', help='Match bodies only')
    search.add_argument('--author', type=int, default=None, help='List posts of one author id instead')

    subparsers.add_parser('clear-cache', help='Delete cached posts and comments')

    favorite = subparsers.add_parser('favorite', help='Toggle a post as favorite')
    favorite.add_argument('post_id', type=int)

    favorites = subparsers.add_parser('favorites', help='List your favorites')
    favorites.add_argument('--clear', action='store_true', help='Remove all your favorites')

    for name in ('register', 'login'):
        auth = subparsers.add_parser(name, help=f'{name.capitalize()} a local account')
        auth.add_argument('email', type=str)
        auth.add_argument('password', type=str)

    subparsers.add_parser('logout', help='End the current session')
    return parser.parse_args(argv)


def run_command(app: PostFeedApp, args) -> bool:
    """Dispatch the parsed command to the application."""
    if args.command == 'feed':
        return asyncio.run(app.show_feed(pages=args.pages, query=args.search,
                                         favorites_only=args.favorites_only, force=args.force))
    if args.command == 'post':
        return app.show_post(args.post_id)
    if args.command == 'search':
        return app.search_cache(args.query, in_title=not args.body_only, in_body=not args.title_only,
                                author_id=args.author)
    if args.command == 'clear-cache':
        return app.clear_cache()
    if args.command == 'favorite':
        return asyncio.run(app.toggle_favorite(args.post_id))
    if args.command == 'favorites':
        return app.list_favorites(clear=args.clear)
    if args.command == 'register':
        return app.register(args.email, args.password)
    if args.command == 'login':
        return app.login(args.email, args.password)
    if args.command == 'logout':
        return app.logout()
    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None, app: Optional[PostFeedApp] = None):
    """Main entry point for the application."""
    # Parse command line arguments
    args = parse_arguments(argv)

    # Set up logging
    log_level = getattr(logging, args.log_level)
    setup_file_logging(args.log_file, log_level)

    logger.info(f"Starting Post Feed application: {args.command}")
    logger.debug(f"Configuration: {settings.get_config_summary()}")

    try:
        app = app or PostFeedApp()
        try:
            success = run_command(app, args)
        finally:
            app.close()

        if success:
            exit_code = 0
        else:
            logger.warning(f"Command {args.command} completed with warnings or errors")
            exit_code = 1

    except PostFeedError as e:
        logger.error(f"Post Feed error: {e}", exc_info=True)
        exit_code = 2
    except Exception as e:
        logger.error(f"Unhandled exception in Post Feed: {e}", exc_info=True)
        exit_code = 2

    logger.info(f"Post Feed application finished with exit code {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
