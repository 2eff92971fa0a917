"""
Feed Engine Module

The offline-first synchronization and pagination engine. It owns the paged
post list, loads pages from the remote feed, persists what it fetches into the
local cache, falls back to the cache when the remote feed fails, and keeps the
current user's favorite ids in step with the session.

All state changes happen on the event loop that runs the engine. Blocking
collaborator calls (HTTP, database) are sent to worker threads with
``asyncio.to_thread`` and their results are applied back on the loop, so
snapshot reads stay responsive while a fetch is in flight.

A generation counter guards against late results: every ``refresh()`` starts a
new generation and applying a refresh result starts another one, so a result
from an older generation (a superseded refresh, or a load-more issued against
the pre-refresh list) is dropped instead of overwriting newer state.
"""

import asyncio
import time
from enum import Enum
from typing import Callable, List, Optional, Set

from config import settings
from data.models import Post
from services.favorite_repository import FavoriteRepository
from services.post_repository import PostRepository
from services.presentation import ErrorKind, FeedSnapshot, PagedFeedState, project
from services.protocols import SessionProvider
from utils.exceptions import PostFeedError
from utils.logger import get_logger

logger = get_logger(__name__)

Clock = Callable[[], float]
SnapshotListener = Callable[[FeedSnapshot], None]

OFFLINE_CACHED_MESSAGE = "Offline mode: Showing cached posts ({count} available)"
NO_POSTS_MESSAGE = "No posts available. Please check your internet connection and try again."
LOAD_FAILED_MESSAGE = "Failed to load posts: {error}"
OFFLINE_MORE_MESSAGE = "Offline mode: Loaded more cached posts"
NO_MORE_POSTS_MESSAGE = "No more posts available"
LOAD_MORE_FAILED_MESSAGE = "Failed to load more posts: {error}"
FAVORITES_FAILED_MESSAGE = "Failed to load favorites: {error}"
NOT_LOGGED_IN_MESSAGE = "User not logged in"
FAVORITE_FAILED_MESSAGE = "Failed to update favorite"


class ToggleOutcome(Enum):
    """Which branch a favorite toggle ended in."""
    ADDED = "added"
    REMOVED = "removed"
    REVERTED = "reverted"            # Persistence failed, optimistic change undone
    REJECTED = "rejected"            # No logged-in user, nothing changed


def _log_failure(message: str, error: Exception) -> None:
    if isinstance(error, PostFeedError):
        logger.warning(f"{message}: {error}")
    else:
        logger.error(f"{message}: {error}", exc_info=True)


class PostFeedEngine:
    """
    Paged, cache-backed post feed with search and favorites overlays.

    Intents: refresh, force_refresh, load_more, search, toggle_favorite,
    show_favorites_only, toggle_show_favorites_only, refresh_favorites and
    clear_error. The latest FeedSnapshot is available as ``state`` and is
    pushed to subscribers after every change.
    """

    def __init__(
        self,
        post_repository: PostRepository,
        favorite_repository: FavoriteRepository,
        session: SessionProvider,
        page_size: Optional[int] = None,
        debounce_seconds: Optional[float] = None,
        clock: Clock = time.monotonic,
    ):
        """
        Initialize the engine with empty state. Nothing is loaded until start().

        Args:
            post_repository: Remote feed + post cache mediator.
            favorite_repository: Per-user favorites.
            session: Source of the current user key and login changes.
            page_size: Posts per page; defaults to settings.POSTS_PER_PAGE.
            debounce_seconds: Minimum gap between load-more calls; defaults to
                settings.LOAD_MORE_DEBOUNCE_SECONDS.
            clock: Monotonic clock in seconds, used for the debounce.
        """
        self.post_repository = post_repository
        self.favorite_repository = favorite_repository
        self.session = session
        self.page_size = page_size or settings.POSTS_PER_PAGE
        self.debounce_seconds = (settings.LOAD_MORE_DEBOUNCE_SECONDS
                                 if debounce_seconds is None else debounce_seconds)
        self._clock = clock

        self._state = PagedFeedState()
        self._favorite_flagged_posts: List[Post] = []
        self._snapshot = project(self._state)
        self._listeners: List[SnapshotListener] = []

        self._generation = 0
        self._session_generation = 0
        self._last_load_more_at: Optional[float] = None
        self._favorite_write_lock = asyncio.Lock()

        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._background: Set[asyncio.Task] = set()
        self._listening = False

    # =========================================================================
    # Lifecycle and observation
    # =========================================================================

    @property
    def state(self) -> FeedSnapshot:
        """The most recently published snapshot."""
        return self._snapshot

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Register a snapshot listener and send it the current snapshot.

        Returns:
            Callable: Call it to unsubscribe.
        """
        self._listeners.append(listener)
        listener(self._snapshot)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def start(self) -> FeedSnapshot:
        """
        Start following session changes, load the user's favorites and, when
        nothing is loaded yet, the first page.
        """
        self._loop = asyncio.get_running_loop()
        if not self._listening:
            self.session.add_listener(self._on_session_changed)
            self._listening = True
        await self.refresh_favorites()
        if not self._state.all_loaded_posts:
            await self.refresh()
        return self._snapshot

    async def close(self) -> None:
        """Stop following session changes and cancel background reloads."""
        if self._listening:
            self.session.remove_listener(self._on_session_changed)
            self._listening = False
        tasks = list(self._background)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._background.clear()

    async def join_background_tasks(self) -> None:
        """Wait until session-triggered favorites reloads have been applied."""
        await asyncio.sleep(0)
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def _publish(self) -> None:
        self._snapshot = project(self._state, self._favorite_flagged_posts)
        for listener in list(self._listeners):
            try:
                listener(self._snapshot)
            except Exception as e:
                logger.error(f"Snapshot listener failed: {e}", exc_info=True)

    def _set_error(self, message: Optional[str], kind: Optional[ErrorKind]) -> None:
        self._state.error_message = message
        self._state.error_kind = kind if message else None

    # =========================================================================
    # Refresh
    # =========================================================================

    async def refresh(self) -> FeedSnapshot:
        """
        Fetch the full feed into the cache, then show page 1 from the remote feed.

        On any failure the first page is served from the cache instead, with an
        informational offline message; with an empty cache a blocking error is
        shown. ``is_loading`` is always cleared when the newest refresh ends.
        """
        self._generation += 1
        generation = self._generation
        self._state.is_loading = True
        self._set_error(None, None)
        self._publish()

        try:
            await asyncio.to_thread(self.post_repository.refresh_posts)
            posts = await asyncio.to_thread(self.post_repository.load_posts_page, 1, self.page_size)
        except Exception as e:
            _log_failure("Remote refresh failed, falling back to cache", e)
            await self._load_first_page_from_cache(generation)
            return self._snapshot

        if generation != self._generation:
            logger.debug("Discarding superseded refresh result")
            return self._snapshot

        state = self._state
        state.all_loaded_posts = list(posts)
        state.current_page = 1
        state.has_more_posts = len(posts) == self.page_size
        state.is_loading = False
        self._generation += 1
        logger.info(f"Loaded page 1 ({len(posts)} posts)")
        self._publish()
        return self._snapshot

    async def _load_first_page_from_cache(self, generation: int) -> None:
        try:
            cached = await asyncio.to_thread(self.post_repository.get_all_posts)
        except Exception as e:
            if generation != self._generation:
                return
            _log_failure("Reading cached posts failed", e)
            self._state.is_loading = False
            self._set_error(LOAD_FAILED_MESSAGE.format(error=e), ErrorKind.UNAVAILABLE)
            self._publish()
            return

        if generation != self._generation:
            logger.debug("Discarding superseded cache fallback")
            return

        state = self._state
        if cached:
            state.all_loaded_posts = cached[:self.page_size]
            state.current_page = 1
            state.has_more_posts = len(cached) > self.page_size
            self._set_error(OFFLINE_CACHED_MESSAGE.format(count=len(cached)), ErrorKind.OFFLINE)
            logger.warning(f"Offline mode: showing {len(state.all_loaded_posts)} of {len(cached)} cached posts")
        else:
            state.all_loaded_posts = []
            state.current_page = 1
            state.has_more_posts = False
            self._set_error(NO_POSTS_MESSAGE, ErrorKind.UNAVAILABLE)
            logger.error("No posts available: remote feed failed and cache is empty")

        state.is_loading = False
        self._generation += 1
        self._publish()

    async def force_refresh(self) -> FeedSnapshot:
        """Drop loaded posts, paging and search state, then refresh from page 1."""
        state = self._state
        state.all_loaded_posts = []
        state.current_page = 1
        state.has_more_posts = True
        state.search_query = ""
        state.search_in_title = True
        state.search_in_body = True
        logger.info("Force refresh requested")
        return await self.refresh()

    # =========================================================================
    # Paging
    # =========================================================================

    def _can_load_more(self) -> bool:
        state = self._state
        return not (state.is_loading or state.is_loading_more or not state.has_more_posts
                    or state.is_searching or state.show_favorites_only)

    async def load_more(self) -> bool:
        """
        Load the next page, falling back to not-yet-shown cached posts offline.

        Silently ignored while a refresh or another load-more is running, when
        there are no more posts, while searching, in favorites-only mode, or
        within the debounce window of the previous accepted call.

        Returns:
            bool: True if a load was attempted.
        """
        now = self._clock()
        if self._last_load_more_at is not None and now - self._last_load_more_at < self.debounce_seconds:
            logger.debug("load_more debounced")
            return False
        if not self._can_load_more():
            logger.debug("load_more suppressed by current state")
            return False

        self._last_load_more_at = now
        generation = self._generation
        next_page = self._state.current_page + 1
        self._state.is_loading_more = True
        self._publish()

        try:
            new_posts = await asyncio.to_thread(self.post_repository.load_posts_page, next_page, self.page_size)
        except Exception as e:
            _log_failure(f"Loading page {next_page} failed, falling back to cache", e)
            await self._load_more_from_cache(generation, e)
            return True

        state = self._state
        if generation != self._generation:
            logger.debug(f"Discarding stale page {next_page}")
        elif not new_posts:
            state.has_more_posts = False
            logger.info(f"Page {next_page} is empty, end of feed")
        else:
            state.all_loaded_posts = state.all_loaded_posts + list(new_posts)
            state.current_page = next_page
            state.has_more_posts = len(new_posts) == self.page_size
            logger.info(f"Loaded page {next_page} ({len(new_posts)} posts)")

        state.is_loading_more = False
        self._publish()
        return True

    async def _load_more_from_cache(self, generation: int, remote_error: Exception) -> None:
        state = self._state
        try:
            cached = await asyncio.to_thread(self.post_repository.get_all_posts)
        except Exception as e:
            _log_failure("Reading cached posts failed", e)
            if generation == self._generation:
                self._set_error(LOAD_MORE_FAILED_MESSAGE.format(error=remote_error), ErrorKind.OFFLINE)
            state.is_loading_more = False
            self._publish()
            return

        if generation != self._generation:
            state.is_loading_more = False
            self._publish()
            return

        loaded_ids = {post.id for post in state.all_loaded_posts}
        remaining = [post for post in cached if post.id not in loaded_ids]
        if remaining:
            batch = remaining[:self.page_size]
            state.all_loaded_posts = state.all_loaded_posts + batch
            state.current_page += 1
            state.has_more_posts = len(remaining) > self.page_size
            self._set_error(OFFLINE_MORE_MESSAGE, ErrorKind.OFFLINE)
            logger.warning(f"Offline mode: appended {len(batch)} cached posts")
        else:
            state.has_more_posts = False
            self._set_error(NO_MORE_POSTS_MESSAGE, ErrorKind.OFFLINE)

        state.is_loading_more = False
        self._publish()

    # =========================================================================
    # Search and display modes
    # =========================================================================

    def search(self, query: str, in_title: bool = True, in_body: bool = True) -> FeedSnapshot:
        """
        Filter the loaded posts by a case-insensitive substring.

        Only posts already loaded are searched; a blank query leaves search mode.
        """
        self._state.search_query = query
        self._state.search_in_title = in_title
        self._state.search_in_body = in_body
        self._publish()
        return self._snapshot

    async def show_favorites_only(self, show: bool) -> FeedSnapshot:
        """Switch the visible list to the cached favorite posts (or back)."""
        self._state.show_favorites_only = show
        if show:
            await self._reload_favorite_posts()
        self._publish()
        return self._snapshot

    async def toggle_show_favorites_only(self) -> FeedSnapshot:
        return await self.show_favorites_only(not self._state.show_favorites_only)

    async def _reload_favorite_posts(self) -> None:
        try:
            self._favorite_flagged_posts = await asyncio.to_thread(self.post_repository.get_favorite_posts)
        except Exception as e:
            _log_failure("Reading favorite posts failed", e)
            self._set_error(FAVORITES_FAILED_MESSAGE.format(error=e), ErrorKind.UNAVAILABLE)

    def clear_error(self) -> FeedSnapshot:
        self._set_error(None, None)
        self._publish()
        return self._snapshot

    # =========================================================================
    # Favorites
    # =========================================================================

    async def toggle_favorite(self, post: Post) -> ToggleOutcome:
        """
        Flip a post's favorite membership optimistically, then persist it.

        The id set changes before the write so the UI reacts at once; if the
        write fails the change is undone and the failure message is shown.
        """
        user_key = await asyncio.to_thread(self.session.get_current_user_key)
        if not user_key:
            self._set_error(NOT_LOGGED_IN_MESSAGE, ErrorKind.VALIDATION)
            self._publish()
            return ToggleOutcome.REJECTED

        ids = self._state.favorite_post_ids
        was_favorite = post.id in ids
        if was_favorite:
            ids.discard(post.id)
        else:
            ids.add(post.id)
        self._publish()

        try:
            async with self._favorite_write_lock:
                if was_favorite:
                    await asyncio.to_thread(self.favorite_repository.remove_from_favorites, post.id, user_key)
                else:
                    await asyncio.to_thread(self.favorite_repository.add_to_favorites, post, user_key)
        except Exception as e:
            _log_failure(f"Favorite update for post {post.id} failed, reverting", e)
            ids = self._state.favorite_post_ids
            if was_favorite:
                ids.add(post.id)
            else:
                ids.discard(post.id)
            self._set_error(str(e) or FAVORITE_FAILED_MESSAGE, ErrorKind.PERSISTENCE)
            self._publish()
            return ToggleOutcome.REVERTED

        if self._state.show_favorites_only:
            await self._reload_favorite_posts()
        self._publish()
        return ToggleOutcome.REMOVED if was_favorite else ToggleOutcome.ADDED

    async def refresh_favorites(self) -> FeedSnapshot:
        """Re-read the current user's favorite ids."""
        user_key = await asyncio.to_thread(self.session.get_current_user_key)
        await self._reload_favorite_ids(user_key, self._session_generation)
        return self._snapshot

    def _on_session_changed(self, user_key: Optional[str]) -> None:
        # May be called from any thread
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._schedule_favorites_reload, user_key)

    def _schedule_favorites_reload(self, user_key: Optional[str]) -> None:
        self._session_generation += 1
        task = asyncio.ensure_future(self._reload_favorite_ids(user_key, self._session_generation))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _reload_favorite_ids(self, user_key: Optional[str], session_generation: int) -> None:
        if user_key:
            try:
                ids = await asyncio.to_thread(self.favorite_repository.get_favorite_post_ids, user_key)
            except Exception as e:
                _log_failure(f"Loading favorites for {user_key} failed", e)
                if session_generation == self._session_generation:
                    # Never keep the previous user's ids
                    self._state.favorite_post_ids = set()
                    self._set_error(FAVORITES_FAILED_MESSAGE.format(error=e), ErrorKind.PERSISTENCE)
                    self._publish()
                return
        else:
            ids = set()

        if session_generation != self._session_generation:
            logger.debug("Discarding favorites of a superseded session")
            return

        self._state.favorite_post_ids = set(ids)
        if self._state.show_favorites_only:
            await self._reload_favorite_posts()
        self._publish()
