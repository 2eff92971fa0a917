"""
Presentation Module

Derives the user-visible feed from the engine's paged state. The projection is
a pure function recomputed on every change: exactly one of the favorites view,
the search view and the full view is active at a time, with favorites taking
priority over search and search over the full list.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, List, Optional, Set, Tuple

from data.models import Post
from utils.helpers import contains_ignore_case


class ErrorKind(Enum):
    """How an error message on the snapshot should be treated."""
    OFFLINE = "offline"              # Informational, cached posts are shown
    UNAVAILABLE = "unavailable"      # Blocking, nothing to show
    PERSISTENCE = "persistence"      # A local write failed and was rolled back
    VALIDATION = "validation"        # The request was refused, e.g. not logged in


class FeedView(Enum):
    FAVORITES = "favorites"
    SEARCH = "search"
    ALL = "all"


@dataclass
class PagedFeedState:
    """Everything fetched so far plus the flags that shape the visible list."""
    all_loaded_posts: List[Post] = field(default_factory=list)
    current_page: int = 1
    has_more_posts: bool = True
    search_query: str = ""
    search_in_title: bool = True
    search_in_body: bool = True
    show_favorites_only: bool = False
    favorite_post_ids: Set[int] = field(default_factory=set)
    is_loading: bool = False
    is_loading_more: bool = False
    error_message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @property
    def is_searching(self) -> bool:
        return bool(self.search_query.strip())


@dataclass(frozen=True)
class FeedSnapshot:
    """Immutable view of the feed published after every state change."""
    posts: Tuple[Post, ...] = ()
    all_loaded_posts: Tuple[Post, ...] = ()
    view: FeedView = FeedView.ALL
    is_loading: bool = False
    is_loading_more: bool = False
    error_message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    search_query: str = ""
    show_favorites_only: bool = False
    favorite_post_ids: FrozenSet[int] = frozenset()
    has_more_posts: bool = True
    current_page: int = 1
    is_searching: bool = False

    @property
    def is_error_blocking(self) -> bool:
        return self.error_kind is ErrorKind.UNAVAILABLE

    def is_favorite(self, post: Post) -> bool:
        return post.id in self.favorite_post_ids


def matches_query(post: Post, query: str, in_title: bool = True, in_body: bool = True) -> bool:
    """
    Case-insensitive substring match against the selected fields.

    With neither field selected every post matches, like the cache search.
    """
    if not in_title and not in_body:
        return True
    return (in_title and contains_ignore_case(post.title, query)) or \
        (in_body and contains_ignore_case(post.body, query))


def select_visible_posts(
    search_query: str,
    show_favorites_only: bool,
    favorite_post_ids: Iterable[int],
    all_loaded_posts: Iterable[Post],
    favorite_flagged_posts: Iterable[Post],
    in_title: bool = True,
    in_body: bool = True,
) -> Tuple[FeedView, List[Post]]:
    """
    Pick the active view and the posts it shows.

    Args:
        search_query: Current query; blank means no search.
        show_favorites_only: Favorites-only mode flag.
        favorite_post_ids: Ids favorited by the current user.
        all_loaded_posts: Posts loaded so far, in load order.
        favorite_flagged_posts: Cached posts carrying the favorite flag.
        in_title: Match the query against titles.
        in_body: Match the query against bodies.

    Returns:
        Tuple[FeedView, List[Post]]: The active view and its posts.
    """
    if show_favorites_only:
        # The cache flag is shared by every account; keep the current user's ones
        favorite_ids = set(favorite_post_ids)
        return FeedView.FAVORITES, [p for p in favorite_flagged_posts if p.id in favorite_ids]

    query = search_query.strip()
    if query:
        return FeedView.SEARCH, [p for p in all_loaded_posts if matches_query(p, query, in_title, in_body)]

    return FeedView.ALL, list(all_loaded_posts)


def project(state: PagedFeedState, favorite_flagged_posts: Iterable[Post] = ()) -> FeedSnapshot:
    """Build the snapshot for the current state."""
    view, posts = select_visible_posts(
        state.search_query,
        state.show_favorites_only,
        state.favorite_post_ids,
        state.all_loaded_posts,
        favorite_flagged_posts,
        in_title=state.search_in_title,
        in_body=state.search_in_body,
    )
    return FeedSnapshot(
        posts=tuple(posts),
        all_loaded_posts=tuple(state.all_loaded_posts),
        view=view,
        is_loading=state.is_loading,
        is_loading_more=state.is_loading_more,
        error_message=state.error_message,
        error_kind=state.error_kind,
        search_query=state.search_query,
        show_favorites_only=state.show_favorites_only,
        favorite_post_ids=frozenset(state.favorite_post_ids),
        has_more_posts=state.has_more_posts,
        current_page=state.current_page,
        is_searching=view is FeedView.SEARCH,
    )
