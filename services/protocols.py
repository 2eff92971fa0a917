"""
Service Protocol Definitions

This module defines typing.Protocol interfaces for the collaborators of the
feed engine. These protocols enable loose coupling, dependency injection, and
easier testing.

Protocols defined:
- FeedClientProtocol: Interface for the remote post feed
- SessionProvider: Interface for the current login session
"""

from typing import Callable, List, Optional, Protocol

from data.models import Comment, Post

SessionListener = Callable[[Optional[str]], None]


class FeedClientProtocol(Protocol):
    """Protocol defining the interface for the remote post feed.

    Implementations should raise FeedError subclasses on network failures,
    timeouts, non-success statuses and undecodable bodies.
    """

    def fetch_page(self, page: int, limit: int) -> List[Post]:
        """Fetch one page of posts.

        Args:
            page: 1-indexed page number.
            limit: Page size, greater than zero.

        Returns:
            The posts on that page; an empty list past the end of the feed.
        """
        ...

    def fetch_all(self) -> List[Post]:
        """Fetch the full feed."""
        ...

    def fetch_comments(self, post_id: int) -> List[Comment]:
        """Fetch the comments of one post."""
        ...


class SessionProvider(Protocol):
    """Protocol defining the interface for the login session.

    The current user key is re-read before every favorites-dependent
    operation, and listeners are told about every login and logout.
    """

    def get_current_user_key(self) -> Optional[str]:
        """Return the logged-in user's key, or None when logged out."""
        ...

    def is_logged_in(self) -> bool:
        """Return True when a user is logged in."""
        ...

    def add_listener(self, listener: SessionListener) -> None:
        """Register a callback receiving the new user key (None on logout)."""
        ...

    def remove_listener(self, listener: SessionListener) -> None:
        """Unregister a callback added with add_listener."""
        ...
