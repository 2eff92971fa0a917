"""
Favorite Repository Module

Adds and removes per-user favorites and keeps the post cache's favorite flag
in step with them.
"""

from typing import List, Set

from data.models import Favorite, Post
from data.protocols import FavoriteStorage, PostCache
from utils.logger import get_logger

logger = get_logger(__name__)


class FavoriteRepository:
    """Favorites keyed by (post id, user key)."""

    def __init__(self, favorite_store: FavoriteStorage, post_cache: PostCache):
        self.favorite_store = favorite_store
        self.post_cache = post_cache

    def get_favorites_by_user(self, user_key: str) -> List[Favorite]:
        return self.favorite_store.get_favorites_for_user(user_key)

    def get_favorite_post_ids(self, user_key: str) -> Set[int]:
        return {favorite.post_id for favorite in self.favorite_store.get_favorites_for_user(user_key)}

    def is_favorite(self, post_id: int, user_key: str) -> bool:
        return self.favorite_store.get_favorite(post_id, user_key) is not None

    def add_to_favorites(self, post: Post, user_key: str) -> Favorite:
        """
        Store a favorite with a snapshot of the post and flag the cached post.

        Raises:
            DatabaseError: If either write fails.
        """
        favorite = Favorite.from_post(post, user_key)
        self.favorite_store.upsert_favorite(favorite)
        self.post_cache.set_favorite_flag(post.id, True)
        logger.info(f"Added post {post.id} to favorites of {user_key}")
        return favorite

    def remove_from_favorites(self, post_id: int, user_key: str) -> None:
        """
        Delete a favorite; the cached post is unflagged once no user has it.

        Raises:
            DatabaseError: If either write fails.
        """
        self.favorite_store.delete_favorite(post_id, user_key)
        self._unflag_if_unused(post_id)
        logger.info(f"Removed post {post_id} from favorites of {user_key}")

    def clear_all_favorites_for_user(self, user_key: str) -> None:
        """Delete every favorite of a user and unflag posts nobody else favorites."""
        favorites = self.favorite_store.get_favorites_for_user(user_key)
        self.favorite_store.delete_all_favorites_for_user(user_key)
        for favorite in favorites:
            self._unflag_if_unused(favorite.post_id)
        logger.info(f"Cleared {len(favorites)} favorites of {user_key}")

    def _unflag_if_unused(self, post_id: int) -> None:
        # The cache flag is shared by every user
        if self.favorite_store.count_favorites_for_post(post_id) == 0:
            self.post_cache.set_favorite_flag(post_id, False)
