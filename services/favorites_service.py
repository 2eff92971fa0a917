"""
Favorites Service Module

The favorites list of the logged-in user, built from the stored favorite rows
rather than the post cache, so favorites stay listable after the cache is
cleared.
"""

from typing import List

from data.models import Favorite
from services.favorite_repository import FavoriteRepository
from services.protocols import SessionProvider
from utils.exceptions import FavoriteError
from utils.logger import get_logger

logger = get_logger(__name__)

NOT_LOGGED_IN_MESSAGE = "User not logged in"


class FavoritesService:
    """Per-user favorites listing and removal."""

    def __init__(self, favorite_repository: FavoriteRepository, session: SessionProvider):
        self.favorite_repository = favorite_repository
        self.session = session

    def _require_user(self) -> str:
        user_key = self.session.get_current_user_key()
        if not user_key:
            raise FavoriteError(NOT_LOGGED_IN_MESSAGE)
        return user_key

    def list_favorites(self) -> List[Favorite]:
        """
        Return the current user's favorites ordered by descending post id.

        Raises:
            FavoriteError: If nobody is logged in
        """
        return self.favorite_repository.get_favorites_by_user(self._require_user())

    def remove_favorite(self, post_id: int) -> None:
        self.favorite_repository.remove_from_favorites(post_id, self._require_user())

    def clear_favorites(self) -> None:
        user_key = self._require_user()
        self.favorite_repository.clear_all_favorites_for_user(user_key)
