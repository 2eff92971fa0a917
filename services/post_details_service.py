"""
Post Details Service Module

Assembles a cached post with its comments for the detail view.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from data.models import Comment, Post
from services.comment_service import CommentService
from services.post_repository import PostRepository
from utils.exceptions import PostFeedError
from utils.logger import get_logger

logger = get_logger(__name__)

POST_NOT_FOUND_MESSAGE = "Post not found"
POST_LOAD_FAILED_MESSAGE = "Failed to load post: {error}"
COMMENTS_FAILED_MESSAGE = "Failed to load comments."


@dataclass
class PostDetails:
    """A post, its comments, and the error to show if either could not be loaded."""
    post: Optional[Post] = None
    comments: List[Comment] = field(default_factory=list)
    error_message: Optional[str] = None


class PostDetailsService:

    def __init__(self, post_repository: PostRepository, comment_service: CommentService):
        self.post_repository = post_repository
        self.comment_service = comment_service

    def load_post_details(self, post_id: int) -> PostDetails:
        """
        Look the post up in the cache, then attach its comments.

        Cached comments are used as-is; only a post without cached comments
        triggers a remote fetch. Failures end up in ``error_message``.
        """
        try:
            post = self.post_repository.get_post(post_id)
        except PostFeedError as e:
            logger.error(f"Reading post {post_id} failed: {e}")
            return PostDetails(error_message=POST_LOAD_FAILED_MESSAGE.format(error=e))

        if post is None:
            return PostDetails(error_message=POST_NOT_FOUND_MESSAGE)

        details = PostDetails(post=post)
        try:
            comments = self.comment_service.get_cached_comments(post_id)
            if not comments:
                comments = self.comment_service.load_comments_for_post(post_id)
            details.comments = comments
        except PostFeedError as e:
            logger.warning(f"Comments for post {post_id} unavailable: {e}")
            details.error_message = COMMENTS_FAILED_MESSAGE
        return details
