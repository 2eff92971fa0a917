"""
Data Models for the Post Feed Application

This module contains data classes and models used throughout the application.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class Post:
    """A remote-identified post, optionally flagged as favorite in the local cache."""
    id: int                            # Assigned by the remote feed, unique
    user_id: int                       # Author id on the remote feed
    title: str
    body: str
    is_favorite: bool = False          # Cache-local annotation

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Post":
        """Build a Post from a remote JSON object (``userId``/``id``/``title``/``body``)."""
        return cls(
            id=int(payload["id"]),
            user_id=int(payload["userId"]),
            title=str(payload.get("title") or ""),
            body=str(payload.get("body") or ""),
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Post":
        """Build a Post from a cache row."""
        return cls(
            id=int(row["id"]),
            user_id=int(row["user_id"]),
            title=str(row["title"]),
            body=str(row["body"]),
            is_favorite=bool(row["is_favorite"]),
        )

    def with_favorite(self, is_favorite: bool) -> "Post":
        return replace(self, is_favorite=is_favorite)


@dataclass(frozen=True)
class Favorite:
    """
    Per-user bookmark of a post.

    Title and body are a snapshot taken when the post was favorited; they are
    not refreshed when the cached post changes later.
    """
    post_id: int
    user_key: str                      # Login identity (email) of the owner
    title: str
    body: str
    original_user_id: int              # Author id of the favorited post

    @classmethod
    def from_post(cls, post: Post, user_key: str) -> "Favorite":
        return cls(
            post_id=post.id,
            user_key=user_key,
            title=post.title,
            body=post.body,
            original_user_id=post.user_id,
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Favorite":
        return cls(
            post_id=int(row["post_id"]),
            user_key=str(row["user_key"]),
            title=str(row["title"]),
            body=str(row["body"]),
            original_user_id=int(row["original_user_id"]),
        )

    def to_post(self) -> Post:
        return Post(id=self.post_id, user_id=self.original_user_id, title=self.title,
                    body=self.body, is_favorite=True)


@dataclass(frozen=True)
class Comment:
    """A comment on a post as served by the remote feed."""
    id: int
    post_id: int
    name: str
    email: str
    body: str

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "Comment":
        return cls(
            id=int(payload["id"]),
            post_id=int(payload["postId"]),
            name=str(payload.get("name") or ""),
            email=str(payload.get("email") or ""),
            body=str(payload.get("body") or ""),
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Comment":
        return cls(
            id=int(row["id"]),
            post_id=int(row["post_id"]),
            name=str(row["name"]),
            email=str(row["email"]),
            body=str(row["body"]),
        )


@dataclass(frozen=True)
class User:
    """A locally registered account. The password is kept in the clear."""
    email: str
    password: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "User":
        return cls(email=str(row["email"]), password=str(row["password"]))


def post_to_params(post: Post) -> Dict[str, Any]:
    """Bound parameters for the posts table."""
    return {
        "id": post.id,
        "user_id": post.user_id,
        "title": post.title,
        "body": post.body,
        "is_favorite": 1 if post.is_favorite else 0,
    }
