"""
Custom Exception Classes for the Post Feed Application

This module defines custom exceptions for better error handling and
categorization of failures across the application.
"""


class PostFeedError(Exception):
    """Base exception for all Post Feed application errors."""
    pass


# =============================================================================
# Configuration Errors
# =============================================================================

class ConfigurationError(PostFeedError):
    """Raised when configuration validation fails or required settings are missing."""
    pass


# =============================================================================
# Remote Feed Errors
# =============================================================================

class FeedError(PostFeedError):
    """Base exception for remote feed errors."""
    pass


class FeedFetchError(FeedError):
    """Raised when the remote feed cannot be reached or answers with a non-success status."""

    def __init__(self, message: str, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class FeedDecodeError(FeedError):
    """Raised when the remote feed answers with a body that cannot be decoded."""
    pass


# =============================================================================
# Database Errors
# =============================================================================

class DatabaseError(PostFeedError):
    """Base exception for local cache database errors."""
    pass


class ConnectionError(DatabaseError):
    """Raised when the cache database cannot be opened."""
    pass


class QueryError(DatabaseError):
    """Raised when a cache database statement fails."""
    pass


# =============================================================================
# Session and Authentication Errors
# =============================================================================

class SessionError(PostFeedError):
    """Raised when the persisted session cannot be read or written."""
    pass


class AuthError(PostFeedError):
    """Base exception for authentication errors."""
    pass


class RegistrationError(AuthError):
    """Raised when a new account cannot be registered."""

    def __init__(self, message: str, errors=None):
        super().__init__(message)
        self.errors = list(errors or [])


class InvalidCredentialsError(AuthError):
    """Raised when an email/password pair does not match a stored user."""
    pass


# =============================================================================
# Favorites Errors
# =============================================================================

class FavoriteError(PostFeedError):
    """Raised when a favorites operation cannot be completed."""
    pass
