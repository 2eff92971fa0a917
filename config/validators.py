"""
Configuration Validation for the Post Feed Application

This module contains configuration validation logic.
Extracted from settings.py for better separation of concerns.
"""

from utils.exceptions import ConfigurationError
from utils.helpers import is_valid_url


def validate_settings():
    """
    Validate that all required settings are properly configured.

    Raises:
        ConfigurationError: If required settings are missing or invalid.
    """
    # Import settings here to avoid circular imports
    from config import settings

    errors = []

    if not settings.POSTS_API_BASE_URL:
        errors.append("Missing required setting: POSTS_API_BASE_URL")
    elif not is_valid_url(settings.POSTS_API_BASE_URL):
        errors.append(f"POSTS_API_BASE_URL is not a valid URL: {settings.POSTS_API_BASE_URL}")

    if not settings.CACHE_DATABASE_URL:
        errors.append("Missing required setting: CACHE_DATABASE_URL")
    elif "://" not in settings.CACHE_DATABASE_URL:
        errors.append(f"CACHE_DATABASE_URL must be a database URL, got {settings.CACHE_DATABASE_URL}")

    if not settings.SESSION_FILE:
        errors.append("Missing required setting: SESSION_FILE")

    # Validate numeric settings are within reasonable bounds
    numeric_validations = [
        ("POSTS_PER_PAGE", settings.POSTS_PER_PAGE, 1, 100),
        ("LOAD_MORE_DEBOUNCE_SECONDS", settings.LOAD_MORE_DEBOUNCE_SECONDS, 0.0, 60.0),
    ]

    for name, value, min_val, max_val in numeric_validations:
        if value < min_val or value > max_val:
            errors.append(f"{name} must be between {min_val} and {max_val}, got {value}")

    if settings.REQUEST_TIMEOUT <= 0:
        errors.append(f"REQUEST_TIMEOUT must be positive, got {settings.REQUEST_TIMEOUT}")

    # Raise all errors at once
    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)

    return True
