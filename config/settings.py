"""
Configuration Settings for the Post Feed Application

This module centralizes all configuration settings for the Post Feed application,
including environment variables, remote API location, cache location and
paging constants.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Determine the application root directory
APP_ROOT = Path(__file__).resolve().parent.parent

# Load environment variables from .env file
load_dotenv(dotenv_path=os.path.join(APP_ROOT, '.env'))

# =============================================================================
# Remote Feed Settings
# =============================================================================

POSTS_API_BASE_URL = os.getenv("POSTS_API_BASE_URL", "https://jsonplaceholder.typicode.com")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10"))   # Seconds per remote call

USER_AGENT = 'post-feed/1.0 (+https://jsonplaceholder.typicode.com)'
REQUEST_HEADERS = {
    'User-Agent': USER_AGENT,
    'Accept': 'application/json',
}

# =============================================================================
# Paging Settings
# =============================================================================

POSTS_PER_PAGE = int(os.getenv("POSTS_PER_PAGE", "10"))                           # Fixed page size
LOAD_MORE_DEBOUNCE_SECONDS = float(os.getenv("LOAD_MORE_DEBOUNCE_SECONDS", "1.0"))  # Min gap between load-more calls

# =============================================================================
# Local Storage Settings
# =============================================================================

CACHE_DATABASE_URL = os.getenv(
    "CACHE_DATABASE_URL",
    f"sqlite:///{os.path.join(APP_ROOT, 'post_cache.db')}"
)
SESSION_FILE = os.getenv("SESSION_FILE", os.path.join(APP_ROOT, "session.json"))

# =============================================================================
# Logging Settings
# =============================================================================

LOG_FILE = os.getenv("LOG_FILE", "post_feed.log")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def get_config_summary() -> dict:
    """
    Returns a summary of current configuration.
    Useful for logging startup state.
    """
    return {
        "remote": {
            "base_url": POSTS_API_BASE_URL,
            "timeout": REQUEST_TIMEOUT,
        },
        "paging": {
            "page_size": POSTS_PER_PAGE,
            "load_more_debounce": LOAD_MORE_DEBOUNCE_SECONDS,
        },
        "storage": {
            "cache_database": CACHE_DATABASE_URL.split("://", 1)[0],
            "session_file": SESSION_FILE,
        },
    }
