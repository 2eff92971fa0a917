"""
Form Validation Helpers

Email and password rules applied before an account is registered.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+\-]+@[A-Za-z0-9.\-]+\.[A-Za-z]{2,}$")
UPPERCASE_PATTERN = re.compile(r"[A-Z]")
LOWERCASE_PATTERN = re.compile(r"[a-z]")
DIGIT_PATTERN = re.compile(r"[0-9]")
SPECIAL_CHAR_PATTERN = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")
WHITESPACE_PATTERN = re.compile(r"\s")

COMMON_PASSWORDS = frozenset([
    "password", "123456", "123456789", "qwerty", "abc123", "password123",
    "admin", "letmein", "welcome", "monkey", "1234567890", "password1",
    "qwerty123", "dragon", "master", "hello", "freedom", "whatever",
    "qazwsx", "trustno1", "jordan", "jennifer", "zxcvbnm", "asdfgh",
    "hunter", "buster", "soccer", "harley", "batman", "andrew",
    "tigger", "sunshine", "iloveyou", "2000", "charlie", "robert",
    "thomas", "hockey", "ranger", "daniel", "starwars", "klaster",
    "112233", "george", "computer", "michelle", "jessica", "pepper",
    "1234", "zoey", "12345", "liverpool", "david", "jordan23", "1991",
    "michael", "superman", "1234567", "mustang",
])


class PasswordStrength(Enum):
    WEAK = "weak"
    MEDIUM = "medium"
    STRONG = "strong"


@dataclass
class ValidationResult:
    """Outcome of a validation: valid when no error messages were collected."""
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def is_valid_email(email: str) -> bool:
    """
    Check an email address against a simple local@domain.tld shape.

    Args:
        email: The address to check

    Returns:
        bool: True if the address looks valid
    """
    if not email:
        return False
    return EMAIL_PATTERN.match(email.strip()) is not None


def validate_password(password: str) -> ValidationResult:
    """
    Validate a password against the registration rules.

    Every failed rule adds one human-readable message, so the caller can show
    all problems at once.

    Args:
        password: The candidate password

    Returns:
        ValidationResult: The collected error messages
    """
    errors = []

    if len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if len(password) > MAX_PASSWORD_LENGTH:
        errors.append(f"Password must be no more than {MAX_PASSWORD_LENGTH} characters long")

    if not UPPERCASE_PATTERN.search(password):
        errors.append("Password must contain at least one uppercase letter")

    if not LOWERCASE_PATTERN.search(password):
        errors.append("Password must contain at least one lowercase letter")

    if not DIGIT_PATTERN.search(password):
        errors.append("Password must contain at least one number")

    if not SPECIAL_CHAR_PATTERN.search(password):
        errors.append("Password must contain at least one special character (!@#$%^&*()_+-=[]{}|;':\",./<>?)")

    if WHITESPACE_PATTERN.search(password):
        errors.append("Password cannot contain spaces")

    if password.lower() in COMMON_PASSWORDS:
        errors.append("Password is too common or weak. Please choose a stronger password")

    return ValidationResult(errors=errors)


def get_password_strength(password: str) -> PasswordStrength:
    """
    Score a password: invalid passwords are always weak.

    Length gives up to two points (10+ chars one, 12+ chars two) and each
    character class present gives one more.
    """
    if not validate_password(password).is_valid:
        return PasswordStrength.WEAK

    score = 0
    if len(password) >= 12:
        score += 2
    elif len(password) >= 10:
        score += 1

    for pattern in (UPPERCASE_PATTERN, LOWERCASE_PATTERN, DIGIT_PATTERN, SPECIAL_CHAR_PATTERN):
        if pattern.search(password):
            score += 1

    if score >= 6:
        return PasswordStrength.STRONG
    if score >= 4:
        return PasswordStrength.MEDIUM
    return PasswordStrength.WEAK
