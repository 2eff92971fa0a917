"""
Authentication Service Module

Local account registration and login. A successful login marks the session as
logged in, which in turn tells the feed engine to reload that user's favorites.

Passwords are stored and compared in the clear.
"""

from typing import Optional

from data.models import User
from data.protocols import UserStorage
from services.session import SessionStore
from utils.exceptions import InvalidCredentialsError, RegistrationError
from utils.logger import get_logger
from utils.validators import is_valid_email, validate_password

logger = get_logger(__name__)

INVALID_EMAIL_MESSAGE = "Please enter a valid email address"
USER_EXISTS_MESSAGE = "User already exists with this email"
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"


def _display_name(email: str) -> str:
    return email.split("@", 1)[0]


class AuthService:
    """Register, log in and log out against the local user store."""

    def __init__(self, user_store: UserStorage, session: SessionStore):
        self.user_store = user_store
        self.session = session

    def register(self, email: str, password: str) -> User:
        """
        Create a new account after validating the email and password.

        Args:
            email: Login identity
            password: Plain-text password, checked against the password rules

        Returns:
            User: The stored user

        Raises:
            RegistrationError: With every validation problem in ``errors``, or
                when the email is already registered
        """
        email = email.strip()
        errors = []
        if not is_valid_email(email):
            errors.append(INVALID_EMAIL_MESSAGE)
        errors.extend(validate_password(password).errors)
        if errors:
            raise RegistrationError(errors[0], errors=errors)

        if self.user_store.get_user_by_email(email) is not None:
            raise RegistrationError(USER_EXISTS_MESSAGE, errors=[USER_EXISTS_MESSAGE])

        user = User(email=email, password=password)
        self.user_store.insert_user(user)
        logger.info(f"Registered user {email}")
        return user

    def login(self, email: str, password: str) -> User:
        """
        Check the credentials and start a session.

        Raises:
            InvalidCredentialsError: If no user matches the pair
            SessionError: If the session cannot be saved
        """
        email = email.strip()
        user = self.user_store.get_user(email, password)
        if user is None:
            logger.warning(f"Failed login for {email}")
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

        self.session.set_logged_in(True, email=user.email, name=_display_name(user.email))
        logger.info(f"Logged in as {user.email}")
        return user

    def logout(self) -> None:
        self.session.logout()
        logger.info("Logged out")

    def current_user(self) -> Optional[str]:
        return self.session.get_current_user_key()
