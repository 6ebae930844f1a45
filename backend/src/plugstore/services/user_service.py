"""User account service for the Plugstore backend."""

import logging
import re
from typing import Any

import bcrypt
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import (
    AuthenticationError,
    DuplicateUserError,
    InternalError,
    InvalidBioError,
    InvalidEmailError,
    InvalidTitleError,
    InvalidUsernameError,
    UserNotFoundError,
)
from ..core.logging import get_logger
from ..models.session import ActiveSession
from ..models.star import PluginStar
from ..models.user import (
    BIO_MAX_LENGTH,
    DEFAULT_TITLE,
    EMAIL_MAX_LENGTH,
    EMAIL_MIN_LENGTH,
    TITLE_MAX_LENGTH,
    USERNAME_MAX_LENGTH,
    USERNAME_MIN_LENGTH,
    User,
)
from ..schemas.star import StarredPlugin
from ..schemas.user import ProfileUpdate, UserCreate
from .star_service import StarService

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def hash_password(password: str, rounds: int = 12) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def validate_username(username: str | None) -> str:
    if username is None or not (USERNAME_MIN_LENGTH <= len(username) <= USERNAME_MAX_LENGTH):
        raise InvalidUsernameError(username, USERNAME_MIN_LENGTH, USERNAME_MAX_LENGTH)
    return username


def normalize_email(email: str | None) -> str:
    if email is None:
        raise InvalidEmailError(email, "email is required")
    normalized = email.strip().lower()
    if not (EMAIL_MIN_LENGTH <= len(normalized) <= EMAIL_MAX_LENGTH):
        raise InvalidEmailError(email, f"must be {EMAIL_MIN_LENGTH}-{EMAIL_MAX_LENGTH} characters")
    if not EMAIL_PATTERN.match(normalized):
        raise InvalidEmailError(email, "not a valid address")
    return normalized


def validate_title(title: str) -> str:
    if len(title) > TITLE_MAX_LENGTH:
        raise InvalidTitleError(TITLE_MAX_LENGTH)
    return title


def validate_bio(bio: str | None) -> str | None:
    if bio is not None and len(bio) > BIO_MAX_LENGTH:
        raise InvalidBioError(BIO_MAX_LENGTH)
    return bio


class UserService:
    """Service for user accounts and profile fields."""

    def __init__(self, db: AsyncSession, bcrypt_rounds: int = 12, logger: logging.Logger | None = None) -> None:
        self.db = db
        self.bcrypt_rounds = bcrypt_rounds
        self.logger = logger or get_logger(__name__)

    async def create(self, data: UserCreate) -> User:
        """Register a user.

        Raises:
            InvalidUsernameError: username length out of range
            InvalidEmailError: malformed or out-of-range email
            DuplicateUserError: username or email already registered

        """
        username = validate_username(data.username)
        email = normalize_email(data.email)

        if await self.username_exists(username):
            raise DuplicateUserError("username", username)
        if await self.get_user_by_email(email) is not None:
            raise DuplicateUserError("email", email)

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(data.password, self.bcrypt_rounds),
            title=DEFAULT_TITLE,
            profile_picture=data.profile_picture,
            is_supporter=False,
        )
        self.db.add(user)
        await self._commit("create_user", unique_field=("username", username))
        self.logger.info("User created", extra={"user_id": user.id, "username": username})
        return user

    async def get_user_by_id(self, user_id: str) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    async def get_user_by_username(self, username: str) -> User:
        result = await self.db.execute(select(User).where(User.username == username))
        user = result.scalar_one_or_none()
        if user is None:
            raise UserNotFoundError(username)
        return user

    async def get_user_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def username_exists(self, username: str) -> bool:
        count = await self.db.scalar(select(func.count()).select_from(User).where(User.username == username))
        return bool(count)

    async def update_username(self, user_id: str, new_username: str) -> User:
        user = await self.get_user_by_id(user_id)
        username = validate_username(new_username)
        if username != user.username and await self.username_exists(username):
            raise DuplicateUserError("username", username)
        user.username = username
        await self._commit("update_username", unique_field=("username", username))
        self.logger.info("Username updated", extra={"user_id": user_id})
        return user

    async def update_title(self, user_id: str, new_title: str) -> User:
        user = await self.get_user_by_id(user_id)
        user.title = validate_title(new_title)
        await self._commit("update_title")
        return user

    async def update_bio(self, user_id: str, new_bio: str | None) -> User:
        user = await self.get_user_by_id(user_id)
        user.bio = validate_bio(new_bio)
        await self._commit("update_bio")
        return user

    async def toggle_supporter(self, user_id: str, status: bool) -> User:
        user = await self.get_user_by_id(user_id)
        user.is_supporter = status
        await self._commit("toggle_supporter")
        self.logger.info("Supporter status changed", extra={"user_id": user_id, "is_supporter": status})
        return user

    async def update_preferences(self, user_id: str, preferences: dict[str, Any]) -> User:
        user = await self.get_user_by_id(user_id)
        user.preferences = dict(preferences)
        await self._commit("update_preferences")
        return user

    async def update_profile(self, user_id: str, updates: ProfileUpdate) -> User:
        """Apply several profile fields at once; every field is validated first."""
        user = await self.get_user_by_id(user_id)

        if updates.username is not None:
            username = validate_username(updates.username)
            if username != user.username and await self.username_exists(username):
                raise DuplicateUserError("username", username)
        if updates.title is not None:
            validate_title(updates.title)
        validate_bio(updates.bio)

        if updates.username is not None:
            user.username = updates.username
        if updates.title is not None:
            user.title = updates.title
        if updates.bio is not None:
            user.bio = updates.bio
        if updates.profile_picture is not None:
            user.profile_picture = updates.profile_picture
        if updates.preferences is not None:
            user.preferences = dict(updates.preferences)

        await self._commit("update_profile", unique_field=("username", updates.username or user.username))
        self.logger.info("Profile updated", extra={"user_id": user_id})
        return user

    async def update_password(self, user_id: str, current_password: str, new_password: str) -> None:
        user = await self.get_user_by_id(user_id)
        if not verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")
        user.password_hash = hash_password(new_password, self.bcrypt_rounds)
        # Existing sessions stay valid only for the password they were issued under
        await self.db.execute(delete(ActiveSession).where(ActiveSession.user_id == user_id))
        await self._commit("update_password")
        self.logger.info("Password updated", extra={"user_id": user_id})

    async def remove(self, user_id: str) -> None:
        """Delete a user with their sessions and stars. Authored plugins are kept."""
        user = await self.get_user_by_id(user_id)
        await self.db.execute(delete(ActiveSession).where(ActiveSession.user_id == user_id))
        await self.db.execute(delete(PluginStar).where(PluginStar.user_id == user_id))
        await self.db.delete(user)
        await self._commit("remove_user")
        self.logger.info("User removed", extra={"user_id": user_id})

    async def get_user_stars(self, user_id: str) -> list[StarredPlugin]:
        await self.get_user_by_id(user_id)
        return await StarService(self.db, logger=self.logger).get_user_stars(user_id)

    async def _commit(self, operation: str, unique_field: tuple[str, str] | None = None) -> None:
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            if unique_field is not None:
                raise DuplicateUserError(*unique_field) from e
            raise InternalError(operation, str(e)) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            self.logger.error(f"User store failure during {operation}", extra={"error": str(e)})
            raise InternalError(operation, str(e)) from e
