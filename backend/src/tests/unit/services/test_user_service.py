"""Unit tests for UserService and its field validators."""

import pytest
from sqlalchemy import func, select

from plugstore.core.exceptions import (
    AuthenticationError,
    DuplicateUserError,
    InvalidBioError,
    InvalidEmailError,
    InvalidTitleError,
    InvalidUsernameError,
    UserNotFoundError,
)
from plugstore.models.session import ActiveSession
from plugstore.models.star import PluginStar
from plugstore.schemas.user import ProfileUpdate, UserCreate
from plugstore.services.session_service import SessionService
from plugstore.services.user_service import (
    UserService,
    hash_password,
    normalize_email,
    validate_username,
    verify_password,
)


@pytest.fixture
def service(db_session):
    return UserService(db_session, bcrypt_rounds=4)


def _signup(**overrides) -> UserCreate:
    fields = {"username": "alice01", "email": "Alice@Example.com", "password": "password123"}
    fields.update(overrides)
    return UserCreate(**fields)


class TestValidators:
    def test_password_roundtrip(self):
        hashed = hash_password("s3cret-pass", rounds=4)
        assert verify_password("s3cret-pass", hashed) is True
        assert verify_password("wrong-pass", hashed) is False

    def test_malformed_hash_does_not_verify(self):
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    @pytest.mark.parametrize("username", ["abcd", "a" * 16, None])
    def test_username_length(self, username):
        with pytest.raises(InvalidUsernameError):
            validate_username(username)

    def test_email_is_lowercased(self):
        assert normalize_email("  Bob@Example.COM ") == "bob@example.com"

    @pytest.mark.parametrize("email", ["a@b", "no-at-sign.com", "x" * 35 + "@ex.com", None])
    def test_invalid_emails(self, email):
        with pytest.raises(InvalidEmailError):
            normalize_email(email)


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_sets_defaults(self, service):
        user = await service.create(_signup())

        assert user.username == "alice01"
        assert user.email == "alice@example.com"
        assert user.title == "New User"
        assert user.is_supporter is False
        assert user.password_hash != "password123"
        assert verify_password("password123", user.password_hash)

    @pytest.mark.asyncio
    async def test_duplicate_username(self, service):
        await service.create(_signup())
        with pytest.raises(DuplicateUserError) as exc_info:
            await service.create(_signup(email="other@example.com"))
        assert exc_info.value.details["field"] == "username"

    @pytest.mark.asyncio
    async def test_duplicate_email_ignores_case(self, service):
        await service.create(_signup())
        with pytest.raises(DuplicateUserError) as exc_info:
            await service.create(_signup(username="alice02", email="ALICE@example.com"))
        assert exc_info.value.details["field"] == "email"


class TestLookups:
    @pytest.mark.asyncio
    async def test_by_id_username_email(self, service):
        user = await service.create(_signup())

        assert (await service.get_user_by_id(user.id)).username == "alice01"
        assert (await service.get_user_by_username("alice01")).id == user.id
        assert (await service.get_user_by_email("ALICE@example.com")).id == user.id
        assert await service.get_user_by_email("nobody@example.com") is None

    @pytest.mark.asyncio
    async def test_missing_user(self, service):
        with pytest.raises(UserNotFoundError):
            await service.get_user_by_id("missing")
        with pytest.raises(UserNotFoundError):
            await service.get_user_by_username("nobody")

    @pytest.mark.asyncio
    async def test_username_exists(self, service):
        await service.create(_signup())
        assert await service.username_exists("alice01") is True
        assert await service.username_exists("bobby01") is False


class TestProfileUpdates:
    @pytest.mark.asyncio
    async def test_update_username(self, service):
        user = await service.create(_signup())
        updated = await service.update_username(user.id, "alice99")
        assert updated.username == "alice99"

    @pytest.mark.asyncio
    async def test_update_username_taken(self, service):
        await service.create(_signup(username="taken01", email="t@example.com"))
        user = await service.create(_signup())
        with pytest.raises(DuplicateUserError):
            await service.update_username(user.id, "taken01")

    @pytest.mark.asyncio
    async def test_title_and_bio_limits(self, service):
        user = await service.create(_signup())

        with pytest.raises(InvalidTitleError):
            await service.update_title(user.id, "t" * 51)
        with pytest.raises(InvalidBioError):
            await service.update_bio(user.id, "b" * 151)

        assert (await service.update_title(user.id, "Maintainer")).title == "Maintainer"
        assert (await service.update_bio(user.id, "Hello")).bio == "Hello"

    @pytest.mark.asyncio
    async def test_toggle_supporter(self, service):
        user = await service.create(_signup())
        assert (await service.toggle_supporter(user.id, True)).is_supporter is True
        assert (await service.toggle_supporter(user.id, False)).is_supporter is False

    @pytest.mark.asyncio
    async def test_update_preferences(self, service):
        user = await service.create(_signup())
        updated = await service.update_preferences(user.id, {"theme": "dark"})
        assert updated.preferences == {"theme": "dark"}

    @pytest.mark.asyncio
    async def test_update_profile_is_all_or_nothing(self, service):
        user = await service.create(_signup())

        with pytest.raises(InvalidBioError):
            await service.update_profile(user.id, ProfileUpdate(title="Changed", bio="b" * 151))

        assert (await service.get_user_by_id(user.id)).title == "New User"

    @pytest.mark.asyncio
    async def test_update_profile(self, service):
        user = await service.create(_signup())

        updated = await service.update_profile(
            user.id, ProfileUpdate(username="alice77", title="Dev", profile_picture="https://img/x.png")
        )

        assert updated.username == "alice77"
        assert updated.title == "Dev"
        assert updated.profile_picture == "https://img/x.png"


class TestPasswordAndRemoval:
    @pytest.mark.asyncio
    async def test_update_password_requires_current(self, service):
        user = await service.create(_signup())
        with pytest.raises(AuthenticationError):
            await service.update_password(user.id, "wrong-password", "newpassword1")

    @pytest.mark.asyncio
    async def test_update_password_drops_sessions(self, service, db_session):
        user = await service.create(_signup())
        user_id = user.id
        await SessionService(db_session, ttl_seconds=60).create_session("alice01", "password123")

        await service.update_password(user_id, "password123", "newpassword1")

        count = await db_session.scalar(
            select(func.count()).select_from(ActiveSession).where(ActiveSession.user_id == user_id)
        )
        assert count == 0
        refreshed = await service.get_user_by_id(user_id)
        assert verify_password("newpassword1", refreshed.password_hash)

    @pytest.mark.asyncio
    async def test_remove_deletes_user_sessions_and_stars(self, service, db_session, make_plugin):
        user = await service.create(_signup())
        user_id = user.id
        plugin = await make_plugin("alpha", author_id=user_id)
        plugin_id = plugin.id
        db_session.add(PluginStar(user_id=user_id, plugin_id=plugin_id))
        await db_session.commit()
        await SessionService(db_session, ttl_seconds=60).create_session("alice01", "password123")

        await service.remove(user_id)

        with pytest.raises(UserNotFoundError):
            await service.get_user_by_id(user_id)
        assert await db_session.scalar(select(func.count()).select_from(PluginStar)) == 0
        assert await db_session.scalar(select(func.count()).select_from(ActiveSession)) == 0

    @pytest.mark.asyncio
    async def test_get_user_stars_for_missing_user(self, service):
        with pytest.raises(UserNotFoundError):
            await service.get_user_stars("missing")
