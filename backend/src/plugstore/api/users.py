"""User API endpoints."""

from fastapi import APIRouter, Depends, status

from ..core.response import PlugstoreResponse
from ..models.user import User
from ..schemas.user import (
    BioUpdate,
    PasswordUpdate,
    PreferencesUpdate,
    ProfileUpdate,
    SupporterUpdate,
    TitleUpdate,
    UserCreate,
    UsernameUpdate,
    UserPrivateResponse,
    UserResponse,
)
from ..services.user_service import UserService
from .dependencies import get_user_service, require_master_key, require_session

router = APIRouter(prefix="/users", tags=["users"])


def _private(user: User) -> UserPrivateResponse:
    return UserPrivateResponse.model_validate(user)


@router.post("", status_code=status.HTTP_201_CREATED, summary="Register a user")
async def register_user(data: UserCreate, service: UserService = Depends(get_user_service)):
    user = await service.create(data)
    return PlugstoreResponse.created(_private(user))


@router.get("/exists/{username}", summary="Check whether a username is taken")
async def username_exists(username: str, service: UserService = Depends(get_user_service)):
    return PlugstoreResponse.success({"exists": await service.username_exists(username)})


@router.get("/by-username/{username}", summary="Get a user by username")
async def get_user_by_username(username: str, service: UserService = Depends(get_user_service)):
    return PlugstoreResponse.success(UserResponse.model_validate(await service.get_user_by_username(username)))


@router.patch("/me/username", summary="Change username")
async def update_username(
    data: UsernameUpdate, user: User = Depends(require_session), service: UserService = Depends(get_user_service)
):
    return PlugstoreResponse.success(_private(await service.update_username(user.id, data.new_username)))


@router.patch("/me/title", summary="Change title")
async def update_title(
    data: TitleUpdate, user: User = Depends(require_session), service: UserService = Depends(get_user_service)
):
    return PlugstoreResponse.success(_private(await service.update_title(user.id, data.new_title)))


@router.patch("/me/bio", summary="Change bio")
async def update_bio(
    data: BioUpdate, user: User = Depends(require_session), service: UserService = Depends(get_user_service)
):
    return PlugstoreResponse.success(_private(await service.update_bio(user.id, data.new_bio)))


@router.patch("/me/profile", summary="Update several profile fields")
async def update_profile(
    data: ProfileUpdate, user: User = Depends(require_session), service: UserService = Depends(get_user_service)
):
    return PlugstoreResponse.success(_private(await service.update_profile(user.id, data)))


@router.patch("/me/preferences", summary="Replace preferences")
async def update_preferences(
    data: PreferencesUpdate, user: User = Depends(require_session), service: UserService = Depends(get_user_service)
):
    return PlugstoreResponse.success(_private(await service.update_preferences(user.id, data.preferences)))


@router.put("/me/password", summary="Change password")
async def update_password(
    data: PasswordUpdate, user: User = Depends(require_session), service: UserService = Depends(get_user_service)
):
    await service.update_password(user.id, data.current_password, data.new_password)
    return PlugstoreResponse.no_content()


@router.delete("/me", summary="Delete own account")
async def delete_me(user: User = Depends(require_session), service: UserService = Depends(get_user_service)):
    await service.remove(user.id)
    return PlugstoreResponse.no_content()


@router.get("/{user_id}", summary="Get a user")
async def get_user(user_id: str, service: UserService = Depends(get_user_service)):
    return PlugstoreResponse.success(UserResponse.model_validate(await service.get_user_by_id(user_id)))


@router.get("/{user_id}/stars", summary="Plugins starred by a user")
async def get_user_stars(user_id: str, service: UserService = Depends(get_user_service)):
    return PlugstoreResponse.success(await service.get_user_stars(user_id))


@router.put("/{user_id}/supporter", dependencies=[Depends(require_master_key)], summary="Set supporter status")
async def set_supporter(user_id: str, data: SupporterUpdate, service: UserService = Depends(get_user_service)):
    return PlugstoreResponse.success(_private(await service.toggle_supporter(user_id, data.status)))


@router.delete("/{user_id}", dependencies=[Depends(require_master_key)], summary="Delete a user")
async def delete_user(user_id: str, service: UserService = Depends(get_user_service)):
    await service.remove(user_id)
    return PlugstoreResponse.no_content()
