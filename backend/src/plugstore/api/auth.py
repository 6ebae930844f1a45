"""Session login/logout endpoints."""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from ..core.config import Settings
from ..core.logging import get_logger
from ..core.response import PlugstoreResponse
from ..models.user import User
from ..schemas.session import LoginRequest, SessionResponse
from ..schemas.user import UserPrivateResponse
from ..services.session_service import SessionService
from .dependencies import get_session_service, get_settings, require_session

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/sessions", status_code=status.HTTP_201_CREATED, summary="Log in")
async def login(
    data: LoginRequest,
    sessions: SessionService = Depends(get_session_service),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    session, user = await sessions.create_session(data.username, data.password)
    response = PlugstoreResponse.created(
        SessionResponse(user=UserPrivateResponse.model_validate(user), expires_at=session.expires_at)
    )
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session.session_id,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        samesite="strict",
        secure=settings.session_cookie_secure,
        path="/",
    )
    return response


@router.delete("/sessions", summary="Log out")
async def logout(
    request: Request,
    sessions: SessionService = Depends(get_session_service),
    settings: Settings = Depends(get_settings),
):
    await sessions.expire_session(request.cookies.get(settings.session_cookie_name))
    response = PlugstoreResponse.no_content()
    response.delete_cookie(settings.session_cookie_name, path="/")
    return response


@router.get("/me", summary="Current session user")
async def me(user: User = Depends(require_session)):
    return PlugstoreResponse.success(UserPrivateResponse.model_validate(user))
