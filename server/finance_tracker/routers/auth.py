from fastapi import APIRouter, Depends, Response

from finance_tracker.config import settings
from finance_tracker.schemas.auth import LoginRequest, TokenResponse, SessionResponse
from finance_tracker.schemas.common import MessageResponse
from finance_tracker.services.auth_service import authenticate, build_token
from finance_tracker.utils.deps import get_current_user

router = APIRouter(prefix="/auth", tags=["认证"])


@router.post("/login", response_model=TokenResponse, summary="登录")
async def login(body: LoginRequest, response: Response):
    """单账号登录：签发会话 Token，同时写入 httpOnly cookie"""
    username = authenticate(body.username, body.password)
    token = build_token(username, body.remember_me)
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        token["access_token"],
        max_age=token["expires_in"],
        httponly=True,
        secure=not settings.DEBUG,
        samesite="lax",
        path="/",
    )
    return TokenResponse(**token)


@router.post("/logout", response_model=MessageResponse, summary="退出登录")
async def logout(response: Response):
    response.delete_cookie(settings.SESSION_COOKIE_NAME, path="/")
    return MessageResponse(message="Logged out")


@router.get("/me", response_model=SessionResponse, summary="当前会话")
async def get_me(username: str = Depends(get_current_user)):
    return SessionResponse(username=username)
