from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from finance_tracker.config import settings
from finance_tracker.utils.security import decode_access_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


async def get_current_user(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
) -> str:
    """会话鉴权依赖：优先 Bearer Token，其次会话 cookie；返回用户名"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Not authenticated",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = token or request.cookies.get(settings.SESSION_COOKIE_NAME)
    if not token:
        raise credentials_exception

    username = decode_access_token(token)
    if username is None or username != settings.AUTH_USERNAME:
        raise credentials_exception

    return username
