import secrets

from finance_tracker.config import settings
from finance_tracker.errors import LedgerError
from finance_tracker.utils.security import verify_password, create_access_token


class AuthError(LedgerError):
    """认证业务异常"""

    status_code = 401
    code = "UNAUTHORIZED"


def authenticate(username: str, password: str) -> str:
    """校验单一配置账号；配置了 AUTH_PASSWORD_HASH 时按哈希校验，否则比对明文配置"""
    user_ok = secrets.compare_digest(username.encode(), settings.AUTH_USERNAME.encode())
    if settings.AUTH_PASSWORD_HASH:
        password_ok = verify_password(password, settings.AUTH_PASSWORD_HASH)
    else:
        password_ok = secrets.compare_digest(password.encode(), settings.AUTH_PASSWORD.encode())
    if not (user_ok and password_ok):
        raise AuthError("Invalid username or password")
    return username


def build_token(username: str, remember_me: bool = False) -> dict:
    """生成 Token 及过期信息；remember_me 时有效期 30 天，否则 1 天"""
    minutes = (
        settings.SESSION_REMEMBER_EXPIRE_MINUTES if remember_me
        else settings.SESSION_EXPIRE_MINUTES
    )
    return {
        "access_token": create_access_token(username, minutes),
        "token_type": "bearer",
        "expires_in": minutes * 60,
    }
