from pydantic import Field

from finance_tracker.schemas.common import CamelModel


class LoginRequest(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)
    remember_me: bool = False


class TokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(description="过期时间（秒）")


class SessionResponse(CamelModel):
    username: str
