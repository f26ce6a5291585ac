# storefront/schemas/token.py
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class LoginIn(_CamelModel):
    username: str = Field(min_length=1, max_length=150)
    password: str = Field(min_length=1, max_length=256)

class RefreshIn(_CamelModel):
    refresh_token: str = Field(min_length=1, max_length=512)

class TokenPair(_CamelModel):
    access_token: str
    access_token_ttl_seconds: int
    refresh_token: str
    refresh_token_expires_at: datetime
    token_type: str = "bearer"

class TokenPayload(BaseModel):
    sub: str  # admin id
    username: str
    role: Literal["admin"]
    jti: str
    iat: int
    exp: int

class LogoutOut(BaseModel):
    ok: bool = True
