from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional
from datetime import datetime
from urllib.parse import urlparse


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# User Schemas
class SignupRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=8)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class UserResponse(CamelModel):
    user_id: str
    email: str


class TokenResponse(CamelModel):
    token: str


# Broker Connection Schemas
class UpstoxCredentialsRequest(CamelModel):
    api_key: str = Field(min_length=1)
    api_secret: str = Field(min_length=1)
    redirect_uri: str

    @field_validator("redirect_uri")
    @classmethod
    def validate_redirect_uri(cls, v):
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("redirectUri must be an absolute http(s) URL")
        return v


class CredentialsResponse(CamelModel):
    message: str
    connection_id: Optional[str] = None


class AuthUrlResponse(CamelModel):
    auth_url: str
    state: str
    expires_in: int


class CallbackRequest(CamelModel):
    code: str = Field(min_length=1)
    state: Optional[str] = None


class CallbackResponse(CamelModel):
    message: str
    token_valid_until: datetime
    has_extended_token: bool


class DisconnectResponse(CamelModel):
    message: str
    disconnected_connection_id: str


class ErrorResponse(BaseModel):
    error: str
