from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from taskboard.schemas.common import CamelModel
from taskboard.utils.sanitization import sanitize_text, strip_text


class PublicUser(CamelModel):
    id: str
    email: str
    name: str


class User(CamelModel):
    id: str
    email: str
    password_hash: str
    name: str
    created_at: datetime

    def to_public(self) -> PublicUser:
        return PublicUser(id=self.id, email=self.email, name=self.name)


# Fields are optional here so missing ones produce the handler's own 400 message
class SignupRequest(BaseModel):
    email: str | None = None
    password: str | None = None
    name: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return strip_text(v)

    @field_validator("name", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_text(v)


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return strip_text(v)


class UserResponse(BaseModel):
    user: PublicUser
    message: str | None = None


class TokenPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sub: str
    user_id: str = Field(alias="userId")
    email: str
    iat: int
    exp: int
