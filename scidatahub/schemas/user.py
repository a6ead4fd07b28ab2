from datetime import datetime

from pydantic import field_validator

from scidatahub.auth.permissions import ROLES
from scidatahub.schemas.common import CamelModel, PageMeta


class UserSummary(CamelModel):
    id: str
    first_name: str
    last_name: str
    email: str
    organization: str | None = None


class UserResponse(CamelModel):
    id: str
    email: str
    first_name: str
    last_name: str
    role: str
    organization: str | None = None
    bio: str | None = None
    is_active: bool
    is_verified: bool
    permissions: list[str]
    last_login: datetime | None = None
    created_at: datetime | None = None


class RegisterRequest(CamelModel):
    email: str
    password: str
    first_name: str
    last_name: str
    role: str = 'citizen'
    organization: str | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if '@' not in normalized:
            raise ValueError('A valid email address is required.')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError('Password must be at least 6 characters.')
        return value

    @field_validator('first_name', 'last_name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        normalized = (value or 'citizen').strip().lower()
        if normalized not in ROLES:
            raise ValueError('Invalid role.')
        return normalized


class LoginRequest(CamelModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class VerifyRequest(CamelModel):
    token: str | None = None


class ProfileUpdateRequest(CamelModel):
    first_name: str | None = None
    last_name: str | None = None
    organization: str | None = None
    bio: str | None = None

    @field_validator('bio')
    @classmethod
    def validate_bio(cls, value: str | None) -> str | None:
        if value is not None and len(value) > 500:
            raise ValueError('Bio must be 500 characters or fewer.')
        return value


class AuthResponse(CamelModel):
    message: str
    token: str
    user: UserResponse


class VerifyResponse(CamelModel):
    valid: bool
    user: UserResponse


class UserResponseEnvelope(CamelModel):
    user: UserResponse


class ProfileUpdateResponse(CamelModel):
    message: str
    user: UserResponse


class UserPage(PageMeta):
    users: list[UserResponse]


def user_summary(user) -> UserSummary | None:
    if user is None:
        return None
    return UserSummary.model_validate(user)
