"""Pydantic schemas for API request/response validation."""

from guest_portal.schemas.auth import (
    LoginRequest,
    RegisterRequest,
    RegisterResponse,
    Token,
    UserResponse,
)
from guest_portal.schemas.guests import (
    CreatorSummary,
    GuestCreate,
    GuestCreateResponse,
    GuestResponse,
    GuestUpdate,
    GuestUpdateResponse,
    MessageResponse,
    ResendResponse,
)

__all__ = [
    "CreatorSummary",
    "GuestCreate",
    "GuestCreateResponse",
    "GuestResponse",
    "GuestUpdate",
    "GuestUpdateResponse",
    "LoginRequest",
    "MessageResponse",
    "RegisterRequest",
    "RegisterResponse",
    "ResendResponse",
    "Token",
    "UserResponse",
]
