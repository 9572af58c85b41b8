"""Pydantic schemas for management user registration and login."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator


class RegisterRequest(BaseModel):
    """Management user registration request."""

    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1, max_length=255)
    role: Literal["admin", "user"] = "user"
    departments: list[StrictInt] = Field(default_factory=list, description="Department IDs this user manages")

    @field_validator("username")
    @classmethod
    def strip_username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Username and password are required.")
        return v


class LoginRequest(BaseModel):
    """Management user login request."""

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class Token(BaseModel):
    """JWT access token response."""

    token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    """Management user without credentials."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: str
    departments: list[int]


class RegisterResponse(BaseModel):
    message: str
    user: UserResponse
