"""Guest account schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator

from guest_portal.core.credentials import ensure_utc


class GuestCreate(BaseModel):
    """Schema for provisioning a new guest."""

    name: str = Field(..., min_length=1, max_length=255, description="Given name")
    surname: str = Field(..., min_length=1, max_length=255, description="Surname")
    email: str = Field(..., min_length=3, max_length=64, description="Email, also the RADIUS username")
    valid_from: datetime = Field(..., description="Start of the validity window")
    valid_until: datetime = Field(..., description="End of the validity window, rendered as RADIUS Expiration")
    department: int = Field(..., description="Owning department ID")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "name": "Jane",
                "surname": "Doe",
                "email": "jane.doe@example.com",
                "valid_from": "2024-06-01T08:00:00Z",
                "valid_until": "2024-06-07T18:00:00Z",
                "department": 1,
            }
        }
    )


class GuestUpdate(BaseModel):
    """Partial update: extend validity and/or toggle blocking."""

    valid_until: datetime | None = Field(None, description="New end of the validity window")
    blocked: StrictBool | None = Field(None, description="Block (true) or unblock (false) the guest")


class CreatorSummary(BaseModel):
    """Management user who created a guest."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str


class GuestResponse(BaseModel):
    """Guest metadata as returned by the API. Never includes the password."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    surname: str
    email: str
    valid_from: datetime
    valid_until: datetime
    department: int
    blocked: bool
    created_by_user_id: int
    creator: CreatorSummary | None = None
    created_at: datetime | None = None

    @field_validator("valid_from", "valid_until", "created_at")
    @classmethod
    def as_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else None


class GuestCreateResponse(BaseModel):
    """Creation result, with the delivery outcome as auxiliary data."""

    message: str
    guest: GuestResponse
    email_sent: bool
    email_error: str | None = None


class GuestUpdateResponse(BaseModel):
    message: str
    guest: GuestResponse


class ResendResponse(BaseModel):
    message: str
    email_sent: bool
    email_error: str | None = None


class MessageResponse(BaseModel):
    message: str
