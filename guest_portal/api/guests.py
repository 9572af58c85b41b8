"""Guest account endpoints."""

import logging

from fastapi import APIRouter, status

from guest_portal.api.deps import Claims, Provisioning
from guest_portal.schemas.guests import (
    GuestCreate,
    GuestCreateResponse,
    GuestResponse,
    GuestUpdate,
    GuestUpdateResponse,
    MessageResponse,
    ResendResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/guests", response_model=GuestCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_guest(
    guest_data: GuestCreate,
    claims: Claims,
    engine: Provisioning,
) -> GuestCreateResponse:
    """
    Provision a guest and email the generated Wi-Fi credentials.

    The response is 201 whenever the guest was committed. A delivery
    failure is reported through ``email_sent``/``email_error`` so the
    operator can resend through another channel.
    """
    result = await engine.create_guest(
        claims,
        name=guest_data.name,
        surname=guest_data.surname,
        email=guest_data.email,
        valid_from=guest_data.valid_from,
        valid_until=guest_data.valid_until,
        department=guest_data.department,
    )

    if result.notification.delivered:
        message = "Guest created and credentials sent"
    else:
        message = "Guest created successfully, but failed to send email credentials."

    return GuestCreateResponse(
        message=message,
        guest=GuestResponse.model_validate(result.guest),
        email_sent=result.notification.delivered,
        email_error=result.notification.error,
    )


@router.get("/guests", response_model=list[GuestResponse])
async def list_guests(claims: Claims, engine: Provisioning) -> list[GuestResponse]:
    """List guests; non-admins only see their departments."""
    guests = engine.list_guests(claims)
    return [GuestResponse.model_validate(guest) for guest in guests]


@router.get("/guests/{guest_id}", response_model=GuestResponse)
async def get_guest(guest_id: int, claims: Claims, engine: Provisioning) -> GuestResponse:
    return GuestResponse.model_validate(engine.get_guest(claims, guest_id))


@router.patch("/guests/{guest_id}", response_model=GuestUpdateResponse)
async def update_guest(
    guest_id: int,
    update: GuestUpdate,
    claims: Claims,
    engine: Provisioning,
) -> GuestUpdateResponse:
    """
    Extend a guest's validity and/or block or unblock it.

    Both changes commit or roll back together.
    """
    guest = engine.update_guest(
        claims,
        guest_id,
        valid_until=update.valid_until,
        blocked=update.blocked,
    )
    return GuestUpdateResponse(
        message="Guest updated successfully",
        guest=GuestResponse.model_validate(guest),
    )


@router.delete("/guests/{guest_id}", response_model=MessageResponse)
async def delete_guest(guest_id: int, claims: Claims, engine: Provisioning) -> MessageResponse:
    """Delete a guest together with all of its RADIUS rows."""
    engine.delete_guest(claims, guest_id)
    return MessageResponse(message="Guest deleted successfully")


@router.post("/guests/{guest_id}/resend", response_model=ResendResponse)
async def resend_credentials(guest_id: int, claims: Claims, engine: Provisioning) -> ResendResponse:
    """Email the guest's current credentials again."""
    result = await engine.resend_credentials(claims, guest_id)
    return ResendResponse(
        message="Credentials sent" if result.delivered else "Failed to send email credentials.",
        email_sent=result.delivered,
        email_error=result.error,
    )
