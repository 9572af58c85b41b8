"""Error taxonomy for provisioning operations.

Each error carries the HTTP status it maps to; the application installs one
exception handler for the base class.
"""

from fastapi import status


class ProvisioningError(Exception):
    """Base exception for guest provisioning errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(detail)


class BadRequestError(ProvisioningError):
    """Malformed, missing or inconsistent input."""

    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(ProvisioningError):
    """Missing, invalid or expired credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(ProvisioningError):
    """Authenticated but outside the caller's department scope."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ProvisioningError):
    """Referenced guest does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ProvisioningError):
    """Duplicate email or username."""

    status_code = status.HTTP_409_CONFLICT


class InternalError(ProvisioningError):
    """Unexpected store or transport failure."""
