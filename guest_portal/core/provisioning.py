"""Guest account provisioning across the administrative and RADIUS stores.

Every mutation runs in one unit of work that touches both stores:

- create: ``mgmt_guests`` row + ``Cleartext-Password`` + ``Expiration``
- update: ``valid_until`` + ``Expiration`` upsert, ``blocked`` + blocked-group
  membership
- delete: ``mgmt_guests`` row + every ``radcheck`` / ``radusergroup`` row of
  the guest's email

The guest email is the RADIUS username. No database constraint links the two
stores, so this module is the only writer of the RADIUS tables.

Credential delivery happens after commit. Its outcome is reported alongside
the result and never undoes the transaction.
"""

import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from guest_portal.core.authorization import RequesterClaims, can_manage, department_scope
from guest_portal.core.credentials import (
    DEFAULT_PASSWORD_LENGTH,
    ensure_utc,
    format_radius_expiration,
    generate_guest_password,
)
from guest_portal.core.email_service import CredentialMessage, NotificationResult
from guest_portal.core.errors import (
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    ProvisioningError,
    UnauthorizedError,
)
from guest_portal.db.database import Database
from guest_portal.db.models import Guest
from guest_portal.db.radius_store import RadiusAttribute
from guest_portal.db.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^\S+@\S+\.\S+$")
# radcheck.username is VARCHAR(64)
MAX_EMAIL_LENGTH = 64


class CredentialNotifier(Protocol):
    """Anything that can deliver a credential notice."""

    async def send_guest_credentials(self, message: CredentialMessage) -> NotificationResult:
        ...


@dataclass(frozen=True)
class ProvisioningResult:
    """Committed guest plus the auxiliary delivery outcome."""

    guest: Guest
    notification: NotificationResult


def parse_instant(value: datetime | str, field_name: str) -> datetime:
    """Parse an ISO 8601 instant into an aware UTC datetime.

    Raises:
        BadRequestError: If the value is not a valid instant
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str) and value.strip():
        try:
            return ensure_utc(datetime.fromisoformat(value.strip()))
        except ValueError:
            pass
    raise BadRequestError(f"Invalid date format for {field_name}.")


def _require_text(value: str | None, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise BadRequestError(f"Missing required field: {field_name}")
    return value.strip()


def _parse_department(value: int | str | None) -> int:
    if value is None or isinstance(value, bool):
        raise BadRequestError("Missing required field: department")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise BadRequestError("Department must be an integer.") from None


class ProvisioningEngine:
    """Create, update and delete guests consistently in both stores."""

    def __init__(
        self,
        database: Database,
        notifier: CredentialNotifier,
        blocked_group: str,
        password_length: int = DEFAULT_PASSWORD_LENGTH,
    ):
        """
        Initialize the engine.

        Args:
            database: Connected database handle
            notifier: Credential delivery channel
            blocked_group: radusergroup group name that denotes a blocked guest
            password_length: Length of generated guest passwords
        """
        if not blocked_group:
            raise ValueError("A blocked group name is required")
        self.database = database
        self.notifier = notifier
        self.blocked_group = blocked_group
        self.password_length = password_length

    @contextmanager
    def _transaction(self, action: str, conflict_detail: str | None = None) -> Iterator[UnitOfWork]:
        """Open a unit of work and translate store failures.

        A unique-constraint violation becomes :class:`ConflictError` when
        ``conflict_detail`` is given; any other database error becomes
        :class:`InternalError`. Either way the transaction is rolled back.
        """
        try:
            with self.database.unit_of_work() as uow:
                yield uow
        except ProvisioningError:
            raise
        except IntegrityError as e:
            if conflict_detail is None:
                logger.error(f"Integrity error while {action}: {e}")
                raise InternalError(f"Internal server error {action}") from e
            logger.warning(f"Integrity error while {action}: {e.orig}")
            raise ConflictError(conflict_detail) from e
        except SQLAlchemyError as e:
            logger.error(f"Database error while {action}: {e}", exc_info=True)
            raise InternalError(f"Internal server error {action}") from e

    def _load_managed_guest(
        self,
        uow: UnitOfWork,
        claims: RequesterClaims,
        guest_id: int,
        action: str,
    ) -> Guest:
        guest = uow.identities.get_guest(guest_id)
        if guest is None:
            raise NotFoundError("Guest not found.")
        if not can_manage(guest.department, claims):
            logger.warning(
                f"User {claims.user_id} attempted to {action} guest {guest_id} "
                f"from unauthorized department {guest.department}"
            )
            raise ForbiddenError("Forbidden: You cannot manage guests for this department.")
        return guest

    async def _notify(self, guest: Guest, password: str) -> NotificationResult:
        message = CredentialMessage(
            recipient=guest.email,
            name=guest.name,
            username=guest.email,
            password=password,
            valid_from=guest.valid_from,
            valid_until=guest.valid_until,
        )
        try:
            result = await self.notifier.send_guest_credentials(message)
        except Exception as e:
            logger.error(f"Error sending credentials to {guest.email}: {e}", exc_info=True)
            return NotificationResult(delivered=False, error=str(e) or e.__class__.__name__)
        if not result.delivered:
            logger.error(f"Credential delivery to {guest.email} failed: {result.error}")
        return result

    # Create

    async def create_guest(
        self,
        claims: RequesterClaims,
        *,
        name: str,
        surname: str,
        email: str,
        valid_from: datetime | str,
        valid_until: datetime | str,
        department: int | str,
    ) -> ProvisioningResult:
        """Provision a guest in both stores, then deliver credentials.

        Raises:
            BadRequestError: Missing or inconsistent fields
            ForbiddenError: Department outside the caller's scope
            ConflictError: Email already used by a guest or RADIUS username
            UnauthorizedError: The calling management user no longer exists
            InternalError: Store failure, nothing was written
        """
        name = _require_text(name, "name")
        surname = _require_text(surname, "surname")
        email = _require_text(email, "email")
        if not EMAIL_PATTERN.match(email):
            raise BadRequestError("Invalid email format")
        if len(email) > MAX_EMAIL_LENGTH:
            raise BadRequestError(f"Email must be at most {MAX_EMAIL_LENGTH} characters")
        start = parse_instant(valid_from, "valid_from")
        end = parse_instant(valid_until, "valid_until")
        if end <= start:
            raise BadRequestError("valid_until must be after valid_from")
        department_id = _parse_department(department)

        if not can_manage(department_id, claims):
            logger.warning(
                f"User {claims.user_id} attempted to create guest for unauthorized department {department_id}"
            )
            raise ForbiddenError("Forbidden: You cannot create guests for this department.")

        password = generate_guest_password(self.password_length)
        conflict = f"Guest with email {email} already exists."

        with self._transaction("creating guest", conflict_detail=conflict) as uow:
            if uow.identities.find_guest_by_email(email) or uow.radius.username_exists(email):
                raise ConflictError(conflict)

            creator = uow.identities.get_user(claims.user_id)
            if creator is None:
                raise UnauthorizedError("Requesting user no longer exists")

            guest = uow.identities.add_guest(Guest(
                name=name,
                surname=surname,
                email=email,
                valid_from=start,
                valid_until=end,
                department=department_id,
                blocked=False,
                creator=creator,
            ))
            uow.radius.add_attribute(email, RadiusAttribute.CLEARTEXT_PASSWORD, password)
            expiration = format_radius_expiration(end)
            if expiration is not None:
                uow.radius.add_attribute(email, RadiusAttribute.EXPIRATION, expiration)

        logger.info(f"✅ Guest created: {email} (ID: {guest.id}) by user {claims.user_id}")
        notification = await self._notify(guest, password)
        return ProvisioningResult(guest=guest, notification=notification)

    # Update

    def _apply_validity(self, uow: UnitOfWork, guest: Guest, new_until: datetime) -> bool:
        if new_until <= ensure_utc(guest.valid_from):
            raise BadRequestError("valid_until must be after valid_from.")
        if new_until == ensure_utc(guest.valid_until):
            logger.debug(f"Validity of guest {guest.email} unchanged, skipping write")
            return False

        guest.valid_until = new_until
        # A None expiration removes the attribute rather than writing an empty value
        uow.radius.set_attribute(
            guest.email,
            RadiusAttribute.EXPIRATION,
            format_radius_expiration(new_until),
        )
        logger.info(f"Updated validity for guest {guest.email} to {new_until.isoformat()}")
        return True

    def _reconcile_block_state(self, uow: UnitOfWork, guest: Guest) -> None:
        """Make blocked-group membership match ``guest.blocked``."""
        if guest.blocked:
            if uow.radius.ensure_membership(guest.email, self.blocked_group):
                logger.info(f"Blocked guest {guest.email} by adding to group {self.blocked_group}")
        elif uow.radius.remove_membership(guest.email, self.blocked_group):
            logger.info(f"Unblocked guest {guest.email} by removing from group {self.blocked_group}")

    def update_guest(
        self,
        claims: RequesterClaims,
        guest_id: int,
        *,
        valid_until: datetime | str | None = None,
        blocked: bool | None = None,
    ) -> Guest:
        """Extend validity and/or block or unblock a guest as one transaction.

        Both transitions are idempotent: repeating a block, an unblock or the
        current ``valid_until`` succeeds without writing.

        Raises:
            BadRequestError: Nothing to update, bad types, or valid_until not after valid_from
            NotFoundError: No such guest
            ForbiddenError: Guest's department outside the caller's scope
            InternalError: Store failure, nothing was written
        """
        if valid_until is None and blocked is None:
            raise BadRequestError("No update data provided (valid_until or blocked).")
        new_until = parse_instant(valid_until, "valid_until") if valid_until is not None else None
        if blocked is not None and not isinstance(blocked, bool):
            raise BadRequestError("Blocked status must be a boolean (true/false).")

        with self._transaction("updating guest") as uow:
            guest = self._load_managed_guest(uow, claims, guest_id, action="update")

            if new_until is not None:
                self._apply_validity(uow, guest, new_until)

            if blocked is not None and blocked != guest.blocked:
                guest.blocked = blocked

            # Runs even when the flag did not change, repairing a drifted membership row
            self._reconcile_block_state(uow, guest)

        return guest

    # Delete

    def delete_guest(self, claims: RequesterClaims, guest_id: int) -> None:
        """Delete a guest and every RADIUS row keyed by its email.

        Raises:
            NotFoundError: No such guest (including one already deleted)
            ForbiddenError: Guest's department outside the caller's scope
            InternalError: Store failure, nothing was deleted
        """
        with self._transaction("deleting guest") as uow:
            guest = self._load_managed_guest(uow, claims, guest_id, action="delete")
            email = guest.email

            uow.identities.delete_guest(guest)
            attributes = uow.radius.delete_all_attributes(email)
            memberships = uow.radius.delete_all_memberships(email)

        logger.info(
            f"Deleted guest {email} (ID: {guest_id}) by user {claims.user_id}: "
            f"{attributes} radcheck rows, {memberships} radusergroup rows"
        )

    # Read

    def get_guest(self, claims: RequesterClaims, guest_id: int) -> Guest:
        with self._transaction("fetching guest") as uow:
            return self._load_managed_guest(uow, claims, guest_id, action="view")

    def list_guests(self, claims: RequesterClaims) -> list[Guest]:
        """List guests visible to the caller.

        A non-admin without departments gets an empty list, not an error.
        """
        scope = department_scope(claims)
        if scope is not None and not scope:
            logger.info(f"User {claims.user_id} has no assigned departments. Returning empty guest list.")
            return []

        with self._transaction("fetching guests") as uow:
            return uow.identities.list_guests(scope)

    # Resend

    async def resend_credentials(self, claims: RequesterClaims, guest_id: int) -> NotificationResult:
        """Send the guest's current password again.

        The stored ``Cleartext-Password`` is reused; nothing is regenerated.

        Raises:
            NotFoundError: No such guest, or no password row for it
            ForbiddenError: Guest's department outside the caller's scope
        """
        with self._transaction("reading guest credentials") as uow:
            guest = self._load_managed_guest(uow, claims, guest_id, action="resend credentials for")
            row = uow.radius.get_attribute(guest.email, RadiusAttribute.CLEARTEXT_PASSWORD)
            if row is None:
                raise NotFoundError(f"No RADIUS password stored for guest {guest_id}.")
            password = row.value

        logger.info(f"Resending credentials for guest {guest.email} by user {claims.user_id}")
        return await self._notify(guest, password)
