"""Department-scoped authorization for management users."""

import logging
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_USER = "user"
ROLES = (ROLE_ADMIN, ROLE_USER)


@dataclass(frozen=True)
class RequesterClaims:
    """Identity of the caller as carried in the bearer token."""

    user_id: int
    username: str
    role: str
    departments: tuple[int, ...] = field(default_factory=tuple)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_token_payload(cls, payload: dict) -> "RequesterClaims":
        """Build claims from a decoded token payload.

        Raises:
            ValueError: If a required claim is missing or malformed
        """
        try:
            user_id = int(payload["id"])
            username = str(payload["username"])
            role = str(payload["role"])
            departments = tuple(int(d) for d in payload.get("departments") or [])
        except (KeyError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid token claims: {e}") from e
        if role not in ROLES:
            raise ValueError(f"Invalid role claim: {role}")
        return cls(user_id=user_id, username=username, role=role, departments=departments)

    def to_token_payload(self) -> dict:
        return {
            "sub": self.username,
            "id": self.user_id,
            "username": self.username,
            "role": self.role,
            "departments": list(self.departments),
        }


def can_manage(target_department: int | str, claims: RequesterClaims | None) -> bool:
    """Check if the caller may manage guests of a department.

    Admins manage every department; other users only the ones listed in
    their claims.
    """
    if claims is None:
        return False
    if claims.is_admin:
        return True
    try:
        department = int(target_department)
    except (TypeError, ValueError):
        return False
    return department in claims.departments


def department_scope(claims: RequesterClaims) -> list[int] | None:
    """Departments a listing must be restricted to.

    Returns:
        None for admins (no restriction), otherwise the caller's departments,
        which may be empty
    """
    if claims.is_admin:
        return None
    return list(claims.departments)
