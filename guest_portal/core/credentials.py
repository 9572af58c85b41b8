"""Guest password generation and RADIUS timestamp rendering.

The ``Expiration`` check attribute is parsed by FreeRADIUS, so its text form
is part of the wire contract: ``"Mon DD YYYY HH:MM:SS GMT+00:00"``, always in
UTC, with English month abbreviations regardless of the process locale.
"""

import secrets
from datetime import datetime, timezone

# Removed: 0, 1, i, l, o, I, L, O to avoid confusion
GUEST_PASSWORD_ALPHABET = "abcdefghjkmnpqrstuvwxyzABCDEFGHJKMNPQRSTUVWXYZ23456789"
DEFAULT_PASSWORD_LENGTH = 10

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def generate_guest_password(length: int = DEFAULT_PASSWORD_LENGTH) -> str:
    """Generate a random guest Wi-Fi password.

    Args:
        length: Number of characters (default 10)

    Returns:
        Password drawn uniformly from an ambiguity-free alphabet
    """
    if length < 1:
        raise ValueError("Password length must be positive")
    return "".join(secrets.choice(GUEST_PASSWORD_ALPHABET) for _ in range(length))


def ensure_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime.

    Naive values are taken to be UTC already; SQLite hands back naive
    datetimes for ``DateTime(timezone=True)`` columns.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_radius_expiration(value: datetime | None) -> str | None:
    """Render a datetime for the FreeRADIUS ``Expiration`` attribute.

    Args:
        value: Expiry instant, or None

    Returns:
        Formatted string, or None when there is no expiry

    Example:
        >>> format_radius_expiration(datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc))
        'Dec 31 2024 23:59:59 GMT+00:00'
    """
    if value is None:
        return None
    utc = ensure_utc(value)
    return (
        f"{_MONTHS[utc.month - 1]} {utc.day:02d} {utc.year:04d} "
        f"{utc.hour:02d}:{utc.minute:02d}:{utc.second:02d} GMT+00:00"
    )


def format_display_time(value: datetime) -> str:
    """Render a datetime for humans as ``YYYY-MM-DD HH:MM``, in UTC."""
    return f"{ensure_utc(value):%Y-%m-%d %H:%M}"
