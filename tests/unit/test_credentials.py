"""
Unit tests for guest password generation and RADIUS Expiration formatting.
"""

from datetime import datetime, timedelta, timezone

import pytest

from guest_portal.core.credentials import (
    DEFAULT_PASSWORD_LENGTH,
    GUEST_PASSWORD_ALPHABET,
    ensure_utc,
    format_display_time,
    format_radius_expiration,
    generate_guest_password,
)


@pytest.mark.unit
class TestGuestPassword:
    """Test guest password generation."""

    def test_default_length(self):
        """Test generated password has the default length."""
        assert len(generate_guest_password()) == DEFAULT_PASSWORD_LENGTH == 10

    def test_custom_length(self):
        """Test generated password honors a custom length."""
        assert len(generate_guest_password(16)) == 16

    def test_only_unambiguous_characters(self):
        """Test no visually confusable characters are ever produced."""
        for _ in range(200):
            password = generate_guest_password()
            assert set(password) <= set(GUEST_PASSWORD_ALPHABET)
            assert not set(password) & set("0O1lIoiL")

    def test_passwords_differ(self):
        """Test consecutive passwords are not repeated."""
        passwords = {generate_guest_password() for _ in range(50)}
        assert len(passwords) == 50

    def test_rejects_non_positive_length(self):
        """Test zero length is refused."""
        with pytest.raises(ValueError):
            generate_guest_password(0)


@pytest.mark.unit
class TestRadiusExpiration:
    """Test the FreeRADIUS Expiration text format."""

    def test_format_utc_datetime(self):
        """Test an aware UTC datetime renders in the fixed-width format."""
        value = datetime(2024, 12, 31, 23, 59, 59, tzinfo=timezone.utc)
        assert format_radius_expiration(value) == "Dec 31 2024 23:59:59 GMT+00:00"

    def test_day_is_zero_padded(self):
        """Test single-digit days are padded to two characters."""
        value = datetime(2024, 6, 1, 0, 0, 0, tzinfo=timezone.utc)
        assert format_radius_expiration(value) == "Jun 01 2024 00:00:00 GMT+00:00"

    def test_offset_datetime_converted_to_utc(self):
        """Test non-UTC instants are converted before rendering."""
        plus_two = timezone(timedelta(hours=2))
        value = datetime(2024, 1, 1, 1, 30, 0, tzinfo=plus_two)
        assert format_radius_expiration(value) == "Dec 31 2023 23:30:00 GMT+00:00"

    def test_naive_datetime_treated_as_utc(self):
        """Test naive datetimes are taken to be UTC."""
        value = datetime(2024, 3, 14, 10, 0, 0)
        assert format_radius_expiration(value) == "Mar 14 2024 10:00:00 GMT+00:00"

    def test_none_has_no_expiration(self):
        """Test a missing instant yields no attribute value."""
        assert format_radius_expiration(None) is None

    @pytest.mark.parametrize(
        "month,abbrev",
        [(1, "Jan"), (2, "Feb"), (5, "May"), (9, "Sep"), (12, "Dec")],
    )
    def test_english_month_abbreviations(self, month, abbrev):
        """Test month names do not depend on the process locale."""
        value = datetime(2025, month, 15, 12, 0, 0, tzinfo=timezone.utc)
        assert format_radius_expiration(value).startswith(f"{abbrev} 15 2025")


@pytest.mark.unit
class TestTimeHelpers:
    """Test UTC normalization and display formatting."""

    def test_ensure_utc_attaches_timezone(self):
        value = ensure_utc(datetime(2024, 1, 1, 12, 0))
        assert value.tzinfo == timezone.utc
        assert value.hour == 12

    def test_ensure_utc_converts_offset(self):
        value = ensure_utc(datetime(2024, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=-5))))
        assert value.hour == 17

    def test_display_time(self):
        value = datetime(2024, 6, 7, 18, 5, tzinfo=timezone.utc)
        assert format_display_time(value) == "2024-06-07 18:05"
