"""Tests for phone number helpers."""

import pytest

from labnotify.utils.phone import is_valid_start_phone, normalize_phone


class TestNormalizePhone:
    """Tests for normalize_phone."""

    def test_local_number_gets_country_code(self):
        """Test that the trunk 0 is replaced by the country code."""
        assert normalize_phone("0911234567") == "+251911234567"

    def test_international_number_unchanged(self):
        """Test that an already normalized number is kept."""
        assert normalize_phone("+251911234567") == "+251911234567"

    def test_empty_input(self):
        """Test that empty input gives empty output without a plus sign."""
        assert normalize_phone("") == ""
        assert normalize_phone(None) == ""

    def test_input_without_digits(self):
        """Test that input with no digits is treated as empty."""
        assert normalize_phone("---") == ""

    def test_formatting_is_stripped(self):
        """Test that spaces, dashes and parentheses are removed."""
        assert normalize_phone("+251 (91) 123-4567") == "+251911234567"

    def test_bare_subscriber_number_gets_country_code(self):
        """Test that numbers without trunk or country code get the country code prepended."""
        assert normalize_phone("911234567") == "+251911234567"

    def test_other_country_code(self):
        """Test normalization with a different calling code."""
        assert normalize_phone("0712345678", country_code="254") == "+254712345678"

    @pytest.mark.parametrize(
        "raw",
        ["0911234567", "+251911234567", "911234567", "251-911-234-567", "+1 555 123 4567", "00251911234567"],
    )
    def test_idempotent(self, raw):
        """Test that normalizing twice gives the same result as once."""
        once = normalize_phone(raw)
        assert normalize_phone(once) == once


class TestStartPhoneValidation:
    """Tests for the /start argument format check."""

    def test_valid_international_number(self):
        """Test that a plus-prefixed number of sufficient length is accepted."""
        assert is_valid_start_phone("+251911234567")

    def test_missing_plus_rejected(self):
        """Test that local format is rejected."""
        assert not is_valid_start_phone("0911234567")

    def test_too_short_rejected(self):
        """Test that numbers under ten characters are rejected."""
        assert not is_valid_start_phone("+25191123")

    def test_minimum_length_accepted(self):
        """Test the ten character boundary."""
        assert is_valid_start_phone("+251911234")
