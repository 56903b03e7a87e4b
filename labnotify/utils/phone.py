"""Phone number helpers."""

DEFAULT_COUNTRY_CODE = "251"
MIN_START_PHONE_LENGTH = 10


def normalize_phone(phone: str | None, country_code: str = DEFAULT_COUNTRY_CODE) -> str:
    """Normalize a phone number to international ``+<country><number>`` form.

    Only the configured country is handled: a leading trunk ``0`` is replaced
    by the country code, and numbers that don't already carry the country
    code get it prepended. Numbers from other regions come out wrong.

    Args:
        phone: Raw phone number in any formatting
        country_code: Calling code without the plus sign

    Returns:
        Normalized number, or an empty string when there are no digits
    """
    if not phone:
        return ""

    # Remove all non-digits
    cleaned = "".join(filter(str.isdigit, phone))
    if not cleaned:
        return ""

    if cleaned.startswith("0"):
        cleaned = country_code + cleaned[1:]

    if not cleaned.startswith(country_code):
        cleaned = country_code + cleaned

    return f"+{cleaned}"


def is_valid_start_phone(phone: str) -> bool:
    """Check the ``/start`` argument is in international format."""
    return phone.startswith("+") and len(phone) >= MIN_START_PHONE_LENGTH
