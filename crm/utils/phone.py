# crm/utils/phone.py
import phonenumbers

from ..errors import InvalidPhoneNumber


def _parse(phone_number_str):
    # Numbers are stored internationally, so a missing '+' means the
    # country code is already the leading digits.
    candidate = phone_number_str.strip()
    if '+' not in candidate:
        candidate = f"+{candidate}"
    return phonenumbers.parse(candidate, None)


def normalize_phone(phone_number_str):
    """
    Formats a phone number into its canonical international form
    (e.g. '+49 1234 567890'), which doubles as the duplicate-detection key.

    Returns None for empty input and raises InvalidPhoneNumber when the
    string cannot be parsed as a phone number.
    """
    if not phone_number_str or not phone_number_str.strip():
        return None
    try:
        parsed_number = _parse(phone_number_str)
    except phonenumbers.NumberParseException as e:
        raise InvalidPhoneNumber(f"Could not parse the phone number '{phone_number_str}'.") from e
    return phonenumbers.format_number(parsed_number, phonenumbers.PhoneNumberFormat.INTERNATIONAL)


def phone_region(phone_number_str):
    """Returns the ISO region code ('DE', 'US', ...) for a phone number, or None."""
    if not phone_number_str:
        return None
    try:
        parsed_number = _parse(phone_number_str)
    except phonenumbers.NumberParseException:
        return None
    return phonenumbers.region_code_for_number(parsed_number)


def require_phone(phone_number_str):
    canonical = normalize_phone(phone_number_str)
    if not canonical:
        raise InvalidPhoneNumber('Invalid phone number')
    return canonical
