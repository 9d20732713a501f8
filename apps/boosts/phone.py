import re

from .errors import InvalidPhone

SAFARICOM_PATTERN = re.compile(r"^254[71]\d{8}$")


def normalize_phone(raw: str | None) -> str:
    """
    Reduce a user-entered phone number to the 2547XXXXXXXX / 2541XXXXXXXX form.

    Accepts 254XXXXXXXXX, 07XXXXXXXX / 01XXXXXXXX and 7XXXXXXXX / 1XXXXXXXX,
    with any punctuation, and repairs numbers sent as 25407XXXXXXXX.
    """
    digits = re.sub(r"\D", "", raw or "")

    # Numbers wrongly sent as 25407XXXXXXXX
    if digits.startswith("2540") and len(digits) == 13:
        digits = "254" + digits[4:]

    if digits.startswith("254") and len(digits) == 12:
        phone = digits
    elif digits.startswith(("07", "01")) and len(digits) == 10:
        phone = "254" + digits[1:]
    elif digits.startswith(("7", "1")) and len(digits) == 9:
        phone = "254" + digits
    else:
        raise InvalidPhone("Invalid phone number")

    if not SAFARICOM_PATTERN.match(phone):
        raise InvalidPhone("Invalid Safaricom number")
    return phone
