"""Numeric OTP generation."""

import secrets
import string

from whatsapp_otp.exceptions import InvalidLengthError

DEFAULT_LENGTH = 6


def generate_code(length: int = DEFAULT_LENGTH) -> str:
    """Return *length* random decimal digits (leading zeros allowed).

    Digits come from :mod:`secrets`, so codes are not predictable from
    the process clock or earlier output.
    """
    if isinstance(length, bool) or not isinstance(length, int) or length <= 0:
        raise InvalidLengthError(f"OTP length must be a positive integer, got {length!r}")
    return "".join(secrets.choice(string.digits) for _ in range(length))
