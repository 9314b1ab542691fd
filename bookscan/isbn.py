"""ISBN normalization and length validation."""
import re

from bookscan.errors import InvalidIdentifierError

_NON_ISBN_CHARS = re.compile(r"[^0-9X]")

VALID_LENGTHS = (10, 13)


def normalize(raw: str) -> str:
    """
    Strip everything except digits and uppercase 'X'.

    Never fails; the result may still have the wrong length.
    """
    return _NON_ISBN_CHARS.sub("", raw or "")


def is_valid(identifier: str) -> bool:
    """True when the normalized identifier has 10 or 13 characters.

    Check digits are not verified.
    """
    return len(normalize(identifier)) in VALID_LENGTHS


def require_valid(raw: str) -> str:
    """
    Normalize ``raw`` and reject it before any network activity.

    Args:
        raw: Scanned or typed identifier

    Returns:
        The normalized ISBN

    Raises:
        InvalidIdentifierError: if the normalized value is not 10 or 13 long
    """
    identifier = normalize(raw)
    if not is_valid(identifier):
        raise InvalidIdentifierError(identifier)
    return identifier
