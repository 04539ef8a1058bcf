"""Postal-code and text normalization rules.

Every display path (resolver, cache keys, label layout, CLI output) routes
through these helpers; they are deterministic and never touch I/O.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any, Optional

from cep_label.errors import InvalidCodeError

CODE_LENGTH = 8
PREFIX_LENGTH = 5

NON_DIGIT_RE = re.compile(r"\D")
# first non-space character of every whitespace-delimited token
_WORD_START_RE = re.compile(r"(^|\s)(\S)")
_NON_ALNUM_RE = re.compile(r"[^a-zA-Z0-9\s]")


def digits_only(value: Optional[str]) -> str:
    """Return ``value`` with every non-digit character removed."""
    if not value:
        return ""
    return NON_DIGIT_RE.sub("", str(value))


def is_valid_code(value: Optional[str]) -> bool:
    """Return ``True`` when ``value`` holds exactly 8 digits."""
    return len(digits_only(value)) == CODE_LENGTH


def normalize_code(value: Optional[str]) -> str:
    """Return the canonical 8-digit form of a postal code.

    Non-digit characters (separators, spaces) are stripped first.

    Raises
    ------
    InvalidCodeError
        If anything other than exactly 8 digits remains.
    """
    digits = digits_only(value)
    if len(digits) != CODE_LENGTH:
        raise InvalidCodeError(value)
    return digits


def format_code(code: Optional[str]) -> str:
    """Render a postal code as ``DDDDD-DDD``.

    Values that do not carry exactly 8 digits are returned unchanged.
    """
    if not code:
        return ""
    digits = digits_only(code)
    if len(digits) != CODE_LENGTH:
        return code
    return f"{digits[:PREFIX_LENGTH]}-{digits[PREFIX_LENGTH:]}"


def mask_code(partial: Optional[str]) -> str:
    """Progressively mask a partially typed postal code.

    ``"0131"`` stays ``"0131"``; ``"013100"`` becomes ``"01310-0"``. Digits
    past the eighth are dropped.
    """
    digits = digits_only(partial)
    if len(digits) <= PREFIX_LENGTH:
        return digits
    return f"{digits[:PREFIX_LENGTH]}-{digits[PREFIX_LENGTH:CODE_LENGTH]}"


def code_to_int(code: str) -> int:
    return int(normalize_code(code))


def int_to_code(value: int) -> str:
    """Zero-pad an integer back to the 8-digit canonical form."""
    return str(value).zfill(CODE_LENGTH)


def clean_text(value: Any) -> str:
    """``None`` becomes ``""``; anything else is stringified and trimmed."""
    if value is None:
        return ""
    return str(value).strip()


def title_case(text: Optional[str]) -> str:
    """Lower-case ``text`` then upper-case the first letter of every word."""
    if not text:
        return ""
    return _WORD_START_RE.sub(
        lambda m: m.group(1) + m.group(2).upper(), str(text).lower())


def strip_accents(text: Optional[str]) -> str:
    """Drop diacritics and anything that is not an ASCII letter, digit or space."""
    if not text:
        return ""
    nfd = unicodedata.normalize("NFD", str(text))
    folded = "".join(ch for ch in nfd if not unicodedata.combining(ch))
    return _NON_ALNUM_RE.sub("", folded)


def normalize_region(region: Any) -> str:
    """Return a trimmed, upper-cased UF code."""
    return clean_text(region).upper()
