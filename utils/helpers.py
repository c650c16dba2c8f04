"""
Helper utilities for the seat monitor
"""
import re
from typing import Iterable, Optional

_WHITESPACE = re.compile(r"\s+")
_NON_DIGITS = re.compile(r"\D")
_PURE_DIGITS = re.compile(r"^\d+$")


def normalize_text(text: Optional[str]) -> str:
    """
    Trim and lower-case a label for comparison.

    Args:
        text: Raw label text (None is treated as empty)

    Returns:
        Normalized text
    """
    return (text or "").strip().lower()


def collapse_whitespace(text: Optional[str]) -> str:
    """Normalize a label and squeeze internal whitespace runs to one space."""
    return _WHITESPACE.sub(" ", normalize_text(text))


def digits_only(text: Optional[str]) -> str:
    return _NON_DIGITS.sub("", text or "")


def is_pure_digits(text: Optional[str]) -> bool:
    return bool(_PURE_DIGITS.match((text or "").strip()))


def seat_count(quantity: Optional[str]) -> Optional[int]:
    """
    Convert a raw quantity cell into a number of seats.

    Non-digit characters are stripped first, so "03" -> 3 and "12 seats" -> 12.
    Returns None when nothing numeric is left (e.g. "N/A") or quantity is None.
    """
    digits = digits_only(quantity)
    if not digits:
        return None
    return int(digits)


def format_option_set(options: Iterable, limit: int = 40) -> str:
    """
    Format a dropdown option set for diagnostic logs.

    Args:
        options: OptionDescriptor-like objects with value/label
        limit: Maximum number of options to list

    Returns:
        One-line summary such as "[3] 'Eastern'=1, 'Southern'=2, ..."
    """
    options = list(options)
    if not options:
        return "[0] (no options)"

    shown = [f"'{o.label}'={o.value}" for o in options[:limit]]
    if len(options) > limit:
        shown.append(f"... ({len(options) - limit} more)")

    return f"[{len(options)}] " + ", ".join(shown)
