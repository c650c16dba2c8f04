"""
Utils package - Helper utilities for the seat monitor
"""
from .helpers import (
    normalize_text,
    collapse_whitespace,
    digits_only,
    is_pure_digits,
    seat_count,
    format_option_set
)

__all__ = [
    'normalize_text',
    'collapse_whitespace',
    'digits_only',
    'is_pure_digits',
    'seat_count',
    'format_option_set'
]
