"""Utility modules for page addresses and Persian text."""

from .text import find_rating_in_text, normalize_text, parse_rating, persian_to_western
from .urls import counterpart_vendor_url, detect_page_type, extract_vendor_code_from_url, platform_of

__all__ = [
    "counterpart_vendor_url",
    "detect_page_type",
    "extract_vendor_code_from_url",
    "find_rating_in_text",
    "normalize_text",
    "parse_rating",
    "persian_to_western",
    "platform_of",
]
