"""Persian text helpers shared by rating extraction and search."""

import re
from functools import lru_cache

_PERSIAN_DIGITS = str.maketrans("۰۱۲۳۴۵۶۷۸۹٠١٢٣٤٥٦٧٨٩", "01234567890123456789")

# Arabic code points rendered like their Persian counterparts
_LETTER_VARIANTS = str.maketrans(
    {
        "ي": "ی",  # ARABIC LETTER YEH
        "ى": "ی",  # ARABIC LETTER ALEF MAKSURA
        "ك": "ک",  # ARABIC LETTER KAF
        "ة": "ه",  # ARABIC LETTER TEH MARBUTA
    }
)

_RATING_PATTERNS = (
    re.compile(r"(\d+\.?\d*)\s*امتیاز"),
    re.compile(r"(\d+\.?\d*)\s*\("),
    re.compile(r"(\d+\.?\d*)\s*⭐"),
    re.compile(r"(\d+\.?\d*)\s*★"),
)
_DECIMAL = re.compile(r"\d+\.\d+")


@lru_cache(maxsize=2048)
def persian_to_western(text: str) -> str:
    """Replace Persian and Arabic-Indic digits with ASCII digits."""
    return text.translate(_PERSIAN_DIGITS)


def normalize_text(text: str) -> str:
    """Canonical form used on both sides of every search comparison.

    Case-folds, maps Arabic letter variants to their Persian form, converts
    digits to ASCII and trims surrounding whitespace.
    """
    return persian_to_western(text.translate(_LETTER_VARIANTS)).casefold().strip()


def parse_rating(text: str | None) -> float | None:
    """Parse a rating written with Persian or ASCII digits.

    Returns:
        The rating if it parses and lies in [0, 10], else None
    """
    if not text:
        return None
    try:
        rating = float(persian_to_western(text.strip()))
    except ValueError:
        return None
    if 0 <= rating <= 10:
        return rating
    return None


def find_rating_in_text(text: str) -> float | None:
    """Look for a rating inside free text.

    Tries labelled patterns first (a number followed by "امتیاز", an opening
    parenthesis or a star), then any decimal between 3.0 and 5.0.
    """
    western = persian_to_western(text)

    for pattern in _RATING_PATTERNS:
        match = pattern.search(western)
        if match:
            rating = parse_rating(match.group(1))
            if rating is not None:
                return rating

    for match in _DECIMAL.findall(western):
        rating = float(match)
        if 3.0 <= rating <= 5.0:
            return rating

    return None
