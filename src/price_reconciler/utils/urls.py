"""Page type detection and vendor code extraction from page addresses."""

import re

from price_reconciler.entities import VendorMapping

SNAPPFOOD_MENU = "snappfood-menu"
TAPSIFOOD_MENU = "tapsifood-menu"
SNAPPFOOD_SERVICE = "snappfood-service"
SNAPPFOOD_HOMEPAGE = "snappfood-homepage"
UNKNOWN = "unknown"

MENU_PAGES = (SNAPPFOOD_MENU, TAPSIFOOD_MENU)
LISTING_PAGES = (SNAPPFOOD_SERVICE, SNAPPFOOD_HOMEPAGE)

PAGE_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    SNAPPFOOD_MENU: (
        re.compile(r"snappfood\.ir/restaurant/menu/-r-[a-zA-Z0-9]+"),
        re.compile(r"snappfood\.ir/restaurant/menu/[a-zA-Z0-9]+/?$"),
    ),
    TAPSIFOOD_MENU: (re.compile(r"tapsi\.food/vendor/"),),
    SNAPPFOOD_SERVICE: (re.compile(r"snappfood\.ir/service/.+/city/"),),
    SNAPPFOOD_HOMEPAGE: (re.compile(r"^https?://(www\.)?snappfood\.ir/?(\?.*)?$"),),
}

VENDOR_CODE_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "snappfood": (
        re.compile(r"-r-([a-zA-Z0-9]+)/?"),
        re.compile(r"/restaurant/menu/([a-zA-Z0-9]+)/?$"),
    ),
    "tapsifood": (re.compile(r"tapsi\.food/vendor/([a-zA-Z0-9]+)"),),
}


def detect_page_type(url: str) -> str:
    """Classify a page address.

    Returns:
        One of the page type constants, ``"unknown"`` if nothing matches
    """
    for page_type, patterns in PAGE_PATTERNS.items():
        if any(pattern.search(url) for pattern in patterns):
            return page_type
    return UNKNOWN


def platform_of(page_type: str) -> str | None:
    """Return the platform a page type belongs to."""
    if page_type.startswith("snappfood"):
        return "snappfood"
    if page_type.startswith("tapsifood"):
        return "tapsifood"
    return None


def extract_vendor_code_from_url(url: str, platform: str) -> str | None:
    """Extract a vendor code from a menu address or link.

    Args:
        url: Page address or link target
        platform: ``"snappfood"`` or ``"tapsifood"``

    Returns:
        The vendor code, or None if the address carries none
    """
    for pattern in VENDOR_CODE_PATTERNS.get(platform, ()):
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def counterpart_vendor_url(page_type: str, vendor_info: VendorMapping) -> str | None:
    """Address of the same vendor on the other platform."""
    platform = platform_of(page_type)
    if platform == "snappfood" and vendor_info.tf_code:
        return f"https://tapsi.food/vendor/{vendor_info.tf_code}"
    if platform == "tapsifood" and vendor_info.sf_code:
        return f"https://snappfood.ir/restaurant/menu/{vendor_info.sf_code}"
    return None
