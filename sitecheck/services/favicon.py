"""
Favicon locator: first declared icon link on the homepage, else a
conventional favicon file in the site root.
"""
import os
from typing import Optional, Tuple

from .html_loader import first_existing, load_document

ICON_LINK_SELECTORS = [
    'link[rel="icon"]',
    'link[rel="shortcut icon"]',
    'link[rel="apple-touch-icon"]',
    'link[rel="apple-touch-icon-precomposed"]',
    'link[rel*="icon"]',
]

FAVICON_FILES = ["favicon.ico", "favicon.png", "favicon.jpg", "favicon.jpeg", "favicon.svg"]

EXTERNAL_PREFIXES = ("http://", "https://", "//", "data:")


def _declared_href(main_page_path: str) -> Optional[str]:
    doc = load_document(main_page_path)
    if doc is None:
        return None
    for selector in ICON_LINK_SELECTORS:
        found = doc.select(selector) or []
        for link in found:
            href = (link.get("href") or "").strip()
            if href:
                return href
    return None


def locate_favicon(site_path: str, main_page_path: Optional[str]) -> Tuple[bool, Optional[str], Optional[str]]:
    """
    Returns (found, absolute_path, path_relative_to_main_page).

    A declared icon counts even when it points off-site or at a file that is
    missing; the declaration is what gets graded.
    """
    if main_page_path:
        href = _declared_href(main_page_path)
        if href:
            if href.lower().startswith(EXTERNAL_PREFIXES):
                return True, None, href
            local = href.split("?")[0].split("#")[0]
            if local.startswith("/"):
                resolved = os.path.normpath(os.path.join(site_path, local.lstrip("/")))
            else:
                resolved = os.path.normpath(os.path.join(os.path.dirname(main_page_path), local))
            if os.path.isfile(resolved):
                relative = os.path.relpath(resolved, os.path.dirname(main_page_path))
                return True, resolved, relative.replace(os.sep, "/")
            return True, None, local

    path = first_existing(site_path, FAVICON_FILES)
    if path:
        return True, path, os.path.basename(path)
    return False, None, None
