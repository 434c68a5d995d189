"""
Navigation-menu parser: bare .html file names linked from the homepage's
menus and footer.
"""
from typing import List, Optional

from .html_loader import load_document

NAV_SELECTORS = [
    'nav a[href$=".html"]',
    'header nav a[href$=".html"]',
    '.nav-menu a[href$=".html"]',
    '.nav-links a[href$=".html"]',
    '.navbar a[href$=".html"]',
    '.menu a[href$=".html"]',
    'ul.nav a[href$=".html"]',
    '.mobile-menu a[href$=".html"]',
    '.mobile-menu-links a[href$=".html"]',
    'footer a[href$=".html"]',
]


def bare_file_name(href: str) -> str:
    return href.split("?")[0].split("#")[0].rstrip("/").split("/")[-1]


def parse_navigation_pages(main_page_path: Optional[str]) -> List[str]:
    doc = load_document(main_page_path)
    if doc is None:
        return []

    pages: List[str] = []
    for selector in NAV_SELECTORS:
        for link in doc.select(selector) or []:
            name = bare_file_name(link.get("href") or "")
            if name and name not in pages:
                pages.append(name)
    return pages
