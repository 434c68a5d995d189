"""
Legal-document checks: how many privacy/terms style files sit in the site
root, and whether the homepage footer links to any of them.
"""
import re
from typing import Optional

from .html_loader import list_files, load_document

DOCUMENT_FILE_PATTERN = re.compile(r"privacy|gizlilik|cerez|cookie|terms|kullanim|feragat", re.IGNORECASE)

FOOTER_DOCUMENT_KEYWORDS = [
    "privacy", "gizlilik", "cerez", "cookie",
    "terms", "kullanim", "feragat", "disclaimer",
    "legal", "yasal", "policy", "politik",
]


def count_documents(site_path: str) -> int:
    return sum(1 for name in list_files(site_path) if DOCUMENT_FILE_PATTERN.search(name))


def footer_has_documents(main_page_path: Optional[str]) -> bool:
    doc = load_document(main_page_path)
    if doc is None:
        return False
    for link in doc.select("footer a") or []:
        href = (link.get("href") or "").lower()
        text = link.get_text().lower()
        if any(k in href or k in text for k in FOOTER_DOCUMENT_KEYWORDS):
            return True
    return False
