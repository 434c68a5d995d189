"""
Site scanner — runs every detector over one site folder.

Each detector runs inside _stage(): an unexpected exception is logged and
only that detector's fields fall back to their "not found" values; the
remaining detectors still run.
"""
import logging
import os
from typing import Callable, Dict, Optional, TypeVar

from ..models import ContactAnalysis, DataElementSummary, SiteResult
from .contact import check_contact_page, has_contact_page
from .data_elements import count_data_elements
from .documents import count_documents, footer_has_documents
from .favicon import locate_favicon
from .images import count_images
from .main_page import locate_main_page
from .navigation import parse_navigation_pages
from .thank_you import locate_thank_you

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Pages whose names contain any of these are not content pages
NON_CONTENT_KEYWORDS = [
    "index", "light", "home",
    "contact", "iletisim", "contatti",
    "tesekkurler", "thank", "thanks", "grazie", "merci", "spasibo",
    "privacy", "cookie", "terms", "gizlilik", "cerez", "kullanim",
    "disclaimer", "feragat", "legal", "yasal", "policy", "politik",
]


def _stage(site: str, name: str, fn: Callable[[], T], default: T) -> T:
    try:
        return fn()
    except Exception:
        logger.exception("Detector %r failed for %s", name, site)
        return default


def is_content_page(file_name: str) -> bool:
    lowered = file_name.lower()
    return not any(keyword in lowered for keyword in NON_CONTENT_KEYWORDS)


def collect_data_elements(site_path: str, main_page_path: Optional[str]) -> Dict[str, DataElementSummary]:
    pages: Dict[str, DataElementSummary] = {}
    for page in parse_navigation_pages(main_page_path):
        if not is_content_page(page):
            continue
        page_path = os.path.join(site_path, page)
        if not os.path.isfile(page_path):
            continue
        summary = count_data_elements(page_path)
        if summary.total > 0:
            pages[page] = summary
    return pages


def scan_site(site_path: str, site: Optional[str] = None) -> SiteResult:
    site = site or os.path.basename(os.path.normpath(site_path))
    if not os.path.isdir(site_path):
        return SiteResult(site=site, site_path=site_path)

    main_page_path = _stage(site, "main_page", lambda: locate_main_page(site_path), None)

    basic_contact = _stage(site, "contact_page", lambda: has_contact_page(site_path, main_page_path), False)
    contact = _stage(site, "contact_content", lambda: check_contact_page(site_path), ContactAnalysis.not_found())
    if not contact.found:
        contact = ContactAnalysis.not_found()

    documents = _stage(site, "documents", lambda: count_documents(site_path), 0)
    footer_documents = _stage(site, "footer_documents", lambda: footer_has_documents(main_page_path), False)
    images, main_page_images = _stage(site, "images", lambda: count_images(site_path, main_page_path), (0, 0))
    has_favicon, favicon_path, favicon_relative = _stage(
        site, "favicon", lambda: locate_favicon(site_path, main_page_path), (False, None, None)
    )
    has_thank_you, thank_you_kind = _stage(site, "thank_you", lambda: locate_thank_you(site_path), (False, None))
    pages = _stage(site, "data_elements", lambda: collect_data_elements(site_path, main_page_path), {})

    return SiteResult(
        site=site,
        site_path=site_path,
        exists=True,
        main_page_path=main_page_path,
        favicon_path=favicon_path,
        favicon_relative_path=favicon_relative,
        has_main_page=main_page_path is not None,
        has_contact_page=basic_contact or contact.found,
        has_favicon=has_favicon,
        has_contact_map=contact.map,
        has_contact_address=contact.address,
        has_contact_phone=contact.phone,
        has_contact_email=contact.email,
        has_contact_form=contact.form,
        has_thank_you_page=has_thank_you,
        thank_you_kind=thank_you_kind,
        documents=documents,
        images=images,
        main_page_images=main_page_images,
        footer_documents=footer_documents,
        pages_data_elements=pages,
    )
