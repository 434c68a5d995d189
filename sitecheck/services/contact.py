"""
Contact-page locator and content analyzer.

Search order: an explicit page, conventional file names in several
languages, a scored scan of every page in the site root, and finally a
contact section embedded in the homepage.
"""
import logging
import os
import re
from typing import List, Optional

from ..models import ContactAnalysis
from .html_loader import PageDocument, first_existing, html_files, load_document
from .scoring import Signal, score

logger = logging.getLogger(__name__)

CONTACT_PAGE_NAMES = [
    "iletisim.html", "contact.html", "contacts.html", "contatti.html",
    "اتصل.html", "تواصل.html", "contact-ar.html",
]

# Names checked by the quick "does a contact page exist" pass
BASIC_CONTACT_PAGE_NAMES = ["iletisim.html", "contact.html", "contacts.html", "contatti.html"]

HOMEPAGE_NAMES = ["index.html", "index.htm", "home.html", "light.html"]

EXCLUDED_PAGE_KEYWORDS = [
    "privacy", "cookie", "terms", "gizlilik", "cerez", "kullanim",
    "disclaimer", "legal", "yasal", "policy", "politik",
    "thank", "thanks", "grazie", "merci", "spasibo", "tesekkur",
]

CONTACT_SCORE_THRESHOLD = 2

HOMEPAGE_CONTACT_SECTION = (
    '#contatti, [id*="contact"], [id*="contatti"], section#contatti, .contatti, .contact-section'
)
HOMEPAGE_CONTACT_LINK = 'a[href*="#contatti"], a[href*="#contact"], a[href*="contact"], a[href*="contatti"]'

MAP_URL_TOKENS = ["google.com/maps", "maps.google", "yandex.ru/maps", "openstreetmap"]

# ── Sub-check vocabularies ─────────────────────────────────────────────────────

MAP_SELECTORS = [
    'iframe[src*="google"]', 'iframe[src*="maps"]', 'iframe[src*="yandex"]',
    'iframe[src*="openstreetmap"]', 'iframe[src*="map"]',
    "#map", ".map", '[class*="map"]', '[id*="map"]',
    '[class*="google-map"]', '[id*="google-map"]',
    '[class*="yandex-map"]', '[class*="map-container"]',
    '[class*="contact-map"]', "[data-map]", "[data-google-map]",
]

ADDRESS_SELECTORS = [
    '[class*="address"]', '[id*="address"]', '[class*="adres"]',
    '[class*="indirizzo"]', '[id*="indirizzo"]',
    '[class*="contact"] [class*="address"]',
    '[class*="contact-info"]', '[class*="iletisim"]',
    '[class*="contatti"]', '[id*="contatti"]',
    "address", '[itemprop="address"]', '[itemprop="streetAddress"]',
    'h3:-soup-contains("Adres")', 'h3:-soup-contains("Address")', 'h3:-soup-contains("Адрес")',
    'h4:-soup-contains("Indirizzo")', 'h4:-soup-contains("Adres")',
]
ADDRESS_KEYWORDS = [
    "адрес", "address", "adres", "adresse", "адреса", "adresi",
    "indirizzo", "indirizzi", "via", "viale", "corso", "piazza",
    "улица", "street", "sokak", "cadde", "rue", "strasse",
    "ул.", "пр.", "проспект", "avenue", "bulvar", "boulevard",
    "istanbul", "ankara", "izmir", "roma", "milano", "napoli",
    "türkiye", "turkey", "italia", "italy",
]
ADDRESS_PATTERNS = [
    re.compile(r"\d{5}"),
    re.compile(r"\d+[\s\-]?[a-zа-яё]+\s+\d+"),
    re.compile(r"[a-zа-яё]+\s+\d+[\s\-]?\d*"),
]

PHONE_SELECTORS = [
    'a[href^="tel:"]', '[class*="phone"]', '[id*="phone"]',
    '[class*="tel"]', '[id*="tel"]', '[class*="telefon"]',
    '[class*="telefono"]', '[id*="telefono"]',
    '[class*="contact-info"]', '[class*="contatti"]',
    '[itemprop="telephone"]', '[itemprop="phoneNumber"]',
    'h3:-soup-contains("Telefon")', 'h3:-soup-contains("Phone")', 'h3:-soup-contains("Телефон")',
    'h4:-soup-contains("Telefono")', 'h4:-soup-contains("Telefon")',
]
PHONE_KEYWORDS = [
    "телефон", "phone", "tel", "telefon", "téléphone", "телефона",
    "telefono", "telefone", "телефону", "telephone", "telefoni",
]
PHONE_PATTERNS = [
    re.compile(r"\+?\d{1,3}[\s\-]?\(?\d{1,4}\)?[\s\-]?\d{1,4}[\s\-]?\d{1,9}"),
    re.compile(r"\+\d{1,3}[\s\-]?\(?\d{1,4}\)?[\s\-]?\d{1,4}[\s\-]?\d{1,9}"),
    re.compile(r"\+\d{1,3}[\s\-]?\d{2,4}[\s\-]?\d{3,4}[\s\-]?\d{3,6}"),
    re.compile(r"\d{3}[\s\-]?\d{3}[\s\-]?\d{2}[\s\-]?\d{2}"),
    re.compile(r"\(\d{3}\)[\s\-]?\d{3}[\s\-]?\d{4}"),
    re.compile(r"\+?\d{1,3}[\s\-]?\d{1,4}[\s\-]?\d{1,4}[\s\-]?\d{1,9}"),
    re.compile(r"\+\d{1,3}\s*\(\d{1,4}\)\s*\d{1,4}[\s\-]?\d{1,9}"),
]

EMAIL_SELECTORS = [
    'a[href^="mailto:"]', '[class*="email"]', '[id*="email"]',
    '[class*="mail"]', '[id*="mail"]', '[class*="e-mail"]',
    '[class*="e-posta"]', '[class*="contact-info"]',
    '[class*="contatti"]', '[itemprop="email"]',
    'h3:-soup-contains("E-posta")', 'h3:-soup-contains("Email")',
    'h4:-soup-contains("Email")', 'h4:-soup-contains("E-posta")',
]
EMAIL_KEYWORDS = [
    "email", "e-mail", "почта", "mail", "e-posta", "courriel",
    "correo", "eletrônico", "электронная почта", "eposta",
    "posta elettronica", "indirizzo email",
]
EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

FORM_SELECTORS = [
    "form", '[class*="form"]', '[id*="form"]',
    '[class*="contact-form"]', '[id*="contact-form"]',
    '[class*="contact-form-wrapper"]', '[id*="contactForm"]', '[id*="contactform"]',
]
FORM_FIELDS = (
    'form input[type="text"], form input[type="email"], form input[type="tel"], '
    "form textarea, form select, "
    'form input:not([type="submit"]):not([type="button"]):not([type="hidden"])'
)
FORM_SUBMIT = 'form button[type="submit"], form input[type="submit"], form button[type="button"]'
FORM_FIELD_HINTS = (
    '[class*="form-input"], [class*="form-field"], [id*="name"], [id*="email"], [id*="message"]'
)

# ── Candidate scoring (full-folder scan) ───────────────────────────────────────

CANDIDATE_CONTACT_SELECTORS = [
    '[id*="contact"], [class*="contact"]',
    '[id*="contatti"], [class*="contatti"]',
    '[id*="iletisim"], [class*="iletisim"]',
    '[id*="اتصل"], [class*="اتصل"]',
    '[id*="تواصل"], [class*="تواصل"]',
    "section#contact, section.contact",
    "#contatti, .contatti",
]
CANDIDATE_KEYWORDS = [
    "contact", "contacts", "contatti", "iletisim", "اتصل", "تواصل",
    "address", "adres", "indirizzo", "عنوان",
    "phone", "telefon", "telefono", "هاتف",
    "email", "e-mail", "e-posta", "posta elettronica", "بريد إلكتروني",
]


def _candidate_has_map(doc: PageDocument) -> bool:
    if any(token in doc.html_lower for token in MAP_URL_TOKENS):
        return True
    return doc.any_match([
        'iframe[src*="maps"], iframe[src*="map"]',
        '[class*="map"], [id*="map"], [data-map]',
    ])


def _candidate_has_form(doc: PageDocument) -> bool:
    if not doc.count("form"):
        return False
    if doc.count('form input[type="text"], form input[type="email"], form input[type="tel"]') >= 2:
        return True
    return doc.probe('[class*="contact-form"], [id*="contact-form"], [class*="form"]').matched


def _candidate_has_contact_info(doc: PageDocument) -> bool:
    text = doc.body_text_lower
    return (
        doc.any_match(['[class*="address"], [id*="address"], [class*="adres"], [class*="indirizzo"]'])
        or bool(ADDRESS_PATTERNS[1].search(text))
        or doc.any_match([
            'a[href^="tel:"], [class*="phone"], [class*="tel"], [class*="telefon"], [class*="telefono"]'
        ])
        or bool(PHONE_PATTERNS[0].search(text))
        or doc.any_match(['a[href^="mailto:"], [class*="email"], [class*="mail"], [class*="e-posta"]'])
        or bool(EMAIL_PATTERN.search(text))
    )


CONTACT_CANDIDATE_SIGNALS: List[Signal] = [
    Signal("map", 2, _candidate_has_map),
    Signal("form", 2, _candidate_has_form),
    Signal("contact_info", 1, _candidate_has_contact_info),
    Signal("contact_selector", 1, lambda doc: doc.any_match(CANDIDATE_CONTACT_SELECTORS)),
    Signal("contact_keyword", 1, lambda doc: doc.contains_any(CANDIDATE_KEYWORDS)),
]


def score_contact_candidate(doc: PageDocument) -> int:
    return score(doc, CONTACT_CANDIDATE_SIGNALS)


# ── Content analysis ───────────────────────────────────────────────────────────

def _has_map(doc: PageDocument) -> bool:
    return doc.any_match(MAP_SELECTORS) or any(t in doc.html_lower for t in MAP_URL_TOKENS)


def _has_address(doc: PageDocument) -> bool:
    return (
        doc.any_match(ADDRESS_SELECTORS)
        or doc.contains_any(ADDRESS_KEYWORDS)
        or any(p.search(doc.body_text_lower) for p in ADDRESS_PATTERNS)
    )


def _has_phone(doc: PageDocument) -> bool:
    return (
        doc.any_match(PHONE_SELECTORS)
        or doc.contains_any(PHONE_KEYWORDS)
        or any(p.search(doc.body_text_lower) or p.search(doc.html_lower) for p in PHONE_PATTERNS)
    )


def _has_email(doc: PageDocument) -> bool:
    return (
        doc.any_match(EMAIL_SELECTORS)
        or doc.contains_any(EMAIL_KEYWORDS)
        or bool(EMAIL_PATTERN.search(doc.body_text_lower) or EMAIL_PATTERN.search(doc.html_lower))
    )


def _has_form(doc: PageDocument) -> bool:
    form_in_markup = "<form" in doc.html_lower or "contact-form" in doc.html_lower
    if not (doc.any_match(FORM_SELECTORS) or form_in_markup):
        return False
    fields = doc.count(FORM_FIELDS)
    field_hints = doc.count(FORM_FIELD_HINTS)
    submits = doc.count(FORM_SUBMIT)
    return (fields >= 2 or field_hints >= 2) and (submits > 0 or form_in_markup)


def analyze_contact_content(doc: PageDocument) -> ContactAnalysis:
    return ContactAnalysis(
        found=True,
        map=_has_map(doc),
        address=_has_address(doc),
        phone=_has_phone(doc),
        email=_has_email(doc),
        form=_has_form(doc),
    )


# ── Locator ────────────────────────────────────────────────────────────────────

def _is_excluded(file_name: str) -> bool:
    lowered = file_name.lower()
    return any(keyword in lowered for keyword in EXCLUDED_PAGE_KEYWORDS)


def find_contact_candidate(site_path: str) -> Optional[PageDocument]:
    """First page in the site root that scores as a contact page."""
    for name in html_files(site_path):
        if _is_excluded(name):
            continue
        doc = load_document(os.path.join(site_path, name))
        if doc is None:
            continue
        if score_contact_candidate(doc) >= CONTACT_SCORE_THRESHOLD:
            return doc
    return None


def check_contact_page(site_path: str, page_path: Optional[str] = None) -> ContactAnalysis:
    if page_path:
        doc = load_document(page_path)
        if doc is not None:
            return analyze_contact_content(doc)

    for name in CONTACT_PAGE_NAMES:
        doc = load_document(first_existing(site_path, [name]))
        if doc is not None:
            return analyze_contact_content(doc)

    doc = find_contact_candidate(site_path)
    if doc is not None:
        logger.debug("Contact page for %s found by content: %s", site_path, doc.name)
        return analyze_contact_content(doc)

    if not page_path:
        for name in HOMEPAGE_NAMES:
            doc = load_document(first_existing(site_path, [name]))
            if doc is not None and doc.probe(HOMEPAGE_CONTACT_SECTION).matched:
                return analyze_contact_content(doc)

    return ContactAnalysis.not_found()


def has_contact_page(site_path: str, main_page_path: Optional[str]) -> bool:
    """Quick existence check: a conventional contact file or a homepage contact section/link."""
    if first_existing(site_path, BASIC_CONTACT_PAGE_NAMES):
        return True
    doc = load_document(main_page_path)
    if doc is None:
        return False
    return doc.probe(HOMEPAGE_CONTACT_SECTION).matched or doc.probe(HOMEPAGE_CONTACT_LINK).matched
