"""
Thank-you page locator.

A conventionally named file wins outright. Otherwise every page is scored;
the first one to reach THANK_YOU_THRESHOLD, or to satisfy the older
keyword/modal/redirect rule, is taken.
"""
import logging
import os
import re
from typing import List, Optional, Tuple

from ..models import ThankYouKind
from .html_loader import PageDocument, first_existing, html_files, load_document
from .scoring import Signal, evaluate

logger = logging.getLogger(__name__)

THANK_YOU_PAGES = [
    "tesekkurler.html", "tesekkur.html", "teşekkürler.html",
    "thank-you.html", "thanks.html", "thankyou.html", "thank.html",
    "merci.html",
    "spasibo.html", "spasiba.html", "blagodarya.html",
    "grazie.html",
    "success.html", "success-page.html", "thank-you-page.html",
]

THANK_YOU_KEYWORDS = [
    "спасибо", "благодарим", "благодарю",
    "thank you", "thanks", "thank",
    "teşekkürler", "teşekkür", "tesekkurler", "tesekkur",
    "merci", "merci beaucoup",
    "grazie", "grazie mille",
    "danke", "danke schön",
    "obrigado", "obrigada",
    "gracias", "muchas gracias",
    "شكرا", "شكر", "شكراً",
    "success", "successful", "успешно",
]

HOME_KEYWORDS = [
    "домой", "home", "главная", "на главную",
    "ana sayfa", "accueil", "torna", "inizio",
    "inicio", "start", "начало", "вернуться",
    "go home", "back home", "return home",
    "الرئيسية", "الصفحة الرئيسية",
]

SCRIPT_SUBMIT_WORDS = ["thank", "success", "спасибо", "teşekkür", "merci", "grazie"]

MODAL_SELECTORS = [
    '[id*="thank"], [id*="success"], [id*="grazie"], [id*="merci"]',
    '[class*="thank"], [class*="success"], [class*="modal"]',
    ".modal", "#modal", '[class*="popup"]', '[id*="popup"]',
]
MODAL_MARKUP = ['class="modal', 'id="modal', 'class="popup', 'id="popup', "data-modal", "data-popup"]

SUCCESS_ICON_SELECTOR = '[class*="success"], [class*="check"], [class*="tick"], [class*="done"]'
SUCCESS_ICON_MARKUP = ["checkmark", "success-icon"]

REDIRECT = re.compile(r"""(?:window\.location|location\.href)(?:\.href)?\s*=\s*['"]([^'"]+)['"]""", re.IGNORECASE)

THANK_YOU_THRESHOLD = 3

_PAGE_STEMS = [name[:-len(".html")] for name in THANK_YOU_PAGES]


def _is_thank_you_target(target: str) -> bool:
    target = target.lower()
    return any(stem in target for stem in _PAGE_STEMS) or any(k in target for k in THANK_YOU_KEYWORDS)


def has_thank_you_text(doc: PageDocument) -> bool:
    return doc.contains_any(THANK_YOU_KEYWORDS, in_markup=False)


def has_redirect(doc: PageDocument) -> bool:
    """A form posts to, or a script navigates to, something thank-you shaped."""
    for form in doc.select("form") or []:
        action = form.get("action") or ""
        if action and _is_thank_you_target(action):
            return True
    for script in doc.select("script") or []:
        content = script.string or script.get_text() or ""
        for match in REDIRECT.finditer(content):
            if _is_thank_you_target(match.group(1)):
                return True
        lowered = content.lower()
        if "submit" in lowered and any(word in lowered for word in SCRIPT_SUBMIT_WORDS):
            return True
    return False


def has_modal_with_text(doc: PageDocument) -> bool:
    for selector in MODAL_SELECTORS:
        found = doc.select(selector)
        if not found:
            continue
        text = " ".join(el.get_text() for el in found).lower()
        if any(keyword in text for keyword in THANK_YOU_KEYWORDS):
            return True
    return False


def has_modal_markup(doc: PageDocument) -> bool:
    return any(token in doc.html_lower for token in MODAL_MARKUP)


def has_home_link(doc: PageDocument) -> bool:
    if doc.contains_any(HOME_KEYWORDS, in_markup=False):
        return True
    controls = " ".join(el.get_text() for el in doc.select("a, button") or []).lower()
    if any(keyword in controls for keyword in HOME_KEYWORDS):
        return True
    return doc.probe('a[href*="index"], a[href*="home"], a[href*="/"]').matched


def has_success_icon(doc: PageDocument) -> bool:
    if doc.probe(SUCCESS_ICON_SELECTOR).matched:
        return True
    return any(token in doc.html_lower for token in SUCCESS_ICON_MARKUP)


def is_short_page(doc: PageDocument) -> bool:
    return 50 < len(doc.body_text_lower) < 2000 and doc.count("nav a, header a") <= 3


THANK_YOU_SIGNALS: List[Signal] = [
    Signal("thank_text", 3, has_thank_you_text),
    Signal("redirect", 2, has_redirect),
    Signal("modal", 1, lambda doc: has_modal_with_text(doc) or has_modal_markup(doc)),
    Signal("home_link", 2, has_home_link),
    Signal("success_icon", 1, has_success_icon),
    Signal("short_page", 1, is_short_page),
]


def _scored_kind(fired) -> ThankYouKind:
    if "modal" in fired and "redirect" not in fired:
        return ThankYouKind.MODAL
    return ThankYouKind.PAGE


def _legacy_kind(doc: PageDocument, fired) -> Optional[ThankYouKind]:
    # Older rule set, still honoured: accepts some pages the score rejects.
    redirect = "redirect" in fired
    text = "thank_text" in fired
    modal_element = has_modal_with_text(doc)
    modal_markup = has_modal_markup(doc)
    home = "home_link" in fired

    if redirect or (modal_element and text) or (modal_markup and text and home):
        return ThankYouKind.PAGE if redirect and not modal_element else ThankYouKind.MODAL
    if text:
        if modal_element or modal_markup:
            return ThankYouKind.MODAL
        if home:
            return ThankYouKind.PAGE
    return None


def classify_thank_you(doc: PageDocument) -> Optional[ThankYouKind]:
    total, fired = evaluate(doc, THANK_YOU_SIGNALS)
    if total >= THANK_YOU_THRESHOLD:
        return _scored_kind(fired)
    kind = _legacy_kind(doc, fired)
    if kind is not None:
        logger.debug("%s accepted as thank-you by the legacy rule", doc.name)
    return kind


def locate_thank_you(site_path: str) -> Tuple[bool, Optional[ThankYouKind]]:
    if first_existing(site_path, THANK_YOU_PAGES):
        return True, ThankYouKind.PAGE

    for name in html_files(site_path):
        doc = load_document(os.path.join(site_path, name))
        if doc is None:
            continue
        kind = classify_thank_you(doc)
        if kind is not None:
            return True, kind
    return False, None
