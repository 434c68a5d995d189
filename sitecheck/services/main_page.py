"""
Homepage locator.

Conventional names win outright; otherwise every .html file in the site root
is scored and the best one is accepted when it clears MAIN_PAGE_THRESHOLD.
"""
import os
from typing import List, Optional, Tuple

from .html_loader import PageDocument, first_existing, html_files, list_files, load_document
from .scoring import Signal, score

MAIN_PAGE_NAMES = ["light.html", "index.html", "home.html", "main.html", "default.html"]

# Accepted below the threshold only when the best file has one of these names
FALLBACK_MAIN_NAMES = {"index.html", "home.html", "main.html"}

MAIN_PAGE_THRESHOLD = 8

HERO_SELECTORS = [
    ".hero", "#hero", '[class*="hero"]', '[id*="hero"]',
    ".banner", "#banner", '[class*="banner"]',
    ".welcome", "#welcome", '[class*="welcome"]',
    "section.hero", "section#hero", 'section[class*="hero"]',
]

HERO_MARKUP = ['class="hero', "class='hero", 'id="hero', "id='hero"]

HOMEPAGE_SECTIONS = [
    "about", "services", "portfolio", "contact",
    "hakkımızda", "hizmetler", "hizmet", "iletisim",
    "chi siamo", "servizi", "contatti",
]

NOT_MAIN_INDICATORS = [
    "thank", "spasibo", "tesekkur", "merci", "grazie",
    "privacy", "cookie", "terms", "gizlilik", "cerez",
    "contact", "contatti", "iletisim",
]


def _has_hero(doc: PageDocument) -> bool:
    if doc.any_match(HERO_SELECTORS):
        return True
    return any(token in doc.html_lower for token in HERO_MARKUP)


def _section_token(section: str):
    tokens = (f'id="{section}"', f'class="{section}"', f"#{section}", f".{section}")
    return lambda doc: any(t in doc.html_lower for t in tokens)


def _looks_like_document(doc: PageDocument) -> bool:
    return len(doc.body_text) > 5000 and doc.count("section") < 2


def _not_main_name(doc: PageDocument) -> bool:
    name = doc.name.lower()
    return any(indicator in name for indicator in NOT_MAIN_INDICATORS)


MAIN_PAGE_SIGNALS: List[Signal] = [
    Signal("hero", 10, _has_hero),
    Signal("navigation", 5, lambda doc: doc.count("nav a, header a, .nav a, .navigation a") >= 3),
    *[Signal(f"section:{s}", 3, _section_token(s)) for s in HOMEPAGE_SECTIONS],
    Signal("many_sections", 5, lambda doc: doc.count("section") >= 3),
    Signal("many_images", 3, lambda doc: doc.count("img") >= 3),
    Signal("not_main_name", -20, _not_main_name),
    Signal("legal_document", -10, _looks_like_document),
]


def score_main_page(doc: PageDocument) -> int:
    return score(doc, MAIN_PAGE_SIGNALS)


def best_scoring_page(site_path: str) -> Tuple[Optional[str], int]:
    """The highest-scoring .html file; ties keep the first one listed."""
    best_path, best_score = None, 0
    for name in html_files(site_path, (".html",)):
        doc = load_document(os.path.join(site_path, name))
        if doc is None:
            continue
        page_score = score_main_page(doc)
        if page_score > best_score:
            best_path, best_score = doc.path, page_score
    return best_path, best_score


def locate_main_page(site_path: str) -> Optional[str]:
    path = first_existing(site_path, MAIN_PAGE_NAMES)
    if path:
        return path

    for name in list_files(site_path):
        if name.lower() == "index.html":
            return os.path.join(site_path, name)

    best_path, best_score = best_scoring_page(site_path)
    if best_path is None:
        return None
    if best_score >= MAIN_PAGE_THRESHOLD:
        return best_path
    if os.path.basename(best_path).lower() in FALLBACK_MAIN_NAMES:
        return best_path
    return None
