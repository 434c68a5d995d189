"""
Data-element counter.

Counts content-bearing blocks inside a page's main region. Selector families
are tried in order and the first one that matches anything is the one
counted, so overlapping selectors ('.card' and '[class*="card"]') are never
added together. Tables, lists and sections are inspected structurally.
"""
from typing import Dict, List, Optional

from bs4 import Tag

from ..models import DataElementSummary
from .html_loader import PageDocument, load_document

ELEMENT_KINDS = [
    "cards", "accordions", "faq", "tables", "lists",
    "articles", "testimonials", "statistics", "sections",
]

SELECTOR_FAMILIES: Dict[str, List[str]] = {
    "cards": [
        ".card", '[class*="card"]', '[class*="Card"]',
        ".game-card", ".article-card", ".testimonial-card",
        ".servizio-card", ".vantaggio-card", ".statistica-card",
        ".feature-card", ".product-card", ".service-card",
    ],
    "accordions": [
        ".accordion-item", ".accordion-content",
        '[class*="accordion-item"]', '[class*="accordion-content"]',
    ],
    "faq": ["#faq", ".faq", '[class*="faq"]', '[id*="faq"]', ".faq-item", ".faq-question"],
    "articles": ["article", ".article", '[class*="article"]', ".post", '[class*="post"]', ".blog-post"],
    "testimonials": [
        ".testimonial", '[class*="testimonial"]',
        ".review", '[class*="review"]',
        ".testimonianza", '[class*="testimonianza"]',
    ],
    "statistics": [
        ".stat", '[class*="stat"]', ".statistic",
        '[class*="statistic"]', ".number", '[class*="counter"]',
    ],
}

SECTION_MIN_TEXT = 200
SECTION_CONTENT_SELECTOR = ".card, .accordion, table, ul li, article"
LIST_MIN_ITEMS = 3


def main_region(doc: PageDocument) -> List[Tag]:
    """
    The elements holding the page's own content: <main>, else everything
    between <header> and <footer>, else the body's children minus both.
    """
    main = doc.soup.find("main")
    if main is not None:
        return [main]

    header = doc.soup.find("header")
    footer = doc.soup.find("footer")
    if header is not None and footer is not None:
        between = []
        for sibling in header.find_next_siblings():
            if sibling is footer or sibling.name == "footer":
                break
            between.append(sibling)
        if between:
            return between

    body = doc.soup.body or doc.soup
    return [child for child in body.find_all(recursive=False) if child.name not in ("header", "footer")]


def _first_family_count(doc: PageDocument, region: List[Tag], selectors: List[str]) -> int:
    for selector in selectors:
        found = doc.count(selector, roots=region)
        if found:
            return found
    return 0


def _count_tables(doc: PageDocument, region: List[Tag]) -> int:
    total = 0
    for table in doc.select("table", roots=region) or []:
        rows = [tr for tr in table.find_all("tr") if tr.find_parent("thead") is None]
        if rows:
            total += 1
    return total


def _count_lists(doc: PageDocument, region: List[Tag]) -> int:
    return sum(
        1 for lst in doc.select("ul, ol", roots=region) or []
        if len(lst.find_all("li")) >= LIST_MIN_ITEMS
    )


def _count_sections(doc: PageDocument, region: List[Tag]) -> int:
    total = 0
    for section in doc.select("section", roots=region) or []:
        if len(section.get_text().strip()) >= SECTION_MIN_TEXT or section.select(SECTION_CONTENT_SELECTOR):
            total += 1
    return total


def count_page_elements(doc: PageDocument) -> DataElementSummary:
    region = main_region(doc)
    breakdown = {kind: 0 for kind in ELEMENT_KINDS}
    for kind, selectors in SELECTOR_FAMILIES.items():
        breakdown[kind] = _first_family_count(doc, region, selectors)
    breakdown["tables"] = _count_tables(doc, region)
    breakdown["lists"] = _count_lists(doc, region)
    breakdown["sections"] = _count_sections(doc, region)
    return DataElementSummary.from_breakdown(breakdown)


def count_data_elements(page_path: Optional[str]) -> DataElementSummary:
    doc = load_document(page_path)
    if doc is None:
        return DataElementSummary()
    return count_page_elements(doc)
