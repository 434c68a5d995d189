"""
HTML document accessor shared by every detector.

load_document() never raises: unreadable or unparseable files come back as
None and callers treat that as "feature absent". Selector probes report one of
three outcomes so a selector the engine cannot evaluate is logged instead of
silently looking like a miss.
"""
import logging
import os
from enum import Enum
from functools import cached_property
from typing import Iterable, List, Optional

from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup
from soupsieve import SelectorSyntaxError

logger = logging.getLogger(__name__)

HTML_EXTENSIONS = (".html", ".htm")


class Probe(str, Enum):
    MATCH = "match"
    NO_MATCH = "no_match"
    UNSUPPORTED = "unsupported"

    @property
    def matched(self) -> bool:
        return self is Probe.MATCH


class PageDocument:
    """A parsed page plus the lower-cased views the heuristics keep asking for."""

    def __init__(self, path: str, html: str):
        self.path = path
        self.html = html
        self.soup = BeautifulSoup(html, "html.parser")

    @property
    def name(self) -> str:
        return os.path.basename(self.path)

    @property
    def directory(self) -> str:
        return os.path.dirname(self.path)

    @cached_property
    def html_lower(self) -> str:
        return self.html.lower()

    @cached_property
    def body_text(self) -> str:
        body = self.soup.body or self.soup
        return body.get_text()

    @cached_property
    def body_text_lower(self) -> str:
        return self.body_text.lower()

    # ── Selector probing ───────────────────────────────────────────────────────

    def select(self, selector: str, roots: Optional[Iterable[Tag]] = None) -> Optional[List[Tag]]:
        """
        Elements matching `selector` in document order, or None when the
        selector cannot be evaluated. With `roots`, only descendants of those
        elements are searched and duplicates are dropped.
        """
        try:
            if roots is None:
                return self.soup.select(selector)
            seen = set()
            found: List[Tag] = []
            for root in roots:
                for el in root.select(selector):
                    if id(el) not in seen:
                        seen.add(id(el))
                        found.append(el)
            return found
        except (SelectorSyntaxError, NotImplementedError, ValueError) as e:
            logger.warning("Selector %r unsupported on %s: %s", selector, self.name, e)
            return None

    def probe(self, selector: str, roots: Optional[Iterable[Tag]] = None) -> Probe:
        found = self.select(selector, roots)
        if found is None:
            return Probe.UNSUPPORTED
        return Probe.MATCH if found else Probe.NO_MATCH

    def count(self, selector: str, roots: Optional[Iterable[Tag]] = None) -> int:
        found = self.select(selector, roots)
        return len(found) if found else 0

    def any_match(self, selectors: Iterable[str]) -> bool:
        return any(self.probe(sel).matched for sel in selectors)

    def contains_any(self, needles: Iterable[str], in_markup: bool = True) -> bool:
        """True if any needle occurs in the body text (or, optionally, the raw markup)."""
        for needle in needles:
            needle = needle.lower()
            if needle in self.body_text_lower:
                return True
            if in_markup and needle in self.html_lower:
                return True
        return False


def load_document(path: Optional[str]) -> Optional[PageDocument]:
    if not path:
        return None
    try:
        with open(path, "r", encoding="utf-8", errors="replace") as fp:
            html = fp.read()
        return PageDocument(path, html)
    except (OSError, ParserRejectedMarkup) as e:
        logger.debug("Could not load %s: %s", path, e)
        return None


def list_files(folder: str) -> List[str]:
    """File names directly inside `folder`, sorted; empty on any read error."""
    try:
        return sorted(
            entry.name for entry in os.scandir(folder) if entry.is_file()
        )
    except OSError as e:
        logger.debug("Could not list %s: %s", folder, e)
        return []


def html_files(folder: str, extensions=HTML_EXTENSIONS) -> List[str]:
    return [name for name in list_files(folder) if name.lower().endswith(extensions)]


def first_existing(folder: str, names: Iterable[str]) -> Optional[str]:
    for name in names:
        candidate = os.path.join(folder, name)
        if os.path.isfile(candidate):
            return candidate
    return None
