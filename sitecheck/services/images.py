"""
Image counter.

Two numbers per site: every image file under the conventional image folders,
and the unique local images the homepage actually references (<img src> plus
inline CSS background-image urls) that exist on disk.
"""
import logging
import os
import re
from typing import Iterable, Optional, Set, Tuple
from urllib.parse import unquote

from .html_loader import PageDocument, load_document

logger = logging.getLogger(__name__)

IMAGE_FOLDERS = ["images", "image", "img"]
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp", ".gif", ".svg")

BACKGROUND_URL = re.compile(r"""background[-\s]?image:\s*url\(['"]?([^'")]+)""", re.IGNORECASE)

REMOTE_PREFIXES = ("data:", "http://", "https://", "#")


def count_folder_images(site_path: str) -> int:
    total = 0
    for folder in IMAGE_FOLDERS:
        root = os.path.join(site_path, folder)
        if not os.path.isdir(root):
            continue
        for _, _, files in os.walk(root):
            total += sum(1 for f in files if f.lower().endswith(IMAGE_EXTENSIONS))
    return total


def _local_source(src: str) -> Optional[str]:
    src = (src or "").strip()
    if not src or src.lower().startswith(REMOTE_PREFIXES):
        return None
    return unquote(src.split("?")[0].split("#")[0]) or None


def _exists(doc: PageDocument, site_path: str, src: str) -> bool:
    if src.startswith("/"):
        candidate = os.path.join(site_path, src.lstrip("/"))
    else:
        candidate = os.path.join(doc.directory, src)
    return os.path.isfile(os.path.normpath(candidate))


def _img_sources(doc: PageDocument) -> Iterable[str]:
    for img in doc.select("img[src]") or []:
        yield img.get("src", "")


def _background_sources(doc: PageDocument) -> Iterable[str]:
    for match in BACKGROUND_URL.finditer(doc.html):
        yield match.group(1)


def homepage_images(doc: PageDocument, site_path: str, skip_favicon: bool) -> Set[str]:
    """
    Unique declared sources on `doc` that resolve to existing files. Sources
    are told apart by their declared string, so "a.png?v=1" and "a.png?v=2"
    are two images; the query and fragment are dropped only to find the file.
    """
    seen: Set[str] = set()
    for raw in _img_sources(doc):
        declared = (raw or "").strip()
        src = _local_source(declared)
        if src is None or declared in seen:
            continue
        if skip_favicon and "favicon" in src.lower():
            continue
        if _exists(doc, site_path, src):
            seen.add(declared)
    for raw in _background_sources(doc):
        declared = (raw or "").strip()
        src = _local_source(declared)
        if src is None or declared in seen or "favicon" in src.lower():
            continue
        if _exists(doc, site_path, src):
            seen.add(declared)
    return seen


def count_images(site_path: str, main_page_path: Optional[str]) -> Tuple[int, int]:
    """Returns (total_images, main_page_images)."""
    folder_count = count_folder_images(site_path)
    doc = load_document(main_page_path)
    if doc is None:
        return folder_count, 0

    unique_all = homepage_images(doc, site_path, skip_favicon=False)
    main_page = homepage_images(doc, site_path, skip_favicon=True)
    logger.debug(
        "%s: %d folder images, %d homepage images", site_path, folder_count, len(unique_all)
    )
    return max(folder_count, len(unique_all)), len(main_page)
