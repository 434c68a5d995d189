"""
conftest.py — shared pytest fixtures
Adds the project root to sys.path so `sitecheck.*` imports resolve correctly
regardless of where pytest is invoked from.
"""

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest
from fastapi.testclient import TestClient

from sitecheck.config import get_settings
from sitecheck.main import app
from sitecheck.utils import session


# ─── Site builders ────────────────────────────────────────────────────────────

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def write_site(root: Path, name: str, files: dict) -> Path:
    """
    Create `root/name` holding `files` ({relative path: text or bytes}).
    Returns the site folder.
    """
    site = root / name
    site.mkdir(parents=True, exist_ok=True)
    for rel, content in files.items():
        target = site / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            target.write_bytes(content)
        else:
            target.write_text(content, encoding="utf-8")
    return site


def page(body: str, head: str = "") -> str:
    return f"<!DOCTYPE html><html><head><meta charset='utf-8'>{head}</head><body>{body}</body></html>"


SITE_A_INDEX = page(
    """
    <header><nav><a href="index.html">Home</a><a href="contact.html">Contact</a></nav></header>
    <section class="hero"><h1>Welcome</h1></section>
    """
    + "".join(f'<img src="images/photo{i}.png" alt="">' for i in range(1, 7))
    + "<footer><p>© SiteA</p></footer>"
)

SITE_A_CONTACT = page(
    """
    <h1>Get in touch</h1>
    <p><a href="tel:+905551234567">Call us</a></p>
    <p><a href="mailto:hello@sitea.test">Write to us</a></p>
    <form action="#">
      <input type="text" name="name">
      <input type="email" name="email">
      <textarea name="message"></textarea>
      <button type="submit">Send</button>
    </form>
    """
)


def site_a_files() -> dict:
    files = {"index.html": SITE_A_INDEX, "contact.html": SITE_A_CONTACT}
    for i in range(1, 7):
        files[f"images/photo{i}.png"] = PNG_BYTES
    return files


@pytest.fixture
def scan_root(tmp_path):
    """A scan root holding one complete site, SiteA."""
    root = tmp_path / "exports"
    write_site(root, "SiteA", site_a_files())
    return root


# ─── App fixtures ─────────────────────────────────────────────────────────────

@pytest.fixture(autouse=True)
def isolated_state(tmp_path_factory, monkeypatch):
    """Fresh scan contexts and a private temp dir (outside tmp_path) for report fallbacks."""
    report_tmp = tmp_path_factory.mktemp("report-tmp")
    monkeypatch.setattr(get_settings(), "report_tmp_dir", str(report_tmp))
    monkeypatch.setattr(session, "_store", None)
    yield


@pytest.fixture(scope="session")
def client():
    """Synchronous test client for the front-end app."""
    with TestClient(app) as c:
        yield c
