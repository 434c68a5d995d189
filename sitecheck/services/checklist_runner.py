"""
Browser checklist runner — loads each site in headless Chromium (file:// URLs)
and walks a fixed checklist against the rendered pages.

This is the JavaScript-aware companion to the static scanner: slower, fewer
heuristics, but it sees the page the way a visitor's browser does. A
navigation that times out or fails is simply a failed check.

    python -m sitecheck.services.checklist_runner /srv/exports
"""
import argparse
import asyncio
import logging
import os
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from jinja2 import Template
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page, async_playwright

from ..config import get_settings
from ..models import CheckStatus, ChecklistItem, ChecklistOutcome, SiteChecklistResult
from ..utils.paths import normalize_root
from .batch_runner import find_site_folders
from .main_page import locate_main_page

logger = logging.getLogger(__name__)

CONTACT_PAGES = ["iletisim.html", "contact.html", "contacts.html"]
DOCUMENT_PAGES = [
    "privacy-policy.html", "gizlilik-politikasi.html", "cerez-politikasi.html",
    "cookie-politikasi.html", "terms.html", "kullanim-kosullari.html",
    "kullanim-sartlari.html", "feragatname.html",
]
THANK_YOU_PAGES = ["tesekkurler.html", "thank-you.html", "thanks.html"]

PHONE_PATTERN = re.compile(r"[+]?[(]?[0-9]{1,4}[)]?[-\s.]?[(]?[0-9]{1,4}[)]?[-\s.]?[0-9]{1,9}")
EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

MIN_DOCUMENTS = 2
MAX_MOBILE_SCROLL_WIDTH = 400


# ─── Page helpers ─────────────────────────────────────────────────────────────

async def open_file(page: Page, path: str, timeout_ms: int, wait_until: str = "domcontentloaded") -> bool:
    """Navigate to a local file; False when it is missing or navigation fails."""
    if not os.path.isfile(path):
        return False
    try:
        await page.goto(Path(path).resolve().as_uri(), wait_until=wait_until, timeout=timeout_ms)
        return True
    except PlaywrightError as e:
        logger.debug("Navigation to %s failed: %s", path, e)
        return False


async def has_element(page: Page, selector: str) -> bool:
    return await page.query_selector(selector) is not None


async def body_text(page: Page) -> str:
    try:
        return await page.inner_text("body")
    except PlaywrightError:
        return ""


async def open_main_page(page: Page, site_path: str) -> bool:
    main_page = locate_main_page(site_path)
    if not main_page:
        return False
    return await open_file(page, main_page, get_settings().browser_timeout_ms)


async def any_contact_page(page: Page, site_path: str, probe) -> bool:
    timeout = get_settings().browser_timeout_ms // 2
    for name in CONTACT_PAGES:
        if await open_file(page, os.path.join(site_path, name), timeout) and await probe(page):
            return True
    return False


# ─── Checks ───────────────────────────────────────────────────────────────────

async def check_mobile_responsive(page: Page, site_path: str) -> bool:
    settings = get_settings()
    await page.set_viewport_size({
        "width": settings.mobile_viewport_width,
        "height": settings.mobile_viewport_height,
    })
    main_page = locate_main_page(site_path)
    if not main_page or not await open_file(page, main_page, settings.browser_timeout_ms, "networkidle"):
        return False
    width = await page.evaluate("() => document.body.scrollWidth")
    return width <= MAX_MOBILE_SCROLL_WIDTH


async def check_favicon(page: Page, site_path: str) -> bool:
    return await open_main_page(page, site_path) and await has_element(
        page, 'link[rel="icon"], link[rel="shortcut icon"]'
    )


async def _map_probe(page: Page) -> bool:
    return await has_element(page, 'iframe[src*="google"], iframe[src*="maps"], .map, #map')


async def _address_probe(page: Page) -> bool:
    text = (await body_text(page)).lower()
    if "адрес" in text or "address" in text:
        return True
    return await has_element(page, '[class*="address"], [id*="address"]')


async def _phone_probe(page: Page) -> bool:
    if PHONE_PATTERN.search(await body_text(page)):
        return True
    return await has_element(page, 'a[href^="tel:"], [class*="phone"], [id*="phone"]')


async def _email_probe(page: Page) -> bool:
    if EMAIL_PATTERN.search(await body_text(page)):
        return True
    return await has_element(page, 'a[href^="mailto:"], [class*="email"], [id*="email"]')


async def _form_probe(page: Page) -> bool:
    return await has_element(page, "form")


async def check_contact_map(page: Page, site_path: str) -> bool:
    return await any_contact_page(page, site_path, _map_probe)


async def check_contact_address(page: Page, site_path: str) -> bool:
    return await any_contact_page(page, site_path, _address_probe)


async def check_contact_phone(page: Page, site_path: str) -> bool:
    return await any_contact_page(page, site_path, _phone_probe)


async def check_contact_email(page: Page, site_path: str) -> bool:
    return await any_contact_page(page, site_path, _email_probe)


async def check_contact_form(page: Page, site_path: str) -> bool:
    return await any_contact_page(page, site_path, _form_probe)


async def check_documents(page: Page, site_path: str) -> bool:
    timeout = get_settings().browser_short_timeout_ms
    found = 0
    for name in DOCUMENT_PAGES:
        if await open_file(page, os.path.join(site_path, name), timeout):
            found += 1
    return found >= MIN_DOCUMENTS


async def check_hero(page: Page, site_path: str) -> bool:
    return await open_main_page(page, site_path) and await has_element(
        page, '[class*="hero"], [id*="hero"], section:first-of-type'
    )


async def check_images(page: Page, site_path: str) -> bool:
    if not await open_main_page(page, site_path):
        return False
    return await page.evaluate("() => document.querySelectorAll('img').length") >= 5


async def check_menu(page: Page, site_path: str) -> bool:
    return await open_main_page(page, site_path) and await has_element(
        page, 'nav, [class*="menu"], [class*="nav"], header nav'
    )


async def check_mobile_menu(page: Page, site_path: str) -> bool:
    settings = get_settings()
    await page.set_viewport_size({
        "width": settings.mobile_viewport_width,
        "height": settings.mobile_viewport_height,
    })
    return await open_main_page(page, site_path) and await has_element(
        page, '[class*="burger"], [class*="hamburger"], [class*="mobile-menu"], button[aria-label*="menu"]'
    )


async def check_footer(page: Page, site_path: str) -> bool:
    return await open_main_page(page, site_path) and await has_element(page, 'footer, [class*="footer"]')


async def check_thank_you(page: Page, site_path: str) -> bool:
    timeout = get_settings().browser_short_timeout_ms
    for name in THANK_YOU_PAGES:
        if await open_file(page, os.path.join(site_path, name), timeout):
            return True
    return False


CHECKLIST: List[ChecklistItem] = [
    ChecklistItem(id="mobile-responsive", name="Responsive main page", category="Mobile", check=check_mobile_responsive),
    ChecklistItem(id="favicon-exists", name="Favicon declared", category="Technical", check=check_favicon),
    ChecklistItem(id="contacts-map", name="Map on contact page", category="Technical", check=check_contact_map),
    ChecklistItem(id="contact-address", name="Address on contact page", category="Technical", check=check_contact_address),
    ChecklistItem(id="contact-phone", name="Phone on contact page", category="Technical", check=check_contact_phone),
    ChecklistItem(id="contact-email", name="Email on contact page", category="Technical", check=check_contact_email),
    ChecklistItem(id="contact-form", name="Contact form", category="Technical", check=check_contact_form),
    ChecklistItem(id="documents-display", name="Legal documents (Privacy Policy, Terms)", category="Technical", check=check_documents),
    ChecklistItem(id="hero-section", name="Hero section", category="Content", check=check_hero),
    ChecklistItem(id="images-count", name="At least 5 images", category="Content", check=check_images),
    ChecklistItem(id="menu-structure", name="Navigation menu", category="Mobile", check=check_menu),
    ChecklistItem(id="mobile-menu", name="Mobile burger menu", category="Mobile", check=check_mobile_menu),
    ChecklistItem(id="footer-content", name="Footer", category="Technical", check=check_footer),
    ChecklistItem(id="thank-you-page", name="Thank-you page", category="Forms", check=check_thank_you),
]


# ─── Runner ───────────────────────────────────────────────────────────────────

async def run_site_checks(page: Page, site: str, site_path: str, checklist: Optional[List[ChecklistItem]] = None) -> SiteChecklistResult:
    checks: Dict[str, ChecklistOutcome] = {}
    for item in checklist or CHECKLIST:
        try:
            passed = bool(await item.check(page, site_path))
            checks[item.id] = ChecklistOutcome(name=item.name, category=item.category, passed=passed)
            print(f"   {'✅' if passed else '❌'} {item.name}")
        except PlaywrightError as e:
            checks[item.id] = ChecklistOutcome(name=item.name, category=item.category, passed=False, error=str(e))
            print(f"   ❌ {item.name} (error: {e})")
    return SiteChecklistResult(site=site, status=CheckStatus.TESTED, checks=checks)


async def run_checklist(base_path: str, sites: Optional[List[str]] = None) -> List[SiteChecklistResult]:
    sites = sites if sites is not None else find_site_folders(base_path)
    print("🚀 Starting browser checklist...\n")

    results: List[SiteChecklistResult] = []
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True, args=["--no-sandbox", "--disable-setuid-sandbox"])
        try:
            for site in sites:
                print(f"📋 Testing: {site}")
                site_path = os.path.join(base_path, site)
                if not os.path.isdir(site_path):
                    print("   ⚠️  Folder not found, skipping\n")
                    results.append(SiteChecklistResult(site=site, status=CheckStatus.NOT_FOUND))
                    continue
                page = await browser.new_page()
                try:
                    results.append(await run_site_checks(page, site, site_path))
                finally:
                    await page.close()
                print("")
        finally:
            await browser.close()
    return results


def average_progress(results: List[SiteChecklistResult]) -> int:
    tested = [r for r in results if r.status == CheckStatus.TESTED]
    if not tested:
        return 0
    return int(sum(r.progress for r in tested) / len(tested) + 0.5)


# ─── Report ───────────────────────────────────────────────────────────────────

CHECKLIST_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8"/>
<meta name="viewport" content="width=device-width, initial-scale=1.0"/>
<title>Browser checklist report</title>
<style>
  * { margin: 0; padding: 0; box-sizing: border-box; }
  body { font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; background: #0a0a0a; color: #e0e0e0; padding: 20px; }
  .container { max-width: 1400px; margin: 0 auto; }
  h1 { color: #d4af37; margin-bottom: 8px; }
  .date-info { color: #999; margin-bottom: 24px; }
  .summary { display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 15px; margin-bottom: 30px; }
  .summary-card { background: #1a1a1a; border: 1px solid #2a2a2a; border-radius: 8px; padding: 16px; }
  .summary-card .value { font-size: 2em; color: #d4af37; }
  .site { background: #141414; border: 1px solid #2a2a2a; border-radius: 8px; padding: 16px; margin-bottom: 16px; }
  .site h2 { font-size: 1.1em; margin-bottom: 8px; }
  .progress { height: 8px; background: #2a2a2a; border-radius: 4px; overflow: hidden; margin-bottom: 12px; }
  .progress-bar { height: 100%; background: #4caf50; }
  .category { color: #d4af37; font-size: 0.85em; margin: 8px 0 4px; }
  .check { font-size: 0.9em; padding: 2px 0; }
  .pass { color: #4caf50; }
  .fail { color: #f44336; }
  .missing { color: #999; }
</style>
</head>
<body>
<div class="container">
  <h1>Browser checklist report</h1>
  <div class="date-info">📅 {{ generated_at }}</div>
  <div class="summary">
    <div class="summary-card"><div>Sites</div><div class="value">{{ results | length }}</div></div>
    <div class="summary-card"><div>Tested</div><div class="value">{{ tested }}</div></div>
    <div class="summary-card"><div>Average progress</div><div class="value">{{ average }}%</div></div>
  </div>
  {% for r in results %}
  <div class="site">
    <h2>{{ r.site | e }}{% if r.status.value == 'tested' %} — {{ r.progress }}%{% endif %}</h2>
    {% if r.status.value == 'tested' %}
    <div class="progress"><div class="progress-bar" style="width: {{ r.progress }}%"></div></div>
    {% for category in categories %}
    <div class="category">{{ category }}</div>
    {% for check_id, outcome in r.checks.items() if outcome.category == category %}
    <div class="check {{ 'pass' if outcome.passed else 'fail' }}">{{ '✅' if outcome.passed else '❌' }} {{ outcome.name }}{% if outcome.error %} ({{ outcome.error | e }}){% endif %}</div>
    {% endfor %}
    {% endfor %}
    {% else %}
    <div class="missing">⚠️ Folder not found</div>
    {% endif %}
  </div>
  {% endfor %}
</div>
</body>
</html>
"""


def render_checklist_report(results: List[SiteChecklistResult]) -> str:
    categories = list(dict.fromkeys(item.category for item in CHECKLIST))
    return Template(CHECKLIST_TEMPLATE).render(
        results=results,
        categories=categories,
        tested=sum(1 for r in results if r.status == CheckStatus.TESTED),
        average=average_progress(results),
        generated_at=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    )


def write_checklist_report(results: List[SiteChecklistResult], output_path: str) -> str:
    with open(output_path, "w", encoding="utf-8") as fp:
        fp.write(render_checklist_report(results))
    return output_path


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="sitecheck-checklist", description="Run the browser checklist over site folders")
    parser.add_argument("root", nargs="?", default=get_settings().base_path)
    parser.add_argument("--site", action="append", dest="sites", help="limit to this site folder (repeatable)")
    parser.add_argument("-o", "--output", default=None, help="report path (default: <root>/report.html)")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING)
    root = normalize_root(args.root)
    if not os.path.isdir(root):
        print(f"❌ Folder not found: {root}", file=sys.stderr)
        return 1

    results = asyncio.run(run_checklist(root, args.sites))
    path = write_checklist_report(results, args.output or os.path.join(root, "report.html"))
    print(f"✅ Checklist finished. Average progress {average_progress(results)}%. Report saved to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
