"""
Structure report generator — one static HTML page summarising a batch scan.

The page is self-contained (inline CSS and JS). Each row has a "view" button
that opens the site's homepage in a 430px mobile frame; when the report is
itself shown inside the control panel's iframe, the request is handed to the
parent window with postMessage instead.
"""
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from urllib.parse import quote

from jinja2 import Template

from ..config import get_settings
from ..models import ScanStats, SiteResult, ThankYouKind

logger = logging.getLogger(__name__)

REPORT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8"/>
<meta name="viewport" content="width=device-width, initial-scale=1.0"/>
<title>Site structure report</title>
<style>
  * { box-sizing: border-box; margin: 0; padding: 0; }
  html, body { height: 100%; }
  body {
    font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif;
    background: #0a0a0a;
    color: #e0e0e0;
    display: flex;
    flex-direction: column;
  }
  body.modal-open { overflow: hidden; }
  .header {
    background: #1a1a1a;
    padding: 15px 20px;
    border-bottom: 2px solid #2a2a2a;
    display: flex;
    justify-content: space-between;
    align-items: center;
  }
  .header h1 { color: #d4af37; font-size: 1.5em; }
  .date-info { color: #999; font-size: 0.9em; }
  .summary { display: flex; flex-wrap: wrap; gap: 10px; padding: 15px 20px; }
  .summary-chip {
    background: #161616;
    border: 1px solid #2a2a2a;
    border-radius: 6px;
    padding: 8px 12px;
    font-size: 0.85em;
  }
  .summary-chip strong { color: #d4af37; margin-left: 6px; }
  .content { flex: 1; overflow: auto; padding: 0 20px 20px; }
  table { width: 100%; border-collapse: collapse; font-size: 0.85em; }
  th {
    position: sticky;
    top: 0;
    background: #1a1a1a;
    color: #d4af37;
    padding: 10px 6px;
    border-bottom: 2px solid #2a2a2a;
  }
  td { padding: 8px 6px; border-bottom: 1px solid #1f1f1f; text-align: center; }
  tr:hover td { background: #141414; }
  .site-name { text-align: left; font-weight: 600; white-space: nowrap; }
  .site-favicon { width: 16px; height: 16px; margin-right: 6px; vertical-align: middle; }
  .ok { color: #4caf50; }
  .fail { color: #f44336; }
  .pages { text-align: left; font-size: 0.8em; white-space: normal; max-width: 400px; }
  .view-btn {
    background: #d4af37;
    color: #0a0a0a;
    border: none;
    border-radius: 4px;
    padding: 5px 10px;
    cursor: pointer;
  }
  .modal {
    display: none;
    position: fixed;
    inset: 0;
    background: rgba(0,0,0,0.85);
    z-index: 1000;
    align-items: center;
    justify-content: center;
  }
  .modal.active { display: flex; }
  .modal-content {
    width: 430px;
    height: 92vh;
    background: #1a1a1a;
    border-radius: 12px;
    display: flex;
    flex-direction: column;
    overflow: hidden;
  }
  .modal-content.fullscreen { width: 96vw; height: 96vh; }
  .modal-header {
    display: flex;
    justify-content: space-between;
    align-items: center;
    padding: 10px;
    gap: 8px;
  }
  .modal-title-wrapper { display: flex; align-items: center; gap: 8px; }
  .modal-favicon { width: 20px; height: 20px; }
  .modal-header button {
    background: #2a2a2a;
    color: #e0e0e0;
    border: none;
    border-radius: 4px;
    padding: 5px 8px;
    cursor: pointer;
  }
  .modal-header button.active { background: #d4af37; color: #0a0a0a; }
  .mobile-iframe { flex: 1; width: 100%; border: none; background: #fff; }
</style>
</head>
<body>
<div class="header">
  <h1>Site structure report</h1>
  <span class="date-info">📅 {{ generated_at }}</span>
</div>

<div class="summary">
  <div class="summary-chip">Total sites<strong>{{ stats.total }}</strong></div>
  <div class="summary-chip">Existing<strong>{{ stats.existing }}</strong></div>
  <div class="summary-chip">Main page<strong>{{ stats.with_main }}</strong></div>
  <div class="summary-chip">Contact page<strong>{{ stats.with_contact }}</strong></div>
  <div class="summary-chip">Favicon<strong>{{ stats.with_favicon }}</strong></div>
  <div class="summary-chip">Thank-you page<strong>{{ stats.with_thank_you }}</strong></div>
  <div class="summary-chip">≥5 images<strong>{{ stats.with_images5 }}</strong></div>
  <div class="summary-chip">≥5 images on main page<strong>{{ stats.with_main_page_images5 }}</strong></div>
  <div class="summary-chip">Contact map<strong>{{ stats.with_map }}</strong></div>
  <div class="summary-chip">Contact form<strong>{{ stats.with_form }}</strong></div>
</div>

<div class="content">
<table>
  <thead>
  <tr>
    <th>Site</th>
    <th>View</th>
    <th>Main page</th>
    <th>Contacts</th>
    <th>Address</th>
    <th>Phone</th>
    <th>Email</th>
    <th>Documents</th>
    <th>Images</th>
    <th>Main page<br>images</th>
    <th>Favicon</th>
    <th>Map</th>
    <th>Form</th>
    <th>Thank you</th>
    <th>Thank-you<br>type</th>
    <th>Legal links<br>in footer</th>
    <th>Page<br>elements</th>
  </tr>
  </thead>
  <tbody>
  {% macro mark(flag) %}<td class="stat {{ 'ok' if flag else 'fail' }}">{{ '✓' if flag else '✗' }}</td>{% endmacro %}
  {% for row in rows %}
  {% set r = row.result %}
  <tr class="site-row" data-site="{{ r.site | e }}">
    <td class="site-name">{% if row.favicon_url %}<img src="{{ row.favicon_url | e }}" alt="" class="site-favicon" onerror="this.style.display='none'">{% endif %}{{ r.site | e }}</td>
    <td class="stat">
      <button class="view-btn" data-url="{{ row.preview_url | e }}" data-name="{{ r.site | e }}" data-favicon="{{ (row.favicon_url or '') | e }}" onclick="openMobileView(this.dataset.url, this.dataset.name, this.dataset.favicon)">📱 View</button>
    </td>
    {{ mark(r.has_main_page) }}
    {{ mark(r.has_contact_page) }}
    {{ mark(r.has_contact_address) }}
    {{ mark(r.has_contact_phone) }}
    {{ mark(r.has_contact_email) }}
    <td class="stat">{{ r.documents }}</td>
    <td class="stat {{ 'ok' if r.images_min5 else 'fail' }}">{{ r.images }}</td>
    <td class="stat {{ 'ok' if r.main_page_images_min5 else 'fail' }}">{{ r.main_page_images }} {{ '✓' if r.main_page_images_min5 else '✗' }}</td>
    {{ mark(r.has_favicon) }}
    {{ mark(r.has_contact_map) }}
    {{ mark(r.has_contact_form) }}
    {{ mark(r.has_thank_you_page) }}
    <td class="stat">{{ row.thank_you_label }}</td>
    {{ mark(r.footer_documents) }}
    <td class="stat pages">
      {% if r.pages_data_elements %}
        {% for page, summary in r.pages_data_elements.items() %}<strong>{{ page | e }}</strong> - {{ summary.total }}{% if not loop.last %}<br>{% endif %}{% endfor %}
      {% else %}-{% endif %}
    </td>
  </tr>
  {% endfor %}
  </tbody>
</table>
</div>

<div id="mobileModal" class="modal">
  <div class="modal-content">
    <div class="modal-header">
      <div class="modal-title-wrapper">
        <img id="modalFavicon" class="modal-favicon" src="" alt="" style="display: none;">
        <h2 id="modalTitle"></h2>
      </div>
      <div class="modal-header-buttons">
        <button onclick="refreshMobileView()">🔄 Refresh</button>
        <button id="fullscreenBtn" onclick="toggleFullscreen()">💻 Desktop</button>
        <button onclick="closeMobileView()">✕ Close</button>
      </div>
    </div>
    <iframe id="mobileIframe" class="mobile-iframe" src=""></iframe>
  </div>
</div>

<script>
  function openMobileView(sitePath, siteName, faviconPath) {
    if (window.self !== window.top) {
      try {
        window.parent.postMessage({
          type: 'openMobileView',
          sitePath: sitePath,
          siteName: siteName,
          faviconPath: faviconPath || ''
        }, '*');
        return;
      } catch (e) {
        console.error('Could not hand the preview to the parent window:', e);
      }
    }
    var favicon = document.getElementById('modalFavicon');
    document.getElementById('modalTitle').textContent = siteName;
    if (faviconPath) {
      favicon.src = faviconPath;
      favicon.style.display = 'block';
      favicon.onerror = function () { favicon.style.display = 'none'; };
    } else {
      favicon.style.display = 'none';
    }
    document.getElementById('mobileIframe').src = sitePath;
    document.querySelector('.modal-content').classList.remove('fullscreen');
    document.getElementById('fullscreenBtn').classList.remove('active');
    document.body.classList.add('modal-open');
    document.getElementById('mobileModal').classList.add('active');
  }

  function closeMobileView() {
    document.getElementById('mobileModal').classList.remove('active');
    document.getElementById('mobileIframe').src = '';
    document.body.classList.remove('modal-open');
  }

  function refreshMobileView() {
    var iframe = document.getElementById('mobileIframe');
    var src = iframe.src;
    iframe.src = '';
    iframe.src = src;
  }

  function toggleFullscreen() {
    document.querySelector('.modal-content').classList.toggle('fullscreen');
    document.getElementById('fullscreenBtn').classList.toggle('active');
  }

  document.addEventListener('keydown', function (e) {
    if (e.key === 'Escape') closeMobileView();
  });
  document.getElementById('mobileModal').addEventListener('click', function (e) {
    if (e.target === this) closeMobileView();
  });
</script>
</body>
</html>
"""

THANK_YOU_LABELS = {ThankYouKind.PAGE: "Page", ThankYouKind.MODAL: "Modal"}


@dataclass
class ReportRow:
    result: SiteResult
    preview_url: str
    favicon_url: Optional[str]
    thank_you_label: str


@dataclass
class ReportOutcome:
    html: str
    stats: ScanStats
    output: str
    path: Optional[str] = None


def compute_stats(results: List[SiteResult]) -> ScanStats:
    return ScanStats(
        total=len(results),
        existing=sum(1 for r in results if r.exists),
        with_main=sum(1 for r in results if r.has_main_page),
        with_contact=sum(1 for r in results if r.has_contact_page),
        with_favicon=sum(1 for r in results if r.has_favicon),
        with_thank_you=sum(1 for r in results if r.has_thank_you_page),
        with_images5=sum(1 for r in results if r.images_min5),
        with_main_page_images5=sum(1 for r in results if r.main_page_images_min5),
        with_map=sum(1 for r in results if r.has_contact_map),
        with_form=sum(1 for r in results if r.has_contact_form),
    )


def summary_text(stats: ScanStats) -> str:
    return "\n".join([
        f"Total sites: {stats.total}",
        f"Existing: {stats.existing}",
        f"With main page: {stats.with_main}",
        f"With contact page: {stats.with_contact}",
        f"With favicon: {stats.with_favicon}",
        f"With thank you page: {stats.with_thank_you}",
        f"With ≥5 images (total): {stats.with_images5}",
        f"With ≥5 images on main page: {stats.with_main_page_images5}",
        f"With contact map: {stats.with_map}",
        f"With contact form: {stats.with_form}",
    ])


def _thank_you_label(result: SiteResult) -> str:
    if result.thank_you_kind is not None:
        return THANK_YOU_LABELS[result.thank_you_kind]
    return "Unknown" if result.has_thank_you_page else "-"


def _site_url(result: SiteResult, relative: str, report_dir: str, server_base: Optional[str]) -> str:
    relative = relative.replace(os.sep, "/")
    if server_base:
        return f"/sites/{quote(result.site)}/{quote(relative)}?basePath={quote(server_base, safe='')}"
    site_dir = os.path.relpath(result.site_path, report_dir).replace(os.sep, "/")
    return f"{site_dir}/{relative}"


def build_row(result: SiteResult, report_dir: str, server_base: Optional[str]) -> ReportRow:
    main_page = os.path.basename(result.main_page_path) if result.main_page_path else "index.html"
    favicon_url = None
    relative = result.favicon_relative_path
    if relative and relative.lower().startswith(("http://", "https://", "//", "data:")):
        favicon_url = relative
    elif relative:
        favicon_url = _site_url(result, relative, report_dir, server_base)
    return ReportRow(
        result=result,
        preview_url=_site_url(result, main_page, report_dir, server_base),
        favicon_url=favicon_url,
        thank_you_label=_thank_you_label(result),
    )


def render_report(
    results: List[SiteResult],
    report_dir: str,
    server_base: Optional[str] = None,
    stats: Optional[ScanStats] = None,
) -> str:
    """
    Render the report HTML. With `server_base`, preview and favicon links go
    through the front-end's /sites proxy; otherwise they are relative paths
    from `report_dir`.
    """
    stats = stats or compute_stats(results)
    template = Template(REPORT_TEMPLATE)
    return template.render(
        rows=[build_row(r, report_dir, server_base) for r in results],
        stats=stats,
        generated_at=datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
    )


def _write(path: str, html: str) -> bool:
    try:
        with open(path, "w", encoding="utf-8") as fp:
            fp.write(html)
        return True
    except OSError as e:
        logger.warning("Could not write report to %s: %s", path, e)
        return False


def generate_report(
    results: List[SiteResult],
    root: str,
    server_base: Optional[str] = None,
) -> ReportOutcome:
    """
    Render and persist the report: the scan root first, then the temp dir.
    If neither is writable the report still comes back, with path=None.
    """
    settings = get_settings()
    stats = compute_stats(results)
    html = render_report(results, root, server_base, stats)
    outcome = ReportOutcome(html=html, stats=stats, output=summary_text(stats))

    for folder in (root, settings.report_tmp_dir):
        path = os.path.join(folder, settings.report_filename)
        if _write(path, html):
            outcome.path = path
            break
    return outcome


def read_saved_report(root: str) -> Optional[str]:
    """The on-disk report for `root`, falling back to the temp-dir copy."""
    settings = get_settings()
    for folder in (root, settings.report_tmp_dir):
        path = os.path.join(folder, settings.report_filename)
        if os.path.isfile(path):
            with open(path, "r", encoding="utf-8") as fp:
                return fp.read()
    return None
