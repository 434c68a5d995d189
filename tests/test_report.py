"""
Report generator tests — stats, summary text, rendering and persistence.
"""
import os
import re

from sitecheck.config import get_settings
from sitecheck.models import SiteResult, ThankYouKind
from sitecheck.services.batch_runner import check_sites
from sitecheck.services.report_generator import (
    build_row,
    compute_stats,
    generate_report,
    read_saved_report,
    render_report,
    summary_text,
)


def _row_html(html: str, site: str) -> str:
    match = re.search(rf'<tr class="site-row" data-site="{site}">(.*?)</tr>', html, re.S)
    assert match, f"no row for {site}"
    return match.group(1)


class TestStats:

    def test_counts_each_flag(self):
        results = [
            SiteResult(site="A", site_path="/x/A", exists=True, has_main_page=True,
                       has_contact_page=True, images=7, main_page_images=5, has_contact_form=True),
            SiteResult(site="B", site_path="/x/B", exists=True, images=4, has_contact_map=True),
            SiteResult(site="C", site_path="/x/C"),
        ]
        stats = compute_stats(results)
        assert stats.total == 3
        assert stats.existing == 2
        assert stats.with_main == 1
        assert stats.with_contact == 1
        assert stats.with_images5 == 1
        assert stats.with_main_page_images5 == 1
        assert stats.with_map == 1
        assert stats.with_form == 1
        assert stats.with_favicon == 0

    def test_stats_serialize_camel_case(self):
        dumped = compute_stats([]).model_dump(by_alias=True)
        assert set(dumped) == {
            "total", "existing", "withMain", "withContact", "withFavicon", "withThankYou",
            "withImages5", "withMainPageImages5", "withMap", "withForm",
        }

    def test_summary_text_lines(self):
        lines = summary_text(compute_stats([SiteResult(site="A", site_path="/x/A", exists=True)])).splitlines()
        assert lines[0] == "Total sites: 1"
        assert lines[1] == "Existing: 1"
        assert lines[-1] == "With contact form: 0"
        assert len(lines) == 10


class TestRendering:

    def test_site_a_row_has_checkmarks(self, scan_root):
        results = check_sites(str(scan_root))
        html = render_report(results, str(scan_root))
        row = _row_html(html, "SiteA")
        assert row.count("✓") >= 5
        assert "📱 View" in row

    def test_relative_links_without_server(self, tmp_path):
        result = SiteResult(site="Site One", site_path=str(tmp_path / "Site One"), exists=True,
                            main_page_path=str(tmp_path / "Site One" / "home.html"))
        row = build_row(result, str(tmp_path), None)
        assert row.preview_url == "Site One/home.html"

    def test_proxied_links_with_server(self, tmp_path):
        result = SiteResult(site="Site One", site_path=str(tmp_path / "Site One"), exists=True,
                            favicon_relative_path="img/fav.ico")
        row = build_row(result, str(tmp_path), "/srv/exports")
        assert row.preview_url == "/sites/Site%20One/index.html?basePath=%2Fsrv%2Fexports"
        assert row.favicon_url == "/sites/Site%20One/img/fav.ico?basePath=%2Fsrv%2Fexports"

    def test_external_favicon_is_used_as_is(self, tmp_path):
        result = SiteResult(site="S", site_path=str(tmp_path / "S"), exists=True,
                            has_favicon=True, favicon_relative_path="https://cdn.test/fav.png")
        assert build_row(result, str(tmp_path), "/srv").favicon_url == "https://cdn.test/fav.png"

    def test_thank_you_labels(self, tmp_path):
        def label(**kw):
            return build_row(SiteResult(site="S", site_path="/x/S", exists=True, **kw), str(tmp_path), None).thank_you_label
        assert label(has_thank_you_page=True, thank_you_kind=ThankYouKind.MODAL) == "Modal"
        assert label(has_thank_you_page=True, thank_you_kind=ThankYouKind.PAGE) == "Page"
        assert label() == "-"

    def test_site_names_are_escaped(self, tmp_path):
        result = SiteResult(site="<b>x</b>", site_path="/x/b", exists=True)
        html = render_report([result], str(tmp_path))
        assert "<b>x</b>" not in html
        assert "&lt;b&gt;x&lt;/b&gt;" in html

    def test_page_elements_listed(self, tmp_path):
        from sitecheck.models import DataElementSummary
        summary = DataElementSummary.from_breakdown({"cards": 3, "lists": 1})
        result = SiteResult(site="S", site_path="/x/S", exists=True, pages_data_elements={"games.html": summary})
        row = _row_html(render_report([result], str(tmp_path)), "S")
        assert "<strong>games.html</strong> - 4" in row


class TestPersistence:

    def test_writes_into_scan_root(self, scan_root):
        outcome = generate_report(check_sites(str(scan_root)), str(scan_root))
        expected = os.path.join(str(scan_root), get_settings().report_filename)
        assert outcome.path == expected
        assert os.path.isfile(expected)
        assert outcome.output.startswith("Total sites: 1")
        assert read_saved_report(str(scan_root)) == outcome.html

    def test_falls_back_to_temp_dir(self, tmp_path):
        missing_root = str(tmp_path / "no-such-root")
        outcome = generate_report([], missing_root)
        assert outcome.path == os.path.join(get_settings().report_tmp_dir, get_settings().report_filename)
        assert read_saved_report(missing_root) == outcome.html

    def test_kept_in_memory_when_nothing_is_writable(self, tmp_path, monkeypatch):
        monkeypatch.setattr(get_settings(), "report_tmp_dir", str(tmp_path / "also-missing"))
        outcome = generate_report([], str(tmp_path / "no-such-root"))
        assert outcome.path is None
        assert "<table>" in outcome.html
        assert outcome.stats.total == 0
