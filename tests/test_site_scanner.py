"""
Site scanner and batch runner tests — whole folders, end to end.
"""
from unittest.mock import patch

from sitecheck.models import SiteResult
from sitecheck.services import site_scanner
from sitecheck.services.batch_runner import check_sites, find_site_folders
from sitecheck.services.site_scanner import is_content_page, scan_site

from conftest import PNG_BYTES, page, site_a_files, write_site


class TestScanSite:

    def test_missing_folder_carries_nothing(self, tmp_path):
        result = scan_site(str(tmp_path / "Ghost"))
        assert result.site == "Ghost"
        assert result.exists is False
        flags = result.model_dump(exclude={"site", "site_path"})
        assert not any(v for v in flags.values())
        assert result.pages_data_elements == {}

    def test_site_a_end_to_end(self, scan_root):
        result = scan_site(str(scan_root / "SiteA"))
        assert result.exists is True
        assert result.has_main_page is True
        assert result.main_page_path.endswith("index.html")
        assert result.has_contact_page is True
        assert result.has_contact_phone is True
        assert result.has_contact_email is True
        assert result.has_contact_form is True
        assert result.main_page_images == 6
        assert result.main_page_images_min5 is True
        assert result.images == 6

    def test_content_pages_get_data_elements(self, tmp_path):
        site = write_site(tmp_path, "S", {
            "index.html": page(
                '<nav><a href="index.html">Home</a><a href="games.html">Games</a>'
                '<a href="contact.html">Contact</a><a href="empty.html">Empty</a></nav>'
            ),
            "games.html": page('<main><div class="card">a</div><div class="card">b</div></main>'),
            "empty.html": page("<main><p>nothing</p></main>"),
            "contact.html": page('<main><div class="card">skip</div></main>'),
        })
        result = scan_site(str(site))
        assert list(result.pages_data_elements) == ["games.html"]
        summary = result.pages_data_elements["games.html"]
        assert summary.total == 2
        assert summary.total == sum(summary.breakdown.values())

    def test_failing_detector_degrades_only_its_field(self, scan_root):
        with patch.object(site_scanner, "locate_favicon", side_effect=RuntimeError("boom")):
            result = scan_site(str(scan_root / "SiteA"))
        assert result.has_favicon is False
        assert result.has_main_page is True
        assert result.has_contact_form is True

    def test_content_page_filter(self):
        assert is_content_page("games.html")
        assert not is_content_page("privacy-policy.html")
        assert not is_content_page("Contatti.html")
        assert not is_content_page("home2.html")


class TestBatchRunner:

    def test_folder_discovery_skips_asset_dirs_and_sorts_naturally(self, tmp_path):
        root = tmp_path / "root"
        for name in ["Site10", "site2", "Site1", "css", "js", "img", "Images", "node_modules", ".git"]:
            (root / name).mkdir(parents=True)
        (root / "notes.txt").write_text("x")
        assert find_site_folders(str(root)) == ["Site1", "site2", "Site10"]

    def test_scan_is_idempotent(self, scan_root):
        write_site(scan_root, "SiteB", {"home.html": page("<p>b</p>"), "img/a.png": PNG_BYTES})
        first = check_sites(str(scan_root))
        second = check_sites(str(scan_root))
        assert first == second
        assert [r.site for r in first] == ["SiteA", "SiteB"]

    def test_prints_per_site_status(self, scan_root, capsys):
        check_sites(str(scan_root))
        out = capsys.readouterr().out
        assert "Found 1 folders" in out
        assert "OK: SiteA" in out

    def test_every_summary_is_consistent(self, tmp_path):
        files = site_a_files()
        files["index.html"] = files["index.html"].replace(
            "</nav>", '<a href="faq.html">FAQ</a></nav>'
        )
        files["faq.html"] = page(
            '<main><div class="faq-item">q</div><div class="faq-item">q</div>'
            "<ul><li>1</li><li>2</li><li>3</li></ul></main>"
        )
        write_site(tmp_path, "SiteA", files)
        results = check_sites(str(tmp_path))
        summaries = [s for r in results for s in r.pages_data_elements.values()]
        assert summaries
        for s in summaries:
            assert s.total == sum(s.breakdown.values())

    def test_results_are_site_results(self, scan_root):
        assert all(isinstance(r, SiteResult) for r in check_sites(str(scan_root)))
