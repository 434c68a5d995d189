"""
Front-end API tests — scan endpoints, report retrieval, preview proxy and
agent registration.
"""
import re

import pytest
from fastapi.testclient import TestClient

from sitecheck.config import get_settings
from sitecheck.main import app
from sitecheck.routers import scan_router
from sitecheck.utils.session import SESSION_COOKIE, ScanContextStore

from conftest import site_a_files, write_site


def _analyze(client, folder, headers=None, **extra):
    body = {"folderPath": str(folder), **extra}
    return client.post("/api/analyze", json=body, headers=headers or {})


class TestHealth:

    def test_health_ok(self, client):
        res = client.get("/health")
        assert res.status_code == 200
        data = res.json()
        assert data["status"] == "ok"
        assert data["agent_registered"] is False

    def test_control_panel_served(self, client):
        res = client.get("/")
        assert res.status_code == 200
        assert "analyzeBtn" in res.text


class TestListSites:

    def test_lists_site_folders(self, client, scan_root):
        res = client.get("/api/sites", params={"path": str(scan_root)})
        assert res.status_code == 200
        assert res.json()["sites"] == ["SiteA"]
        assert res.json()["count"] == 1

    def test_missing_folder_is_404(self, client, tmp_path):
        res = client.get("/api/sites", params={"path": str(tmp_path / "nope")})
        assert res.status_code == 404


class TestAnalyze:

    def test_successful_scan(self, client, scan_root):
        res = _analyze(client, scan_root)
        assert res.status_code == 200
        data = res.json()
        assert data["success"] is True
        assert "Total sites: 1" in data["output"]
        assert data["stats"]["total"] == 1
        assert data["stats"]["withContact"] == 1
        assert data["stats"]["withMainPageImages5"] == 1
        assert 'data-site="SiteA"' in data["report"]
        assert (scan_root / get_settings().report_filename).is_file()

    def test_missing_folder_returns_explanation(self, client, tmp_path):
        res = _analyze(client, tmp_path / "not-here")
        assert res.status_code == 200
        data = res.json()
        assert data["success"] is False
        assert "Folder not found" in data["error"]
        assert "scan-error" in data["report"]
        assert all(v == 0 for v in data["stats"].values())

    def test_windows_path_uses_hosted_fallback(self, client, tmp_path, monkeypatch):
        settings = get_settings()
        monkeypatch.setattr(settings, "hosted", True)
        monkeypatch.setattr(settings, "base_path", str(tmp_path))
        write_site(tmp_path / settings.hosted_fallback_subpath, "SiteA", site_a_files())
        res = _analyze(client, "C:\\Users\\me\\Sites")
        data = res.json()
        assert data["success"] is True
        assert data["stats"]["total"] == 1

    def test_windows_path_without_fallback_explains(self, client, tmp_path, monkeypatch):
        settings = get_settings()
        monkeypatch.setattr(settings, "hosted", True)
        monkeypatch.setattr(settings, "base_path", str(tmp_path))
        data = _analyze(client, "D:\\Sites").json()
        assert data["success"] is False
        assert "not reachable" in data["error"]
        assert "sitecheck-agent" in data["report"]

    def test_scan_through_agent_mirror(self, client, scan_root, tmp_path, monkeypatch):
        calls = []

        class FakeAgentClient:
            def __init__(self, agent_url):
                self.agent_url = agent_url

            async def mirror(self, folder_path):
                calls.append((self.agent_url, folder_path))
                return str(scan_root)

        monkeypatch.setattr(scan_router, "AgentClient", FakeAgentClient)
        remote = str(tmp_path / "on-the-operators-machine")
        data = _analyze(client, remote, agentUrl="https://agent.test").json()
        assert data["success"] is True
        assert calls == [("https://agent.test", remote)]

    def test_unexpected_failure_is_500(self, client, scan_root, monkeypatch):
        def explode(root):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(scan_router, "check_sites", explode)
        res = _analyze(client, scan_root)
        assert res.status_code == 500
        data = res.json()
        assert data["success"] is False
        assert data["error"] == "disk on fire"
        assert "RuntimeError" in data["stderr"]


class TestReport:

    def test_not_found_before_any_scan(self, client, tmp_path):
        res = client.get("/api/report", params={"basePath": str(tmp_path)})
        assert res.status_code == 404
        assert "Report not found" in res.text

    def test_served_after_scan(self, client, scan_root):
        _analyze(client, scan_root)
        res = client.get("/api/report")
        assert res.status_code == 200
        assert 'data-site="SiteA"' in res.text


class TestPreview:

    def test_serves_site_files_with_frame_headers(self, client, scan_root):
        _analyze(client, scan_root)
        res = client.get("/sites/SiteA/index.html", params={"basePath": str(scan_root)})
        assert res.status_code == 200
        assert res.headers["x-frame-options"] == "ALLOWALL"
        assert res.headers["content-security-policy"] == "frame-ancestors *"
        assert "Welcome" in res.text

    def test_missing_file_is_404(self, client, scan_root):
        _analyze(client, scan_root)
        assert client.get("/sites/SiteA/nope.html").status_code == 404

    def test_traversal_is_forbidden(self, client, scan_root):
        (scan_root / "secret.txt").write_text("secret")
        _analyze(client, scan_root)
        res = client.get("/sites/SiteA/..%2F..%2Fsecret.txt")
        assert res.status_code == 403

    def test_foreign_base_path_is_forbidden(self, client, scan_root, tmp_path, monkeypatch):
        allowed = tmp_path / "allowed"
        allowed.mkdir()
        monkeypatch.setattr(get_settings(), "base_path", str(allowed))
        res = client.get("/sites/SiteA/index.html", params={"basePath": str(scan_root)})
        assert res.status_code == 403


class TestRegisterAgent:

    def test_registration_becomes_default(self, client):
        res = client.post("/api/register-agent", json={"agentUrl": "https://agent.test"})
        assert res.status_code == 200
        assert res.json() == {"success": True, "agentUrl": "https://agent.test"}
        assert client.get("/health").json()["agent_registered"] is True


class TestMultiOperator:

    @pytest.fixture
    def operators(self, tmp_path, monkeypatch):
        settings = get_settings()
        monkeypatch.setattr(settings, "single_operator", False)
        monkeypatch.setattr(settings, "base_path", str(tmp_path / "elsewhere"))
        (tmp_path / "elsewhere").mkdir()

    @pytest.fixture
    def browser(self, operators):
        # own cookie jar, so a session cookie never reaches the shared client
        return TestClient(app)

    def test_separate_sessions_keep_separate_reports(self, browser, scan_root):
        _analyze(browser, scan_root, headers={"X-Session-Id": "alice"})
        assert browser.get("/api/report", headers={"X-Session-Id": "alice"}).status_code == 200
        assert browser.get("/api/report", headers={"X-Session-Id": "bob"}).status_code == 404

    def test_analyze_pins_the_session_in_a_cookie(self, browser, scan_root):
        res = _analyze(browser, scan_root, headers={"X-Session-Id": "alice"})
        assert res.cookies.get(SESSION_COOKIE) == "alice"

    def test_report_and_preview_load_without_headers(self, browser, scan_root):
        report = _analyze(browser, scan_root, headers={"X-Session-Id": "alice"}).json()["report"]
        preview_url = re.search(r'data-url="([^"]+)"', report).group(1).replace("&amp;", "&")

        assert browser.get("/api/report").status_code == 200
        res = browser.get(preview_url)
        assert res.status_code == 200
        assert "Welcome" in res.text

    def test_other_operator_cannot_preview_the_scan(self, browser, scan_root):
        report = _analyze(browser, scan_root, headers={"X-Session-Id": "alice"}).json()["report"]
        preview_url = re.search(r'data-url="([^"]+)"', report).group(1).replace("&amp;", "&")
        assert TestClient(app).get(preview_url, headers={"X-Session-Id": "bob"}).status_code == 403

    def test_no_cookie_in_single_operator_mode(self, client, scan_root):
        res = _analyze(client, scan_root, headers={"X-Session-Id": "alice"})
        assert SESSION_COOKIE not in res.cookies


class TestContextStore:

    def test_least_recently_used_session_is_dropped(self, tmp_path):
        store = ScanContextStore(default_base_path=str(tmp_path), single_operator=False, max_contexts=2)
        mirror = tmp_path / "mirror-a"
        mirror.mkdir()
        store.get("a").mirror_dir = str(mirror)
        store.get("b")
        store.get("b")
        store.get("c")

        assert len(store) == 2
        assert not mirror.exists()
        assert store.get("a").mirror_dir is None

    def test_shared_context_is_never_dropped(self, tmp_path):
        store = ScanContextStore(default_base_path=str(tmp_path), single_operator=False, max_contexts=1)
        shared = store.get(None)
        shared.last_report = "<p>kept</p>"
        store.get("a")
        store.get("b")
        assert store.get(None).last_report == "<p>kept</p>"
