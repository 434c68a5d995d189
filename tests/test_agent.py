"""
Remote agent tests — the agent's HTTP surface and the client that talks to it.
"""
import base64
import os

import httpx
import pytest
from fastapi.testclient import TestClient

from sitecheck.agent import agent_app
from sitecheck.config import get_settings
from sitecheck.main import app
from sitecheck.services.agent_client import AgentClient, AgentError, register_with_server
from sitecheck.utils.session import get_store

from conftest import PNG_BYTES, page, write_site

AGENT_URL = "http://agent.test"


@pytest.fixture
def agent():
    # no context manager: the lifespan would try to register with a server
    return TestClient(agent_app)


@pytest.fixture
def remote_site(tmp_path):
    return write_site(tmp_path / "remote", "SiteA", {
        "index.html": page("<h1>Remote</h1>"),
        "images/logo.png": PNG_BYTES,
        ".git/config": "[core]",
        "node_modules/pkg/index.js": "module.exports = 1;",
    })


def _agent_client():
    return AgentClient(AGENT_URL, transport=httpx.ASGITransport(app=agent_app))


def _refusing_transport():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)
    return httpx.MockTransport(handler)


class TestAgentEndpoints:

    def test_list_folder(self, agent, remote_site):
        res = agent.post("/api/list", json={"folderPath": str(remote_site)})
        assert res.status_code == 200
        items = {i["name"]: i for i in res.json()["items"]}
        assert items["images"]["isDirectory"] is True
        assert items["index.html"]["isDirectory"] is False
        assert items["index.html"]["size"] > 0

    def test_list_requires_a_folder(self, agent, remote_site):
        assert agent.post("/api/list", json={}).status_code == 400
        res = agent.post("/api/list", json={"folderPath": str(remote_site / "index.html")})
        assert res.status_code == 400
        assert "not a folder" in res.json()["error"]

    def test_read_file(self, agent, remote_site):
        res = agent.get("/api/file", params={"path": str(remote_site / "index.html")})
        assert res.status_code == 200
        assert "<h1>Remote</h1>" in res.text

    def test_read_missing_file_is_500(self, agent, remote_site):
        res = agent.get("/api/file", params={"path": str(remote_site / "missing.html")})
        assert res.status_code == 500
        assert "error" in res.json()

    def test_access(self, agent, remote_site):
        ok = agent.post("/api/access", json={"folderPath": str(remote_site)}).json()
        assert ok == {"accessible": True, "isDirectory": True, "path": str(remote_site)}
        missing = agent.post("/api/access", json={"folderPath": str(remote_site / "nope")}).json()
        assert missing["accessible"] is False
        assert "error" in missing

    def test_copy_file_and_directory(self, agent, remote_site):
        res = agent.post("/api/copy", json={"sourcePath": str(remote_site / "images" / "logo.png")}).json()
        assert res["type"] == "file"
        assert base64.b64decode(res["content"]) == PNG_BYTES
        res = agent.post("/api/copy", json={"sourcePath": str(remote_site / "images")}).json()
        assert res == {"type": "directory", "path": str(remote_site / "images")}

    def test_allowed_roots_are_enforced(self, agent, remote_site, tmp_path, monkeypatch):
        allowed = tmp_path / "allowed"
        allowed.mkdir()
        monkeypatch.setattr(get_settings(), "agent_allowed_roots", [str(allowed)])

        res = agent.post("/api/list", json={"folderPath": str(remote_site)})
        assert res.status_code == 403
        res = agent.get("/api/file", params={"path": str(remote_site / "index.html")})
        assert res.status_code == 403
        access = agent.post("/api/access", json={"folderPath": str(remote_site)}).json()
        assert access["accessible"] is False
        assert agent.post("/api/list", json={"folderPath": str(allowed)}).status_code == 200
        assert agent.get("/health").json()["restricted"] is True


class TestAgentClient:

    @pytest.mark.asyncio
    async def test_list_and_read(self, remote_site):
        client = _agent_client()
        entries = await client.list(str(remote_site))
        assert "index.html" in [e.name for e in entries]
        text = await client.read_file(str(remote_site / "index.html"))
        assert "Remote" in text

    @pytest.mark.asyncio
    async def test_access_and_copy(self, remote_site):
        client = _agent_client()
        access = await client.access(str(remote_site))
        assert access.accessible is True
        assert access.is_directory is True
        copied = await client.copy(str(remote_site / "images" / "logo.png"))
        assert copied.type == "file"

    @pytest.mark.asyncio
    async def test_error_status_raises(self, remote_site):
        with pytest.raises(AgentError, match="400"):
            await _agent_client().list(str(remote_site / "index.html"))

    @pytest.mark.asyncio
    async def test_unreachable_agent_raises(self):
        client = AgentClient(AGENT_URL, transport=_refusing_transport())
        with pytest.raises(AgentError, match="unreachable"):
            await client.access("/anything")

    @pytest.mark.asyncio
    async def test_mirror_copies_tree(self, remote_site, tmp_path):
        target = str(tmp_path / "mirror")
        result = await _agent_client().mirror(str(remote_site), target)
        assert result == target
        assert os.path.isfile(os.path.join(target, "index.html"))
        with open(os.path.join(target, "images", "logo.png"), "rb") as fp:
            assert fp.read() == PNG_BYTES
        assert not os.path.exists(os.path.join(target, ".git"))
        assert not os.path.exists(os.path.join(target, "node_modules"))

    @pytest.mark.asyncio
    async def test_mirror_refuses_missing_folder(self, tmp_path):
        with pytest.raises(AgentError):
            await _agent_client().mirror(str(tmp_path / "nope"), str(tmp_path / "mirror"))

    @pytest.mark.asyncio
    async def test_mirrored_folder_scans_like_the_source(self, remote_site, tmp_path):
        from sitecheck.services.site_scanner import scan_site

        target = await _agent_client().mirror(str(remote_site), str(tmp_path / "mirror" / "SiteA"))
        mirrored = scan_site(target)
        source = scan_site(str(remote_site))
        assert mirrored.has_main_page == source.has_main_page is True
        assert mirrored.images == source.images == 1


class TestRegistration:

    @pytest.mark.asyncio
    async def test_registers_with_front_end(self):
        transport = httpx.ASGITransport(app=app)
        ok = await register_with_server("http://server.test", "https://agent.test", transport=transport)
        assert ok is True
        assert get_store().default_agent_url == "https://agent.test"

    @pytest.mark.asyncio
    async def test_unreachable_server_returns_false(self):
        ok = await register_with_server("http://server.test", "https://agent.test", transport=_refusing_transport())
        assert ok is False


def _scripted_agent(listing, list_status=200):
    """An agent that answers every folder with `listing` and every copy with b"pwn"."""
    def handler(request):
        if request.url.path == "/api/access":
            return httpx.Response(200, json={"accessible": True, "isDirectory": True, "path": "/r"})
        if request.url.path == "/api/list":
            if list_status != 200:
                return httpx.Response(list_status, json={"error": "disk vanished"})
            return httpx.Response(200, json={"items": listing, "path": "/r"})
        if request.url.path == "/api/copy":
            return httpx.Response(200, json={"type": "file", "content": base64.b64encode(b"pwn").decode()})
        return httpx.Response(404)
    return AgentClient(AGENT_URL, transport=httpx.MockTransport(handler))


class TestMirrorBoundary:

    @pytest.mark.asyncio
    async def test_entry_names_cannot_leave_the_mirror(self, tmp_path):
        listing = [
            {"name": "../escaped.txt", "path": "/r/../escaped.txt", "isDirectory": False, "size": 3},
            {"name": "sub/nested.txt", "path": "/r/sub/nested.txt", "isDirectory": False, "size": 3},
            {"name": "..\\win.txt", "path": "/r/win.txt", "isDirectory": False, "size": 3},
            {"name": "..", "path": "/", "isDirectory": True, "size": 0},
            {"name": "ok.txt", "path": "/r/ok.txt", "isDirectory": False, "size": 3},
        ]
        target = tmp_path / "mirror"
        await _scripted_agent(listing).mirror("/r", str(target))

        assert not (tmp_path / "escaped.txt").exists()
        assert sorted(os.listdir(target)) == ["ok.txt"]
        assert (target / "ok.txt").read_bytes() == b"pwn"

    @pytest.mark.asyncio
    async def test_failed_mirror_removes_its_temp_dir(self, tmp_path, monkeypatch):
        from sitecheck.services import agent_client

        created = tmp_path / "sitecheck-mirror-x"

        def fake_mkdtemp(prefix=""):
            created.mkdir()
            return str(created)

        monkeypatch.setattr(agent_client.tempfile, "mkdtemp", fake_mkdtemp)
        with pytest.raises(AgentError, match="500"):
            await _scripted_agent([], list_status=500).mirror("/r")
        assert not created.exists()

    @pytest.mark.asyncio
    async def test_failed_mirror_keeps_a_caller_supplied_dir(self, tmp_path):
        target = tmp_path / "keep"
        target.mkdir()
        with pytest.raises(AgentError):
            await _scripted_agent([], list_status=500).mirror("/r", str(target))
        assert target.is_dir()
