"""
Client for the remote agent — the small process that serves a folder living
on the operator's own machine.

The agent can read any file its allowed roots cover, to whoever holds its
public URL. The client therefore exposes only the four calls the scanner
needs (list, read_file, access, copy) plus registration, and mirror() copies
a remote folder into a local temp dir so the normal scanner can run on it.
"""
import base64
import logging
import os
import shutil
import tempfile
from typing import Any, Dict, List, Optional

import httpx

from ..config import get_settings
from ..models import AccessResponse, CopyResponse, ListEntry
from ..utils.paths import safe_join

logger = logging.getLogger(__name__)

# Never worth pulling over the wire for a structure scan
MIRROR_SKIP_DIRS = {"node_modules"}


class AgentError(Exception):
    """The agent could not be reached or refused the request."""


def _local_target(local_dir: str, name: str) -> Optional[str]:
    """Where a listed entry lands in the mirror; None for names that would leave it."""
    if not name or name in (".", "..") or "/" in name or "\\" in name:
        return None
    return safe_join(local_dir, name)


class AgentClient:
    def __init__(
        self,
        agent_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.agent_url = agent_url.rstrip("/")
        self.timeout = timeout if timeout is not None else get_settings().agent_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=self.agent_url, timeout=self.timeout, transport=self._transport)

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            async with self._client() as client:
                response = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise AgentError(f"Agent at {self.agent_url} unreachable: {e}") from e
        if response.status_code >= 400:
            try:
                detail = response.json().get("error") or response.text
            except ValueError:
                detail = response.text
            raise AgentError(f"Agent returned {response.status_code} for {url}: {detail}")
        return response

    async def _post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._request("POST", url, json=payload)
        return response.json()

    # ── Capabilities ───────────────────────────────────────────────────────────

    async def list(self, folder_path: str) -> List[ListEntry]:
        data = await self._post("/api/list", {"folderPath": folder_path})
        return [ListEntry.model_validate(item) for item in data.get("items", [])]

    async def read_file(self, path: str) -> str:
        response = await self._request("GET", "/api/file", params={"path": path})
        return response.text

    async def access(self, folder_path: str) -> AccessResponse:
        data = await self._post("/api/access", {"folderPath": folder_path})
        return AccessResponse.model_validate(data)

    async def copy(self, source_path: str) -> CopyResponse:
        data = await self._post("/api/copy", {"sourcePath": source_path})
        return CopyResponse.model_validate(data)

    async def register(self, server_url: str) -> bool:
        return await register_with_server(server_url, self.agent_url, transport=self._transport)

    # ── Mirroring ──────────────────────────────────────────────────────────────

    async def mirror(self, folder_path: str, target_dir: Optional[str] = None) -> str:
        """
        Recreate the remote folder tree under a local directory and return
        its path. Files the agent fails to copy, and entries whose names would
        land outside the mirror, are skipped with a warning. A temp dir this
        call created is removed again if listing fails part-way.
        """
        access = await self.access(folder_path)
        if not access.accessible or not access.is_directory:
            raise AgentError(access.error or f"{folder_path} is not an accessible folder on the agent")

        owned = target_dir is None
        target_dir = target_dir or tempfile.mkdtemp(prefix="sitecheck-mirror-")
        try:
            await self._mirror_dir(folder_path, target_dir)
        except BaseException:
            if owned:
                shutil.rmtree(target_dir, ignore_errors=True)
            raise
        return target_dir

    async def _mirror_dir(self, remote_dir: str, local_dir: str) -> None:
        os.makedirs(local_dir, exist_ok=True)
        for entry in await self.list(remote_dir):
            local_path = _local_target(local_dir, entry.name)
            if local_path is None:
                logger.warning("Skipping %s: unsafe entry name %r", entry.path, entry.name)
                continue
            if entry.is_directory:
                if entry.name.startswith(".") or entry.name in MIRROR_SKIP_DIRS:
                    continue
                await self._mirror_dir(entry.path, local_path)
                continue
            try:
                copied = await self.copy(entry.path)
            except AgentError as e:
                logger.warning("Skipping %s: %s", entry.path, e)
                continue
            if copied.type == "file" and copied.content is not None:
                with open(local_path, "wb") as fp:
                    fp.write(base64.b64decode(copied.content))


async def register_with_server(
    server_url: str,
    agent_url: str,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> bool:
    """Announce the agent's public URL to the front-end. Returns False on any failure."""
    try:
        async with httpx.AsyncClient(timeout=10, transport=transport) as client:
            response = await client.post(
                f"{server_url.rstrip('/')}/api/register-agent", json={"agentUrl": agent_url}
            )
        return response.is_success
    except httpx.HTTPError as e:
        logger.info("Agent registration with %s failed: %s", server_url, e)
        return False
