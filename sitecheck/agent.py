"""
sitecheck agent — exposes a local folder to a remote sitecheck server.

Anyone holding the agent's URL can read every file under its allowed roots,
so set AGENT_ALLOWED_ROOTS to the folders you actually want scanned. With no
roots configured the whole filesystem is readable.
"""
import base64
import os
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .config import get_settings
from .models import AccessResponse, CopyRequest, CopyResponse, FolderRequest, ListEntry, ListResponse
from .services.agent_client import register_with_server
from .utils.paths import is_within

settings = get_settings()


class AgentPathError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


def checked_path(raw: Optional[str]) -> str:
    if not raw:
        raise AgentPathError(400, "Path not specified")
    path = os.path.normpath(raw)
    roots = get_settings().agent_allowed_roots
    if roots and not any(is_within(root, path) for root in roots):
        raise AgentPathError(403, "Path is outside the folders this agent serves")
    return path


@asynccontextmanager
async def lifespan(app: FastAPI):
    print(f"\n🔌 Agent running on port {settings.agent_port}")
    print("📁 Ready to serve local files\n")
    if not settings.agent_allowed_roots:
        print("⚠️  AGENT_ALLOWED_ROOTS is empty: every readable file is exposed")
    if settings.agent_public_url:
        print(f"🌐 Public URL: {settings.agent_public_url}")
        if await register_with_server(settings.server_url, settings.agent_public_url):
            print("✅ Agent registered with the server\n")
        else:
            print("⚠️  Could not register with the server (fine if it is not running yet)\n")
    else:
        print(f"💡 No public URL configured; the agent is only reachable on http://localhost:{settings.agent_port}\n")
    yield
    print("\n⏹️  Agent stopped\n")


agent_app = FastAPI(title="sitecheck agent", version="1.0.0", lifespan=lifespan)

agent_app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


@agent_app.exception_handler(AgentPathError)
async def agent_path_error_handler(request, exc: AgentPathError):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


@agent_app.exception_handler(OSError)
async def os_error_handler(request, exc: OSError):
    return JSONResponse(status_code=500, content={"error": str(exc)})


@agent_app.post("/api/list", response_model=ListResponse)
async def list_folder(req: FolderRequest):
    path = checked_path(req.folder_path)
    if not os.path.isdir(path):
        raise AgentPathError(400, "The given path is not a folder")

    items = []
    for name in sorted(os.listdir(path)):
        item_path = os.path.join(path, name)
        try:
            stat = os.stat(item_path)
        except OSError:
            continue
        items.append(ListEntry(name=name, path=item_path, is_directory=os.path.isdir(item_path), size=stat.st_size))
    return ListResponse(items=items, path=path)


@agent_app.get("/api/file", response_class=PlainTextResponse)
async def read_file(path: Optional[str] = Query(None)):
    checked = checked_path(path)
    with open(checked, "r", encoding="utf-8", errors="replace") as fp:
        return PlainTextResponse(fp.read())


@agent_app.post("/api/access", response_model=AccessResponse, response_model_exclude_none=True)
async def access(req: FolderRequest):
    try:
        path = checked_path(req.folder_path)
    except AgentPathError as e:
        return AccessResponse(accessible=False, error=str(e))
    if not os.path.exists(path):
        return AccessResponse(accessible=False, error=f"No such file or directory: {path}")
    return AccessResponse(accessible=True, is_directory=os.path.isdir(path), path=path)


@agent_app.post("/api/copy", response_model=CopyResponse, response_model_exclude_none=True)
async def copy(req: CopyRequest):
    path = checked_path(req.source_path)
    if os.path.isdir(path):
        return CopyResponse(type="directory", path=path)
    with open(path, "rb") as fp:
        content = base64.b64encode(fp.read()).decode("ascii")
    return CopyResponse(type="file", content=content)


@agent_app.api_route("/health", methods=["GET", "HEAD"])
async def health():
    return {"status": "ok", "restricted": bool(get_settings().agent_allowed_roots)}


def main():
    uvicorn.run("sitecheck.agent:agent_app", host=settings.agent_host, port=settings.agent_port)


if __name__ == "__main__":
    main()
