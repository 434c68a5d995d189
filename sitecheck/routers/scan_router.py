"""
Scan API — list site folders, run a batch scan, fetch the last report, and
accept remote-agent registrations.
"""
import asyncio
import html
import logging
import os
import traceback
from typing import Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import HTMLResponse, JSONResponse

from sitecheck.config import get_settings
from sitecheck.models import AnalyzeRequest, AnalyzeResponse, RegisterAgentRequest, SitesResponse
from sitecheck.services.agent_client import AgentClient, AgentError
from sitecheck.services.batch_runner import check_sites, find_site_folders
from sitecheck.services.report_generator import generate_report, read_saved_report
from sitecheck.utils.paths import hosted_fallback_root, is_windows_path, normalize_root
from sitecheck.utils.session import ScanContext, get_scan_context, get_session_id, get_store, remember_session

logger = logging.getLogger(__name__)

router = APIRouter()


class ScanPathError(Exception):
    """The requested folder cannot be scanned from here; carries an HTML explanation."""

    def __init__(self, message: str, hint: str = ""):
        super().__init__(message)
        self.hint = hint

    @property
    def html(self) -> str:
        hint = f"<p>{self.hint}</p>" if self.hint else ""
        return (
            '<div class="scan-error">'
            f"<h3>⚠️ {html.escape(str(self))}</h3>"
            f"{hint}"
            "</div>"
        )


AGENT_HINT = (
    "This server cannot see folders on your computer. Start the sitecheck agent "
    "on the machine that holds the sites (<code>sitecheck-agent</code>), expose it "
    "through a tunnel, and register its public URL, or copy the sites into the "
    "server's <code>{subpath}</code> folder."
)


async def _mirror_through_agent(ctx: ScanContext, agent_url: str, folder: str) -> str:
    try:
        mirror = await AgentClient(agent_url).mirror(folder)
    except AgentError as e:
        raise ScanPathError(f"The agent could not provide {folder}", html.escape(str(e)))
    if ctx.mirror_dir != mirror:
        ctx.discard_mirror()
    ctx.mirror_dir = mirror
    return mirror


async def resolve_scan_root(ctx: ScanContext, requested: str, agent_url: Optional[str]) -> Tuple[str, bool]:
    """
    Map the requested folder to a local directory the scanner can walk.
    Returns (root, via_agent); raises ScanPathError when nothing works.
    """
    settings = get_settings()

    if is_windows_path(requested) and settings.hosted:
        if agent_url:
            return await _mirror_through_agent(ctx, agent_url, requested), True
        fallback = hosted_fallback_root(settings.base_path, settings.hosted_fallback_subpath)
        if fallback:
            logger.info("Using hosted fallback %s for %s", fallback, requested)
            return fallback, False
        raise ScanPathError(
            f"Windows path {requested} is not reachable from this server",
            AGENT_HINT.format(subpath=html.escape(settings.hosted_fallback_subpath)),
        )

    root = normalize_root(requested)
    if os.path.isdir(root):
        return root, False
    if agent_url:
        return await _mirror_through_agent(ctx, agent_url, requested), True
    raise ScanPathError(
        f"Folder not found: {requested}",
        AGENT_HINT.format(subpath=html.escape(settings.hosted_fallback_subpath)),
    )


@router.get("/api/sites", response_model=SitesResponse)
async def list_sites(path: Optional[str] = Query(None)):
    target = normalize_root(path or get_settings().base_path)
    if not os.path.isdir(target):
        raise HTTPException(status_code=404, detail=f"Folder not found: {target}")
    try:
        sites = find_site_folders(target)
    except OSError as e:
        raise HTTPException(status_code=500, detail=str(e))
    return SitesResponse(sites=sites, count=len(sites), path=target)


@router.post("/api/analyze", response_model=AnalyzeResponse)
async def analyze(
    req: AnalyzeRequest,
    response: Response,
    ctx: ScanContext = Depends(get_scan_context),
    session_id: Optional[str] = Depends(get_session_id),
):
    remember_session(response, session_id)
    requested = req.folder_path or get_settings().base_path
    agent_url = req.agent_url or ctx.agent_url

    try:
        root, via_agent = await resolve_scan_root(ctx, requested, agent_url)
    except ScanPathError as e:
        print(f"⚠️  Cannot scan {requested}: {e}")
        return AnalyzeResponse(success=False, error=str(e), report=e.html)

    try:
        loop = asyncio.get_running_loop()
        results = await loop.run_in_executor(None, check_sites, root)
        outcome = generate_report(results, root, server_base=root)
    except Exception as e:
        logger.exception("Scan of %s failed", root)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": str(e), "output": "", "stderr": traceback.format_exc()},
        )

    ctx.base_path = root
    ctx.last_report = outcome.html
    if via_agent:
        print(f"🔌 Scanned {requested} through the agent ({root})")
    return AnalyzeResponse(success=True, output=outcome.output, report=outcome.html, stats=outcome.stats)


@router.get("/api/report", response_class=HTMLResponse)
async def get_report(
    base_path: Optional[str] = Query(None, alias="basePath"),
    ctx: ScanContext = Depends(get_scan_context),
):
    root = normalize_root(base_path) if base_path else ctx.base_path
    if ctx.last_report and root == ctx.base_path:
        return HTMLResponse(ctx.last_report)
    report = read_saved_report(root)
    if report is None:
        return HTMLResponse("<p>Report not found. Run an analysis first.</p>", status_code=404)
    return HTMLResponse(report)


@router.post("/api/register-agent")
async def register_agent(req: RegisterAgentRequest, session_id: Optional[str] = Depends(get_session_id)):
    get_store().set_agent_url(req.agent_url, session_id)
    print(f"🔌 Agent registered: {req.agent_url}")
    return {"success": True, "agentUrl": req.agent_url}
