"""
Serves files out of scanned site folders so the report's preview frame can
load a site and its assets.
"""
import os
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import FileResponse

from sitecheck.config import get_settings
from sitecheck.utils.paths import is_within, normalize_root, safe_join
from sitecheck.utils.session import ScanContext, get_scan_context

router = APIRouter()

FRAME_HEADERS = {
    "X-Frame-Options": "ALLOWALL",
    "Content-Security-Policy": "frame-ancestors *",
}


def _preview_root(base_path: Optional[str], ctx: ScanContext) -> str:
    """
    The basePath query parameter is honoured only for the caller's own scan
    root or folders under the configured base path.
    """
    if not base_path:
        return ctx.base_path
    requested = normalize_root(base_path)
    if requested == ctx.base_path or is_within(get_settings().base_path, requested):
        return requested
    raise HTTPException(status_code=403, detail="Forbidden")


@router.get("/sites/{site_name}/{file_path:path}")
async def serve_site_file(
    site_name: str,
    file_path: str,
    base_path: Optional[str] = Query(None, alias="basePath"),
    ctx: ScanContext = Depends(get_scan_context),
):
    root = _preview_root(base_path, ctx)
    full_path = safe_join(root, site_name, file_path or "index.html")
    if full_path is None:
        raise HTTPException(status_code=403, detail="Forbidden")
    if not os.path.isfile(full_path):
        raise HTTPException(status_code=404, detail="File not found")
    return FileResponse(full_path, headers=FRAME_HEADERS)
