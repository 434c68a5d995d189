"""
sitecheck FastAPI application — control panel, scan API and site preview proxy.
"""
import os
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse

from .config import get_settings
from .routers.preview_router import router as preview_router
from .routers.scan_router import router as scan_router
from .utils.session import get_store

settings = get_settings()

STATIC_DIR = os.path.join(os.path.dirname(__file__), "static")


@asynccontextmanager
async def lifespan(app: FastAPI):
    print(f"🚀 Server running on http://localhost:{settings.port}")
    print("📁 Open the address above in your browser")
    if settings.hosted:
        print(f"☁️  Hosted mode: Windows paths fall back to {settings.hosted_fallback_subpath}/")
    yield


app = FastAPI(
    title="sitecheck",
    description="Structure checks for folders of static website exports.",
    version="1.0.0",
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(scan_router)
app.include_router(preview_router)


@app.get("/", include_in_schema=False)
async def index():
    return FileResponse(os.path.join(STATIC_DIR, "index.html"))


@app.api_route("/health", methods=["GET", "HEAD"], tags=["Health"])
async def health():
    store = get_store()
    return {
        "status": "ok",
        "environment": settings.environment,
        "hosted": settings.hosted,
        "single_operator": store.single_operator,
        "agent_registered": bool(store.default_agent_url),
    }


def main():
    uvicorn.run("sitecheck.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
