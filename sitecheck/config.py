import os
import tempfile
from functools import lru_cache
from typing import List, Optional

from pydantic import ConfigDict
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )
    # App
    environment: str = "development"
    host: str = "0.0.0.0"
    port: int = 3000
    # Scanning
    base_path: str = os.getcwd()
    report_filename: str = "structure_report.html"
    report_tmp_dir: str = tempfile.gettempdir()
    # Hosted deployments cannot see the operator's drives
    hosted: bool = False
    hosted_fallback_subpath: str = "sites"
    # One shared scan context, or one per X-Session-Id / cookie
    single_operator: bool = True
    # Per-session contexts kept before the least recently used is dropped
    max_scan_contexts: int = 64
    # Remote agent
    agent_url: Optional[str] = None
    agent_host: str = "0.0.0.0"
    agent_port: int = 4000
    agent_public_url: Optional[str] = None
    server_url: str = "http://localhost:3000"
    agent_allowed_roots: List[str] = []
    agent_timeout_seconds: int = 30
    # Browser checklist runner
    browser_timeout_ms: int = 10000
    browser_short_timeout_ms: int = 3000
    mobile_viewport_width: int = 375
    mobile_viewport_height: int = 667


@lru_cache()
def get_settings() -> Settings:
    return Settings()
