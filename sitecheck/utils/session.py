"""
Scan context: the last-analyzed root and the last rendered report.

With settings.single_operator every request shares one context. Otherwise
contexts are keyed by the X-Session-Id header (or the sitecheck_session
cookie) so two operators never see each other's reports. /api/analyze copies
a header session into the cookie, because the report iframe and its preview
requests are plain browser loads that cannot carry custom headers.

At most settings.max_scan_contexts per-session contexts are kept; the least
recently used one is dropped first, together with its agent mirror dir.
"""
import logging
import shutil
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Cookie, Depends, Header, Response

from ..config import get_settings

logger = logging.getLogger(__name__)

SESSION_COOKIE = "sitecheck_session"
SHARED_KEY = "__shared__"


@dataclass
class ScanContext:
    base_path: str
    last_report: Optional[str] = None
    agent_url: Optional[str] = None
    mirror_dir: Optional[str] = None

    def discard_mirror(self) -> None:
        if self.mirror_dir:
            shutil.rmtree(self.mirror_dir, ignore_errors=True)
            self.mirror_dir = None


@dataclass
class ScanContextStore:
    default_base_path: str
    single_operator: bool = True
    default_agent_url: Optional[str] = None
    max_contexts: int = 64
    _contexts: "OrderedDict[str, ScanContext]" = field(default_factory=OrderedDict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def key_for(self, session_id: Optional[str]) -> str:
        if self.single_operator or not session_id:
            return SHARED_KEY
        return session_id

    def get(self, session_id: Optional[str] = None) -> ScanContext:
        key = self.key_for(session_id)
        with self._lock:
            ctx = self._contexts.get(key)
            if ctx is None:
                ctx = ScanContext(base_path=self.default_base_path, agent_url=self.default_agent_url)
                self._contexts[key] = ctx
            self._contexts.move_to_end(key)
            self._evict()
            return ctx

    def _evict(self) -> None:
        # the shared context is never evicted
        sessions = [k for k in self._contexts if k != SHARED_KEY]
        while len(sessions) > self.max_contexts:
            key = sessions.pop(0)
            evicted = self._contexts.pop(key)
            evicted.discard_mirror()
            logger.info("Dropped scan context for session %s", key)

    def __len__(self) -> int:
        return len(self._contexts)

    def set_agent_url(self, agent_url: str, session_id: Optional[str] = None) -> ScanContext:
        """An agent announcing itself without a session becomes everyone's default."""
        ctx = self.get(session_id)
        ctx.agent_url = agent_url
        if self.key_for(session_id) == SHARED_KEY:
            self.default_agent_url = agent_url
        return ctx

    def reset(self) -> None:
        with self._lock:
            for ctx in self._contexts.values():
                ctx.discard_mirror()
            self._contexts.clear()


_store: Optional[ScanContextStore] = None


def get_store() -> ScanContextStore:
    global _store
    if _store is None:
        settings = get_settings()
        _store = ScanContextStore(
            default_base_path=settings.base_path,
            single_operator=settings.single_operator,
            default_agent_url=settings.agent_url,
            max_contexts=settings.max_scan_contexts,
        )
    return _store


def get_session_id(
    x_session_id: Optional[str] = Header(None),
    sitecheck_session: Optional[str] = Cookie(None),
) -> Optional[str]:
    return x_session_id or sitecheck_session


def get_scan_context(session_id: Optional[str] = Depends(get_session_id)) -> ScanContext:
    """FastAPI dependency resolving the caller's scan context."""
    return get_store().get(session_id)


def remember_session(response: Response, session_id: Optional[str]) -> None:
    """Pin the caller's session into a cookie so header-less follow-up loads find it."""
    if session_id and not get_store().single_operator:
        response.set_cookie(SESSION_COOKIE, session_id, httponly=True, samesite="lax")
