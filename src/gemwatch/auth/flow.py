"""
Interactive login through a browser window.

``start_login`` opens the portal's sign-in page and returns right away; a
background task then polls the window until one of four things happens:

    success    the window reached the landing page and yielded cookies
    cancelled  the window disappeared (closed by the user or by cancel_login)
    error      the landing page was reached but no cookies could be read
    timeout    the poll budget ran out

Exactly one event is emitted per attempt and the store's login-surface
slot is always empty afterwards.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from gemwatch.auth.browser import LoginSurface
from gemwatch.config import Settings
from gemwatch.session import GemWatchError, Session, SessionStore

logger = logging.getLogger(__name__)

SurfaceOpener = Callable[[str], Awaitable[LoginSurface]]


class LoginFailedError(GemWatchError):
    pass


class LoginEventKind(str, Enum):
    SUCCESS = "login-success"
    CANCELLED = "login-cancelled"
    ERROR = "login-error"
    TIMEOUT = "login-timeout"


@dataclass(frozen=True)
class LoginEvent:
    kind: LoginEventKind
    session: Optional[Session] = None
    message: Optional[str] = None


LoginListener = Callable[[LoginEvent], None]


def filter_cookies(raw: Iterable[Dict[str, Any]]) -> Dict[str, str]:
    out: Dict[str, str] = {}
    for c in raw:
        try:
            name = str(c.get("name") or "")
            value = str(c.get("value") or "")
        except Exception:
            continue
        if name and value:
            out[name] = value
    return out


class LoginFlowController:
    def __init__(
        self,
        store: SessionStore,
        opener: SurfaceOpener,
        settings: Optional[Settings] = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.settings = settings or Settings()
        self._opener = opener
        self._clock = clock
        self._listeners: List[LoginListener] = []
        self._start_lock = asyncio.Lock()
        self._monitor: Optional[asyncio.Task] = None

    def subscribe(self, listener: LoginListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, event: LoginEvent) -> None:
        logger.info(f"[AUTH] {event.kind.value}")
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception(f"[AUTH] Listener failed on {event.kind.value}")

    async def start_login(self) -> None:
        async with self._start_lock:
            current = self.store.get_login_surface()
            if current is not None and current.is_open():
                try:
                    await current.focus()
                except Exception as exc:
                    logger.debug(f"[AUTH] Could not focus login window: {exc}")
                return
            if current is not None:
                # Stale window left behind by an earlier attempt.
                await self._finish(current)

            try:
                surface = await self._opener(self.settings.login_url)
            except Exception as exc:
                raise LoginFailedError(f"Failed to create auth window: {exc}") from exc

            self.store.set_login_surface(surface)
            self._monitor = asyncio.create_task(self._run_monitor(surface))

    async def cancel_login(self) -> None:
        surface = self.store.take_login_surface()
        if surface is None:
            return
        try:
            await surface.close()
        except Exception as exc:
            logger.warning(f"[AUTH] Closing login window failed: {exc}")

    async def wait(self) -> None:
        """Block until the current attempt (if any) has emitted its event."""
        if self._monitor is not None:
            await self._monitor

    async def _run_monitor(self, surface: LoginSurface) -> None:
        try:
            await self._poll_for_completion(surface)
        except asyncio.CancelledError:
            await self._finish(surface)
            raise
        except Exception as exc:
            logger.exception("[AUTH] Login monitor crashed")
            try:
                await self._finish(surface)
            finally:
                self._emit(LoginEvent(LoginEventKind.ERROR, message=str(exc)))

    async def _finish(self, surface: LoginSurface) -> None:
        try:
            await surface.close()
        except Exception as exc:
            logger.warning(f"[AUTH] Closing login window failed: {exc}")
        finally:
            self.store.clear_login_surface(surface)

    async def _poll_for_completion(self, surface: LoginSurface) -> None:
        landing = self.settings.landing_url

        for _ in range(self.settings.max_poll_attempts):
            await asyncio.sleep(self.settings.poll_interval_seconds)

            if not surface.is_open():
                # close() is idempotent and also stops the browser driver.
                await self._finish(surface)
                self._emit(LoginEvent(LoginEventKind.CANCELLED))
                return

            try:
                url = surface.current_url()
            except Exception as exc:
                logger.debug(f"[AUTH] Login window URL unreadable: {exc}")
                continue
            if not url.startswith(landing):
                continue

            try:
                cookies = filter_cookies(await surface.cookies_for_url(url))
            except Exception as exc:
                logger.warning(f"[AUTH] Reading cookies failed: {exc}")
                cookies = {}

            if not cookies:
                await self._finish(surface)
                self._emit(LoginEvent(LoginEventKind.ERROR, message="Failed to extract session cookies"))
                return

            session = Session(
                cookies=cookies,
                user_id=None,
                expires_at=int(self._clock()) + self.settings.session_lifetime_hours * 3600,
            )
            self.store.set(session)
            logger.info(f"[AUTH] Captured {len(cookies)} cookies")
            await self._finish(surface)
            self._emit(LoginEvent(LoginEventKind.SUCCESS, session=session))
            return

        await self._finish(surface)
        self._emit(LoginEvent(LoginEventKind.TIMEOUT))
