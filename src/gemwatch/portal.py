from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from gemwatch.api.client import GemClient
from gemwatch.auth.browser import open_playwright_surface
from gemwatch.auth.flow import LoginFlowController, LoginListener, SurfaceOpener
from gemwatch.catalog import CatalogAggregator
from gemwatch.config import Settings
from gemwatch.manifest import ManifestResolver
from gemwatch.models import Manifest, StreamDescriptor
from gemwatch.session import Session, SessionStore

logger = logging.getLogger(__name__)


class Portal:
    """The operations a host UI calls, wired to one shared SessionStore."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        store: Optional[SessionStore] = None,
        client: Optional[GemClient] = None,
        opener: Optional[SurfaceOpener] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = settings or Settings()
        self.store = store or SessionStore()
        self.client = client or GemClient(self.settings)
        if opener is None:
            channel = self.settings.browser_channel

            async def opener(url: str):
                return await open_playwright_surface(url, browser_channel=channel)

        self.login_flow = LoginFlowController(self.store, opener, self.settings, clock=clock)
        self.catalog = CatalogAggregator(self.client)
        self.manifests = ManifestResolver(self.client, self.store)
        self._clock = clock
        self._streams: List[StreamDescriptor] = []

    # Session

    def get_session(self) -> Optional[Session]:
        return self.store.get()

    def set_session(self, session: Session) -> None:
        self.store.set(session)

    def logout(self) -> None:
        self.store.clear()

    def check_session(self) -> Optional[Session]:
        """Return the active session, dropping it first if it has expired."""
        session = self.store.get()
        if session is not None and session.is_expired(self._clock()):
            logger.info("[AUTH] Session expired, clearing it")
            self.store.clear()
            return None
        return session

    # Login

    def on_login_event(self, listener: LoginListener) -> Callable[[], None]:
        return self.login_flow.subscribe(listener)

    async def start_login(self) -> None:
        await self.login_flow.start_login()

    async def cancel_login(self) -> None:
        await self.login_flow.cancel_login()

    # Streams

    def fetch_catalog(self) -> List[StreamDescriptor]:
        streams = self.catalog.fetch_catalog()
        self._streams = streams
        return streams

    def get_stream_by_id(self, stream_id: str) -> Optional[StreamDescriptor]:
        for stream in self._streams:
            if stream.id == stream_id:
                return stream
        return None

    def resolve_manifest(self, stream_url: str) -> Manifest:
        return self.manifests.resolve_manifest(stream_url)
