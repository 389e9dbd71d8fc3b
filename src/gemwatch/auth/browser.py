from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

logger = logging.getLogger(__name__)


class LoginSurface(Protocol):
    """A browser window the user signs in through."""

    def is_open(self) -> bool: ...

    def current_url(self) -> str: ...

    async def cookies_for_url(self, url: str) -> List[Dict[str, Any]]: ...

    async def focus(self) -> None: ...

    async def close(self) -> None: ...


class PlaywrightLoginSurface:
    """Headed Chromium window driven through Playwright.

    The window belongs to the user until the flow closes it. Closing it by
    hand shows up as ``is_open() == False`` on the next poll.
    """

    def __init__(self, playwright: Any, browser: Any, context: Any, page: Any) -> None:
        self._playwright = playwright
        self._browser = browser
        self._context = context
        self._page = page
        self._closed = False
        self._disconnected = False
        browser.on("disconnected", self._on_disconnected)

    def _on_disconnected(self, *_: Any) -> None:
        self._disconnected = True

    @classmethod
    async def launch(
        cls,
        url: str,
        *,
        browser_channel: str = "",
        width: int = 500,
        height: int = 700,
    ) -> "PlaywrightLoginSurface":
        try:
            from playwright.async_api import async_playwright
        except Exception as e:  # pragma: no cover
            raise RuntimeError(
                "Playwright is not installed. Install with `pip install playwright` and run "
                "`python -m playwright install chromium`."
            ) from e

        p = await async_playwright().start()
        browser = None
        try:
            launch_kwargs: Dict[str, Any] = {
                "headless": False,
                "args": [f"--window-size={width},{height}"],
            }
            if browser_channel:
                launch_kwargs["channel"] = browser_channel
            browser = await p.chromium.launch(**launch_kwargs)
            context = await browser.new_context(viewport={"width": width, "height": height})
            page = await context.new_page()
            await page.goto(url, wait_until="domcontentloaded")
        except Exception:
            if browser is not None:
                await browser.close()
            await p.stop()
            raise

        logger.info(f"[AUTH] Login window opened at {url[:80]}")
        return cls(p, browser, context, page)

    def is_open(self) -> bool:
        if self._closed or self._disconnected:
            return False
        return not self._page.is_closed()

    def current_url(self) -> str:
        return self._page.url

    async def cookies_for_url(self, url: str) -> List[Dict[str, Any]]:
        return await self._context.cookies([url])

    async def focus(self) -> None:
        await self._page.bring_to_front()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            for part in (self._context, self._browser):
                try:
                    await part.close()
                except Exception as exc:
                    # The user may already have killed the window.
                    logger.debug(f"[AUTH] Login window teardown: {exc}")
        finally:
            await self._playwright.stop()


async def open_playwright_surface(url: str, *, browser_channel: Optional[str] = None) -> PlaywrightLoginSurface:
    return await PlaywrightLoginSurface.launch(url, browser_channel=browser_channel or "")
