from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from gemwatch.config import Settings
from gemwatch.session import GemWatchError

logger = logging.getLogger(__name__)


class UpstreamError(GemWatchError):
    """A portal endpoint failed at the transport level or sent an unusable body."""

    def __init__(self, message: str, *, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class GemClient:
    """Thin HTTP layer over the two portal endpoints.

    Responses are returned as-is; interpreting status codes and bodies is
    left to the catalog and manifest code. Nothing here retries.
    """

    USER_AGENT = (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    def __init__(self, settings: Optional[Settings] = None, *, session: Any = None) -> None:
        self.settings = settings or Settings()
        self.session = session if session is not None else requests.Session()
        self.session.headers.update(
            {
                "User-Agent": self.USER_AGENT,
                "Accept": "application/json",
            }
        )
        self.last_status: Optional[int] = None

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            r = self.session.request(method, url, timeout=self.settings.http_timeout, **kwargs)
        except requests.RequestException as exc:
            raise UpstreamError(f"Request to {url} failed: {exc}") from exc
        self.last_status = r.status_code
        logger.debug(f"[HTTP] {method} {url} -> {r.status_code}")
        return r

    def catalog_page(self, page_number: int) -> requests.Response:
        params = {
            "device": "web",
            "pageSize": self.settings.page_size,
            "pageNumber": page_number,
        }
        return self._request("GET", self.settings.catalog_url, params=params)

    def validate_media(self, id_media: int, *, cookie_header: str) -> requests.Response:
        params: Dict[str, Any] = {
            "appCode": "medianetlive",
            "connectionType": "hd",
            "deviceType": "ipad",
            "idMedia": id_media,
            "multibitrate": "true",
            "output": "json",
            "tech": "hls",
            "manifestVersion": 2,
            "manifestType": "desktop",
        }
        return self._request(
            "GET",
            self.settings.validation_url,
            params=params,
            headers={"Cookie": cookie_header},
        )
