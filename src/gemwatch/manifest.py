from __future__ import annotations

import logging

from gemwatch.api.client import GemClient, UpstreamError
from gemwatch.models import Manifest
from gemwatch.session import GemWatchError, NotLoggedInError, SessionExpiredError, SessionStore

logger = logging.getLogger(__name__)


class InvalidStreamUrlError(GemWatchError):
    pass


class ApplicationError(GemWatchError):
    """The validation endpoint answered with a non-zero ``errorCode``."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(f"API error {code}: {message}")
        self.code = code
        self.message = message


def media_id_from_url(stream_url: str) -> int:
    """Return the numeric media id that ends a stream URL (``...-30093``)."""
    tail = (stream_url or "").rsplit("-", 1)[-1]
    if not (tail.isascii() and tail.isdigit()):
        raise InvalidStreamUrlError(f"Invalid stream URL format: {stream_url!r}")
    return int(tail)


class ManifestResolver:
    def __init__(self, client: GemClient, store: SessionStore) -> None:
        self.client = client
        self.store = store

    def resolve_manifest(self, stream_url: str) -> Manifest:
        id_media = media_id_from_url(stream_url)

        session = self.store.get()
        if session is None:
            raise NotLoggedInError("Not authenticated")
        logger.debug(f"[MANIFEST] idMedia={id_media} cookies={sorted(session.cookies)}")

        r = self.client.validate_media(id_media, cookie_header=session.cookie_header())
        if r.status_code == 401:
            raise SessionExpiredError("Session expired - please login again")
        if not (200 <= r.status_code < 300):
            raise UpstreamError(f"Manifest API returned status {r.status_code}", status=r.status_code)

        try:
            manifest = Manifest.from_validation(r.json())
        except (ValueError, TypeError, KeyError) as exc:
            raise UpstreamError(f"Failed to parse manifest response: {exc}") from exc

        if manifest.error_code != 0:
            logger.info(f"[MANIFEST] idMedia={id_media} rejected with errorCode={manifest.error_code}")
            raise ApplicationError(manifest.error_code, manifest.message or "Unknown error")

        logger.info(f"[MANIFEST] idMedia={id_media} resolved with {len(manifest.bitrates)} bitrates")
        return manifest
