from __future__ import annotations

import pytest

from gemwatch.api.client import GemClient, UpstreamError
from gemwatch.manifest import ApplicationError, InvalidStreamUrlError, ManifestResolver, media_id_from_url
from gemwatch.session import NotLoggedInError, Session, SessionExpiredError, SessionStore
from tests.unit._fakes import FakeHttp, FakeResponse

STREAM_URL = "https://gem.cbc.ca/olympics/hockey-final-30093"

OK_BODY = {
    "url": "https://cbc.ca/stream.m3u8",
    "errorCode": 0,
    "message": None,
    "bitrates": [
        {"bitrate": 2500000, "width": 1280, "height": 720, "lines": "720p"},
        {"bitrate": 8000000, "width": 3840, "height": 2160, "lines": "4K"},
        {"bitrate": 5000000, "width": 1920, "height": 1080, "lines": "1080p"},
    ],
}


def _resolver(response, *, session=Session(cookies={"a": "1", "b": "2"}, expires_at=2000000000)):
    http = FakeHttp(lambda **_: response)
    store = SessionStore()
    if session is not None:
        store.set(session)
    return ManifestResolver(GemClient(session=http), store), http


def test_media_id_from_trailing_segment():
    assert media_id_from_url(STREAM_URL) == 30093
    assert media_id_from_url("30093") == 30093


@pytest.mark.parametrize("url", ["https://gem.cbc.ca/olympics/hockey-final", "https://gem.cbc.ca/x-", "", "x-12a", "x- 12"])
def test_malformed_url_fails_without_network(url):
    resolver, http = _resolver(FakeResponse(200, OK_BODY))
    with pytest.raises(InvalidStreamUrlError):
        resolver.resolve_manifest(url)
    assert http.calls == []


def test_requires_session():
    resolver, http = _resolver(FakeResponse(200, OK_BODY), session=None)
    with pytest.raises(NotLoggedInError):
        resolver.resolve_manifest(STREAM_URL)
    assert http.calls == []


def test_success_keeps_bitrate_order():
    resolver, http = _resolver(FakeResponse(200, OK_BODY))

    manifest = resolver.resolve_manifest(STREAM_URL)

    assert manifest.url == "https://cbc.ca/stream.m3u8"
    assert manifest.error_code == 0
    assert [b.lines for b in manifest.bitrates] == ["720p", "4K", "1080p"]


def test_request_carries_cookies_and_fixed_params():
    resolver, http = _resolver(FakeResponse(200, OK_BODY))
    resolver.resolve_manifest(STREAM_URL)

    call = http.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://services.radio-canada.ca/media/validation/v2/"
    assert call["headers"] == {"Cookie": "a=1; b=2"}
    assert call["params"]["idMedia"] == 30093
    assert call["params"]["appCode"] == "medianetlive"
    assert call["params"]["tech"] == "hls"
    assert call["params"]["manifestType"] == "desktop"


@pytest.mark.parametrize("body", [OK_BODY, {"errorCode": 1}, None])
def test_401_is_session_expired_whatever_the_body(body):
    resolver, _ = _resolver(FakeResponse(401, body) if body is not None else FakeResponse(401))
    with pytest.raises(SessionExpiredError):
        resolver.resolve_manifest(STREAM_URL)


def test_other_status_is_upstream_error():
    resolver, _ = _resolver(FakeResponse(500, OK_BODY))
    with pytest.raises(UpstreamError) as exc_info:
        resolver.resolve_manifest(STREAM_URL)
    assert str(exc_info.value) == "Manifest API returned status 500"
    assert exc_info.value.status == 500


def test_application_error_code_beats_http_success():
    resolver, _ = _resolver(FakeResponse(200, {"url": "", "errorCode": 403, "message": "Access denied", "bitrates": []}))
    with pytest.raises(ApplicationError) as exc_info:
        resolver.resolve_manifest(STREAM_URL)
    assert exc_info.value.code == 403
    assert str(exc_info.value) == "API error 403: Access denied"


def test_application_error_without_message():
    resolver, _ = _resolver(FakeResponse(200, {"url": "", "errorCode": 35}))
    with pytest.raises(ApplicationError, match="API error 35: Unknown error"):
        resolver.resolve_manifest(STREAM_URL)


@pytest.mark.parametrize("response", [FakeResponse(200), FakeResponse(200, {"url": "x"}), FakeResponse(200, [1, 2])])
def test_unparseable_body_is_upstream_error(response):
    resolver, _ = _resolver(response)
    with pytest.raises(UpstreamError):
        resolver.resolve_manifest(STREAM_URL)
