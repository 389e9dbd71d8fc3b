from __future__ import annotations

import pytest
import requests

from gemwatch.api.client import GemClient, UpstreamError
from gemwatch.config import Settings
from tests.unit._fakes import FakeHttp, FakeResponse


def test_transport_failure_becomes_upstream_error():
    def boom(**_):
        raise requests.ConnectionError("connection refused")

    client = GemClient(session=FakeHttp(boom))
    with pytest.raises(UpstreamError) as exc_info:
        client.catalog_page(1)
    assert isinstance(exc_info.value.__cause__, requests.ConnectionError)
    assert exc_info.value.status is None


def test_timeout_and_headers_applied():
    http = FakeHttp(lambda **_: FakeResponse(204))
    client = GemClient(Settings(http_timeout=7.5, page_size=3), session=http)

    r = client.catalog_page(2)

    assert r.status_code == 204
    assert client.last_status == 204
    assert http.calls[0]["timeout"] == 7.5
    assert http.calls[0]["params"]["pageSize"] == 3
    assert http.headers["Accept"] == "application/json"
