from __future__ import annotations

import asyncio

from gemwatch.api.client import GemClient
from gemwatch.auth.flow import LoginEventKind
from gemwatch.config import Settings
from gemwatch.portal import Portal
from gemwatch.session import Session
from tests.unit._fakes import FakeHttp, FakeOpener, FakeResponse, FakeSurface, catalog_body, lineup_item

LANDING = "https://www.cbc.ca/account/landing"


def _portal(handler=None, *surfaces, now=1_000):
    settings = Settings(poll_interval_seconds=0, max_poll_attempts=5)
    http = FakeHttp(handler or (lambda **_: FakeResponse(500)))
    return Portal(
        settings,
        client=GemClient(settings, session=http),
        opener=FakeOpener(*surfaces),
        clock=lambda: now,
    )


def test_session_operations():
    portal = _portal()
    session = Session(cookies={"k": "v"}, expires_at=5_000)

    assert portal.get_session() is None
    portal.set_session(session)
    assert portal.get_session() is session
    portal.logout()
    assert portal.get_session() is None


def test_check_session_drops_expired():
    portal = _portal(now=10_000)
    portal.set_session(Session(cookies={"k": "v"}, expires_at=9_999))

    assert portal.check_session() is None
    assert portal.get_session() is None


def test_check_session_keeps_live_session():
    portal = _portal(now=10_000)
    session = Session(cookies={"k": "v"}, expires_at=20_000)
    portal.set_session(session)

    assert portal.check_session() is session


def test_fetch_catalog_and_lookup_by_id():
    body = catalog_body({"title": "Hockey", "items": [lineup_item("Final", id_media=30093), lineup_item("Semi", key="semi")]})
    portal = _portal(lambda **_: FakeResponse(200, body))

    streams = portal.fetch_catalog()

    assert [s.id for s in streams] == ["30093", "semi"]
    assert portal.get_stream_by_id("semi").title == "Semi"
    assert portal.get_stream_by_id("missing") is None


def test_login_then_resolve_manifest():
    manifest_body = {"url": "https://cbc.ca/stream.m3u8", "errorCode": 0, "bitrates": []}
    surface = FakeSurface(urls=[LANDING], cookies=[{"name": "cbc_session", "value": "abc"}])
    http_calls = []

    def handler(**call):
        http_calls.append(call)
        return FakeResponse(200, manifest_body)

    portal = _portal(handler, surface)
    events = []
    portal.on_login_event(events.append)

    async def scenario():
        await portal.start_login()
        await portal.login_flow.wait()

    asyncio.run(scenario())

    assert [e.kind for e in events] == [LoginEventKind.SUCCESS]
    manifest = portal.resolve_manifest("https://gem.cbc.ca/hockey-final-30093")
    assert manifest.url == "https://cbc.ca/stream.m3u8"
    assert http_calls[0]["headers"] == {"Cookie": "cbc_session=abc"}


def test_cancel_login_through_portal():
    surface = FakeSurface(urls=["https://www.cbc.ca/account/login"])
    portal = _portal(None, surface)
    events = []
    portal.on_login_event(events.append)

    async def scenario():
        await portal.start_login()
        await portal.cancel_login()
        await portal.login_flow.wait()

    asyncio.run(scenario())

    assert [e.kind for e in events] == [LoginEventKind.CANCELLED]
    assert portal.get_session() is None
