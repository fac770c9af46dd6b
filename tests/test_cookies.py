# pyright: reportUnknownParameterType=false, reportUnknownMemberType=false
import asyncio

import pytest
from conftest import RecordingCookieManager, RecordingTransport, make_response

from plug.client import Plug
from plug.cookies import MemoryCookieManager
from plug.errors import HttpError


def test_cookie_string_sets_cookie_header():
    manager = RecordingCookieManager("x=1")
    transport = RecordingTransport()
    plug = Plug(
        "http://example.com/api",
        cookie_manager=manager,
        transport=transport,
    )

    asyncio.run(plug.at("me").get())

    assert manager.read_urls == ["http://example.com/api/me"]
    assert transport.last.headers["Cookie"] == "x=1"


def test_empty_cookie_string_sets_no_header():
    manager = RecordingCookieManager("")
    transport = RecordingTransport()
    plug = Plug("http://example.com", cookie_manager=manager,
                transport=transport)

    asyncio.run(plug.get())

    assert "Cookie" not in transport.last.headers


def test_no_cookie_manager_sets_no_header():
    transport = RecordingTransport()

    asyncio.run(Plug("http://example.com", transport=transport).get())

    assert "Cookie" not in transport.last.headers


def test_set_cookie_values_are_stored_for_response_url():
    manager = RecordingCookieManager()
    response = make_response(
        url="http://example.com/final",
        set_cookies=["a=1; Path=/", "b=2"],
    )
    plug = Plug(
        "http://example.com/start",
        cookie_manager=manager,
        transport=RecordingTransport(response),
    )

    asyncio.run(plug.get())

    assert manager.stored == [("http://example.com/final", ["a=1; Path=/", "b=2"])]


def test_single_set_cookie_header_is_used_without_raw_headers():
    manager = RecordingCookieManager()
    response = make_response(headers={"Set-Cookie": "a=1"})
    plug = Plug(
        "http://example.com/api",
        cookie_manager=manager,
        transport=RecordingTransport(response),
    )

    asyncio.run(plug.get())

    assert manager.stored == [("http://example.com/api", ["a=1"])]


def test_cookies_are_not_stored_for_failed_responses():
    manager = RecordingCookieManager()
    response = make_response(status=500, set_cookies=["a=1"])
    plug = Plug(
        "http://example.com",
        cookie_manager=manager,
        transport=RecordingTransport(response),
    )

    with pytest.raises(HttpError):
        asyncio.run(plug.get())

    assert manager.stored == []


def test_cookie_read_failure_prevents_the_request():
    class BrokenManager(RecordingCookieManager):
        async def get_cookie_string(self, url):
            raise RuntimeError("cookie store down")

    transport = RecordingTransport()
    plug = Plug(
        "http://example.com",
        cookie_manager=BrokenManager(),
        transport=transport,
    )

    with pytest.raises(RuntimeError, match="cookie store down"):
        asyncio.run(plug.get())

    assert transport.requests == []


def test_cookie_write_failure_fails_the_call_after_sending():
    class BrokenManager(RecordingCookieManager):
        async def store_cookies(self, url, set_cookie_values):
            raise RuntimeError("disk full")

    transport = RecordingTransport()
    plug = Plug(
        "http://example.com",
        cookie_manager=BrokenManager(),
        transport=transport,
    )

    with pytest.raises(RuntimeError, match="disk full"):
        asyncio.run(plug.get())

    assert len(transport.requests) == 1


def test_memory_manager_round_trips_through_plug():
    manager = MemoryCookieManager()
    first = make_response(
        url="http://example.com/login",
        set_cookies=["session=abc; Path=/"],
    )
    transport = RecordingTransport(first)
    plug = Plug("http://example.com", cookie_manager=manager,
                transport=transport)

    asyncio.run(plug.at("login").post("user=me", "text/plain"))
    asyncio.run(plug.at("profile").get())

    assert transport.last.headers["Cookie"] == "session=abc"


def test_memory_manager_matches_host_and_path():
    manager = MemoryCookieManager()

    async def run():
        await manager.store_cookies(
            "http://example.com/app/login",
            ["a=1", "b=2; Path=/other", "c=3; Path=/"],
        )
        return (
            await manager.get_cookie_string("http://example.com/app/home"),
            await manager.get_cookie_string("http://example.com/other/x"),
            await manager.get_cookie_string("http://elsewhere.org/app/home"),
        )

    app, other, elsewhere = asyncio.run(run())

    assert set(app.split("; ")) == {"a=1", "c=3"}
    assert set(other.split("; ")) == {"b=2", "c=3"}
    assert elsewhere == ""


def test_memory_manager_drops_cookie_on_zero_max_age():
    manager = MemoryCookieManager()

    async def run():
        await manager.store_cookies("http://example.com/", ["a=1", "b=2"])
        await manager.store_cookies("http://example.com/", ["a=; Max-Age=0"])
        return await manager.get_cookie_string("http://example.com/")

    assert asyncio.run(run()) == "b=2"


def test_memory_manager_ignores_blank_set_cookie():
    manager = MemoryCookieManager()

    async def run():
        await manager.store_cookies("http://example.com/", ["", "; Path=/"])
        return await manager.get_cookie_string("http://example.com/")

    assert asyncio.run(run()) == ""


def test_memory_manager_keeps_secure_cookies_off_plain_http():
    manager = MemoryCookieManager()

    async def run():
        await manager.store_cookies("https://example.com/", ["s=1; Secure"])
        return (
            await manager.get_cookie_string("https://example.com/"),
            await manager.get_cookie_string("http://example.com/"),
        )

    secure, plain = asyncio.run(run())

    assert secure == "s=1"
    assert plain == ""


def test_memory_manager_rejects_cookies_for_a_foreign_domain():
    manager = MemoryCookieManager()

    async def run():
        await manager.store_cookies(
            "http://evil.test/", ["sid=attacker; Domain=bank.test"]
        )
        return (
            await manager.get_cookie_string("http://bank.test/"),
            await manager.get_cookie_string("http://evil.test/"),
        )

    bank, evil = asyncio.run(run())

    assert bank == ""
    assert evil == ""


def test_memory_manager_accepts_parent_domain_cookies():
    manager = MemoryCookieManager()

    async def run():
        await manager.store_cookies(
            "http://www.example.com/", ["sid=1; Domain=example.com"]
        )
        return await manager.get_cookie_string("http://api.example.com/")

    assert asyncio.run(run()) == "sid=1"


def test_memory_manager_drops_cookie_on_past_expires():
    manager = MemoryCookieManager()

    async def run():
        await manager.store_cookies("http://example.com/", ["a=1", "b=2"])
        await manager.store_cookies(
            "http://example.com/",
            ["a=; Expires=Thu, 01 Jan 1970 00:00:00 GMT"],
        )
        return await manager.get_cookie_string("http://example.com/")

    assert asyncio.run(run()) == "b=2"
