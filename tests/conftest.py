# pyright: reportUnknownParameterType=false, reportUnknownMemberType=false
from unittest.mock import Mock

import pytest
import requests
from requests.structures import CaseInsensitiveDict


def make_response(
    *,
    content: bytes = b"",
    status: int = 200,
    url: str = "http://example.com/api",
    reason: str = "OK",
    headers: dict | None = None,
    set_cookies: list[str] | None = None,
) -> requests.Response:
    response = requests.Response()
    response._content = content
    response.status_code = status
    response.url = url
    response.reason = reason
    response.encoding = "utf-8"
    response.headers = CaseInsensitiveDict(headers or {})
    if set_cookies is not None:
        response.raw = Mock()
        response.raw.headers.getlist.return_value = list(set_cookies)
    return response


class RecordingTransport:
    """Transport double that records requests and replays one response."""

    def __init__(self, response=None, error=None):
        self.response = response if response is not None else make_response()
        self.error = error
        self.requests = []

    async def send(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return self.response

    @property
    def last(self):
        return self.requests[-1]


class RecordingCookieManager:
    def __init__(self, cookie_string=""):
        self.cookie_string = cookie_string
        self.read_urls = []
        self.stored = []

    async def get_cookie_string(self, url):
        self.read_urls.append(url)
        return self.cookie_string

    async def store_cookies(self, url, set_cookie_values):
        self.stored.append((url, list(set_cookie_values)))


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def cookie_manager():
    return RecordingCookieManager()
