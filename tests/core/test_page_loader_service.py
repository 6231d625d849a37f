# tests/core/test_page_loader_service.py
import asyncio
import logging
from unittest.mock import MagicMock, patch

import aiohttp
import pytest
import requests

from siteinfo.model import LoaderSettings
from siteinfo.services.page_loader_service import PageLoaderService

URL = "https://example.com/page"
HTML = b"<html><head><title>Example</title></head><body></body></html>"


@pytest.fixture
def loader():
    return PageLoaderService(LoaderSettings(timeout=5, max_redirects=3, max_body_bytes=1024))


def _mock_session(session_cls, *, status=200, chunks=(HTML,), final_url=URL, history=()):
    """Wires a fake requests.Session whose get() yields a streamed response."""
    session = MagicMock()
    session_cls.return_value.__enter__.return_value = session
    response = MagicMock()
    response.status_code = status
    response.url = final_url
    response.history = list(history)
    response.iter_content.return_value = iter(chunks)
    session.get.return_value.__enter__.return_value = response
    return session


# --- Sync fetch ---

@patch("siteinfo.services.page_loader_service.requests.Session")
def test_fetch_success(session_cls, loader):
    session = _mock_session(session_cls)
    page = loader.fetch(URL)

    assert page.ok
    assert page.status_code == 200
    assert page.content == HTML
    assert session.max_redirects == 3
    _, kwargs = session.get.call_args
    assert kwargs["timeout"] == 5
    assert kwargs["allow_redirects"] is True
    assert kwargs["headers"] is None


@patch("siteinfo.services.page_loader_service.requests.Session")
def test_fetch_records_final_url_after_redirects(session_cls, loader):
    _mock_session(session_cls, final_url="https://www.example.com/page", history=[MagicMock()])
    page = loader.fetch(URL)
    assert page.url == URL
    assert page.final_url == "https://www.example.com/page"


@patch("siteinfo.services.page_loader_service.requests.Session")
def test_fetch_sends_configured_user_agent(session_cls):
    session = _mock_session(session_cls)
    PageLoaderService(LoaderSettings(user_agent="SiteInfoBot/1.0")).fetch(URL)
    _, kwargs = session.get.call_args
    assert kwargs["headers"] == {"User-Agent": "SiteInfoBot/1.0"}


@pytest.mark.parametrize("status", [301, 404, 500])
@patch("siteinfo.services.page_loader_service.requests.Session")
def test_fetch_non_2xx_yields_empty_body(session_cls, status, loader):
    _mock_session(session_cls, status=status)
    page = loader.fetch(URL)
    assert page.content == b""
    assert page.status_code == status
    assert page.error == f"HTTP {status}"


@pytest.mark.parametrize("exc", [
    requests.ConnectionError("connection refused"),
    requests.Timeout("timed out"),
    requests.TooManyRedirects("Exceeded 3 redirects."),
    requests.exceptions.MissingSchema("No scheme supplied"),
])
@patch("siteinfo.services.page_loader_service.requests.Session")
def test_fetch_network_failures_are_soft(session_cls, exc, loader):
    session = _mock_session(session_cls)
    session.get.side_effect = exc
    page = loader.fetch(URL)
    assert not page.ok
    assert page.content == b""
    assert page.status_code is None
    assert type(exc).__name__ in page.error


@patch("siteinfo.services.page_loader_service.requests.Session")
def test_fetch_truncates_large_bodies(session_cls, loader):
    _mock_session(session_cls, chunks=[b"a" * 600, b"b" * 600, b"c" * 600])
    page = loader.fetch(URL)
    assert len(page.content) == 1024
    assert page.content.endswith(b"b" * 424)


@patch("siteinfo.services.page_loader_service.requests.Session")
def test_fetch_body_of_exactly_the_limit_is_not_reported_as_truncated(session_cls, loader, caplog):
    _mock_session(session_cls, chunks=[b"a" * 512, b"b" * 512])
    with caplog.at_level(logging.WARNING, logger="siteinfo.services.page_loader_service"):
        page = loader.fetch(URL)
    assert len(page.content) == 1024
    assert "truncating" not in caplog.text


@patch("siteinfo.services.page_loader_service.requests.Session")
def test_fetch_one_byte_over_the_limit_is_reported(session_cls, loader, caplog):
    _mock_session(session_cls, chunks=[b"a" * 1024, b"b"])
    with caplog.at_level(logging.WARNING, logger="siteinfo.services.page_loader_service"):
        page = loader.fetch(URL)
    assert page.content == b"a" * 1024
    assert "truncating" in caplog.text


@patch("siteinfo.services.page_loader_service.requests.Session")
def test_load_failure_gives_empty_document(session_cls, loader):
    session = _mock_session(session_cls)
    session.get.side_effect = requests.ConnectionError("dns failure")
    document = loader.load(URL)
    assert document.find("title") is None


# --- Parsing ---

def test_parse_keeps_rel_as_literal_string():
    document = PageLoaderService.parse('<link rel="shortcut icon" href="/f.ico">')
    assert document.find("link")["rel"] == "shortcut icon"


@pytest.mark.parametrize("content", [None, b"", "", b"<<<>>>", "<div><p>unclosed </i></span>"])
def test_parse_never_raises(content):
    document = PageLoaderService.parse(content)
    assert document.find("title") is None


# --- Async fetch ---

def _mock_aiohttp(session_cls, *, status=200, chunks=(HTML,)):
    session = MagicMock()
    session_cls.return_value.__aenter__.return_value = session
    response = MagicMock()
    response.status = status
    response.url = URL

    async def iter_chunked(_size):
        for chunk in chunks:
            yield chunk

    response.content.iter_chunked = iter_chunked
    session.get.return_value.__aenter__.return_value = response
    return session


@patch("siteinfo.services.page_loader_service.aiohttp.ClientSession")
def test_fetch_async_success(session_cls, loader):
    session = _mock_aiohttp(session_cls)
    page = asyncio.run(loader.fetch_async(URL))

    assert page.ok
    assert page.content == HTML
    _, kwargs = session.get.call_args
    assert kwargs["max_redirects"] == 3
    assert kwargs["allow_redirects"] is True


@patch("siteinfo.services.page_loader_service.aiohttp.ClientSession")
def test_fetch_async_non_2xx_and_errors_are_soft(session_cls, loader):
    _mock_aiohttp(session_cls, status=503)
    page = asyncio.run(loader.fetch_async(URL))
    assert page.content == b""
    assert page.error == "HTTP 503"

    session = _mock_aiohttp(session_cls)
    session.get.side_effect = aiohttp.ClientConnectionError("down")
    page = asyncio.run(loader.fetch_async(URL))
    assert page.content == b""
    assert "ClientConnectionError" in page.error


@patch("siteinfo.services.page_loader_service.aiohttp.ClientSession")
def test_load_async_truncates_and_parses(session_cls, loader):
    _mock_aiohttp(session_cls, chunks=[b"<title>Async</title>", b"x" * 2048])
    document = asyncio.run(loader.load_async(URL))
    assert document.find("title").get_text() == "Async"


@patch("siteinfo.services.page_loader_service.aiohttp.ClientSession")
def test_fetch_async_body_of_exactly_the_limit_is_kept_silently(session_cls, loader, caplog):
    _mock_aiohttp(session_cls, chunks=[b"a" * 1000, b"b" * 24])
    with caplog.at_level(logging.WARNING, logger="siteinfo.services.page_loader_service"):
        page = asyncio.run(loader.fetch_async(URL))
    assert len(page.content) == 1024
    assert "truncating" not in caplog.text
