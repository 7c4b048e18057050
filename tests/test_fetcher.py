"""Tests for the script fetcher (httpx MockTransport, no network)."""

import httpx
import pytest

from scriptbay.services.fetcher import (
    BASE_URL,
    FetchError,
    FetchRemoteError,
    FetchTransportError,
    ScriptFetcher,
)


def _fetcher(handler) -> ScriptFetcher:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ScriptFetcher(client=client, base_url="https://host.test/base/")


def test_url_is_plain_concatenation():
    assert ScriptFetcher(base_url="https://a.test/x/").url_for("arch/yay.sh") == (
        "https://a.test/x/arch/yay.sh"
    )


async def test_default_base_url():
    fetcher = ScriptFetcher()
    assert fetcher.url_for("vscode.sh") == BASE_URL + "vscode.sh"
    await fetcher.aclose()
    assert BASE_URL.startswith("https://")


async def test_fetch_returns_body(fetcher, scripts, requested):
    scripts["hello.sh"] = "#!/bin/bash\necho hi\n"
    assert await fetcher.fetch("hello.sh") == "#!/bin/bash\necho hi\n"
    assert requested == ["https://scripts.test/repo/hello.sh"]


async def test_fetch_follows_redirects():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/base/old.sh":
            return httpx.Response(302, headers={"Location": "https://host.test/base/new.sh"})
        return httpx.Response(200, text="echo moved\n")

    fetcher = _fetcher(handler)
    assert await fetcher.fetch("old.sh") == "echo moved\n"


async def test_fetch_404_is_remote_error(fetcher):
    with pytest.raises(FetchRemoteError) as exc_info:
        await fetcher.fetch("missing.sh")
    assert exc_info.value.status_code == 404
    assert isinstance(exc_info.value, FetchError)
    assert str(exc_info.value).startswith("Failed to fetch script: missing.sh")


async def test_fetch_server_error_is_remote_error():
    fetcher = _fetcher(lambda request: httpx.Response(503))
    with pytest.raises(FetchRemoteError) as exc_info:
        await fetcher.fetch("x.sh")
    assert exc_info.value.status_code == 503


async def test_connection_failure_is_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("name resolution failed", request=request)

    fetcher = _fetcher(handler)
    with pytest.raises(FetchTransportError) as exc_info:
        await fetcher.fetch("x.sh")
    assert not isinstance(exc_info.value, FetchRemoteError)
    assert str(exc_info.value).startswith("Failed to download script")


async def test_invalid_utf8_is_replaced():
    fetcher = _fetcher(lambda request: httpx.Response(200, content=b"echo \xff\xfe ok\n"))
    assert await fetcher.fetch("x.sh") == "echo �� ok\n"


async def test_aclose_leaves_injected_client_open():
    client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    await ScriptFetcher(client=client).aclose()
    assert not client.is_closed
    await client.aclose()
