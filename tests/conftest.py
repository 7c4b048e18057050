"""Shared test fixtures for Scriptbay."""

import shlex

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from scriptbay.credentials import CredentialStore
from scriptbay.services.fetcher import ScriptFetcher

PASSWORD = "hunter2"
BASE_URL = "https://scripts.test/repo/"

# Stand-in for sudo. Accepts one password through -S (stdin) or -A (askpass);
# -n never has a cached timestamp, so non-interactive calls always fail.
_FAKE_SUDO = """\
#!/usr/bin/env bash
expected=@EXPECTED@
echo "$*" >> @LOG@
mode=
while [ $# -gt 0 ]; do
  case "$1" in
    -S) mode=stdin ;;
    -A) mode=askpass ;;
    -n|--non-interactive) mode=${mode:-cached} ;;
    -[aCcDgpRrTtUu]|--user|--group|--prompt) shift ;;
    --) shift; break ;;
    -*) ;;
    *) break ;;
  esac
  shift
done
case "$mode" in
  stdin) IFS= read -r pw || exit 1 ;;
  askpass) pw=$("$SUDO_ASKPASS") || exit 1 ;;
  *) exit 1 ;;
esac
if [ -n "$expected" ] && [ "$pw" != "$expected" ]; then
  exit 1
fi
if [ $# -gt 0 ]; then
  exec "$@"
fi
exit 0
"""


@pytest.fixture
def make_sudo(tmp_path):
    """Factory for a fake sudo accepting ``password`` (None accepts anything)."""

    def _make(password: str | None = PASSWORD):
        bindir = tmp_path / "bin"
        bindir.mkdir(exist_ok=True)
        path = bindir / "sudo"
        path.write_text(
            _FAKE_SUDO.replace("@EXPECTED@", shlex.quote(password or "")).replace(
                "@LOG@", shlex.quote(str(tmp_path / "sudo.log"))
            )
        )
        path.chmod(0o755)
        return str(path)

    return _make


@pytest.fixture
def sudo_path(make_sudo) -> str:
    return make_sudo()


@pytest.fixture
def sudo_log(tmp_path):
    """Lines of arguments the fake sudo was called with."""

    def _read() -> list[str]:
        log = tmp_path / "sudo.log"
        return log.read_text().splitlines() if log.exists() else []

    return _read


@pytest.fixture
def store() -> CredentialStore:
    return CredentialStore()


@pytest.fixture
def scripts() -> dict[str, str]:
    """Remote scripts served by the mock transport, keyed by name."""
    return {}


@pytest.fixture
def requested() -> list[str]:
    """URLs the mock transport was asked for."""
    return []


@pytest.fixture
async def fetcher(scripts, requested):
    """ScriptFetcher backed by an httpx MockTransport serving ``scripts``."""

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        name = str(request.url).removeprefix(BASE_URL)
        if name in scripts:
            return httpx.Response(200, text=scripts[name])
        return httpx.Response(404, text="404: Not Found")

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    yield ScriptFetcher(client=client, base_url=BASE_URL)
    await client.aclose()


@pytest.fixture(autouse=True)
def _clear_runs():
    """Clear in-memory install runs between tests."""
    from scriptbay.api.installs import _runs
    _runs.clear()


@pytest.fixture
async def app(store, fetcher, sudo_path):
    """Create a fresh app wired to the fake sudo and mock fetcher."""
    from scriptbay.app import create_app
    application = create_app(store=store, fetcher=fetcher, sudo_path=sudo_path)

    async with application.router.lifespan_context(application):
        yield application


@pytest.fixture
async def client(app):
    """HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
