"""Shared test fixtures for chanlog test suite."""

import os
from unittest.mock import patch

import httpx
import pytest

from chanlog.http.client import HttpClient
from chanlog.manager import LogManager, reset_manager


# ---------------------------------------------------------------------------
# Shared state isolation
# ---------------------------------------------------------------------------
@pytest.fixture(autouse=True)
def _fresh_shared_state():
    """Drop the shared manager and HTTP overrides around every test."""
    reset_manager()
    yield
    reset_manager()


# ---------------------------------------------------------------------------
# Manager fixtures
# ---------------------------------------------------------------------------
class Recorder:
    """Listener that keeps every entry it receives."""

    def __init__(self):
        self.entries = []

    def __call__(self, entry):
        self.entries.append(entry)

    @property
    def messages(self):
        return [e.message for e in self.entries]

    def on(self, channel):
        return [e for e in self.entries if e.channel == channel]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def manager(recorder):
    """A LogManager without install handlers, recording to `recorder`."""
    mgr = LogManager(install_defaults=False)
    mgr.add_listener(recorder)
    return mgr


# ---------------------------------------------------------------------------
# Temporary directory fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def tmp_config_home(tmp_path):
    """Provide a temporary home directory for ~/.chanlog/config.json."""
    home = tmp_path / "home"
    home.mkdir()
    with patch.dict(os.environ, {"HOME": str(home), "USERPROFILE": str(home)}):
        with patch("pathlib.Path.home", return_value=home):
            yield home


@pytest.fixture
def tmp_project(tmp_path, monkeypatch):
    """A project directory used as the working directory."""
    project = tmp_path / "project"
    project.mkdir()
    monkeypatch.chdir(project)
    return project


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------
def echo_handler(request: httpx.Request) -> httpx.Response:
    """Answer every request with a small JSON description of it."""
    body = request.content.decode("utf-8")
    return httpx.Response(
        200,
        headers=[("X-Echo", "a"), ("X-Echo", "b")],
        json={"method": request.method, "path": request.url.path, "body": body,
              "user_agent": request.headers.get("user-agent")},
    )


@pytest.fixture
def transport():
    """Mock transport answering with echo_handler; records requests."""
    seen = []

    def handler(request):
        seen.append(request)
        return echo_handler(request)

    mock = httpx.MockTransport(handler)
    mock.seen = seen
    return mock


@pytest.fixture
def client_factory(transport):
    """Factory building real HttpClients that send through `transport`."""
    def factory(context=None):
        return HttpClient(context, transport=transport)
    return factory
