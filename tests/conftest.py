from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from prometheus_client import CollectorRegistry

from diagserver.config import Settings, get_settings
from diagserver.errors import ProcessListingError
from diagserver.main import create_app, create_metrics_app
from diagserver.services import summary
from diagserver.services.processes import ProcessInfo


class StubProcessLister:
    def __init__(self, processes: list[ProcessInfo] | None = None, error: str | None = None) -> None:
        self.processes = processes or []
        self.error = error

    def list_processes(self) -> list[ProcessInfo]:
        if self.error is not None:
            raise ProcessListingError(self.error)
        return list(self.processes)


@pytest.fixture(autouse=True)
def test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DIAG_VERSION", "DIAG_PROCESS_BACKEND", "DIAG_PROC_ROOT"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()

    # Deterministic host facts; individual tests override these to simulate failures.
    monkeypatch.setattr(summary, "get_hostname", lambda: "diag-host")
    monkeypatch.setattr(summary, "get_local_ip", lambda: "10.0.0.5")
    monkeypatch.setattr(summary, "discover_gateway", lambda: "10.0.0.1")

    yield

    get_settings.cache_clear()


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def process_lister() -> StubProcessLister:
    return StubProcessLister(
        [
            ProcessInfo(pid=1, executable="init", args=["/sbin/init", "splash"]),
            ProcessInfo(pid=42, executable="python3", args=["python3", "-m", "diagserver"]),
            ProcessInfo(pid=77, executable="kworker/0:1", args=[]),
        ]
    )


@pytest.fixture
def test_app(registry: CollectorRegistry, process_lister: StubProcessLister) -> FastAPI:
    return create_app(settings=Settings(), registry=registry, process_lister=process_lister)


@pytest.fixture
async def api_client(test_app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
async def metrics_client(test_app: FastAPI) -> AsyncIterator[AsyncClient]:
    transport = ASGITransport(app=create_metrics_app(test_app.state.metrics))
    async with AsyncClient(transport=transport, base_url="http://metrics") as client:
        yield client
