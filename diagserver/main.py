from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import CollectorRegistry

from diagserver.api.diagnostics import router as diagnostics_router
from diagserver.api.metrics import router as metrics_router
from diagserver.config import Settings, get_settings
from diagserver.observability.logging import install_stderr_echo
from diagserver.observability.metrics import HttpMetrics
from diagserver.observability.middleware import MetricsMiddleware
from diagserver.services.processes import ProcessLister, get_process_lister


def create_app(
    settings: Settings | None = None,
    registry: CollectorRegistry | None = None,
    process_lister: ProcessLister | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    metrics = HttpMetrics(registry)
    install_stderr_echo()

    app = FastAPI(title="diagserver", version=settings.version, docs_url=None, redoc_url=None, openapi_url=None)
    app.state.settings = settings
    app.state.metrics = metrics
    app.state.process_lister = process_lister or get_process_lister(settings.process_backend, settings.proc_path)
    app.include_router(diagnostics_router)
    app.add_middleware(MetricsMiddleware, metrics=metrics)
    return app


def create_metrics_app(metrics: HttpMetrics) -> FastAPI:
    """The scrape app, served on its own port so it never counts itself."""

    app = FastAPI(title="diagserver-metrics", docs_url=None, redoc_url=None, openapi_url=None)
    app.state.metrics = metrics
    app.include_router(metrics_router)
    return app


app = create_app()
