from __future__ import annotations

from fastapi import Request

from diagserver.config import Settings
from diagserver.observability.metrics import HttpMetrics
from diagserver.services.processes import ProcessLister


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_process_lister(request: Request) -> ProcessLister:
    return request.app.state.process_lister


def get_http_metrics(request: Request) -> HttpMetrics:
    return request.app.state.metrics
