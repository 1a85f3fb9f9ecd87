from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse

from diagserver.api.deps import get_app_settings, get_process_lister
from diagserver.config import Settings
from diagserver.observability.logging import log_summary
from diagserver.services.processes import ProcessLister
from diagserver.services.summary import oneline_log, render_diagnostics, render_process_listing, request_facts

router = APIRouter(tags=["diagnostics"])

ANY_METHOD = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# Sync handlers: FastAPI runs them in its threadpool, one thread per in-flight request.


@router.api_route("/oneline", methods=ANY_METHOD, response_class=PlainTextResponse)
def oneline(request: Request) -> PlainTextResponse:
    facts = request_facts(request)
    line = oneline_log(facts)
    log_summary(line, "onelineHandler", stderr=True)
    return PlainTextResponse(f"{line}\n")


@router.api_route("/ps", methods=ANY_METHOD, response_class=PlainTextResponse)
def ps(request: Request, lister: ProcessLister = Depends(get_process_lister)) -> PlainTextResponse:
    log_summary(oneline_log(request_facts(request)), "psHandler")
    return PlainTextResponse(render_process_listing(lister))


@router.api_route("/version", methods=ANY_METHOD, response_class=PlainTextResponse)
def version(request: Request, settings: Settings = Depends(get_app_settings)) -> PlainTextResponse:
    log_summary(oneline_log(request_facts(request)), "versionHandler")
    return PlainTextResponse(f"{settings.version}\n")


# Registered last: "/" owns every path the routes above do not match, whatever the method.
@router.api_route("/{path:path}", methods=ANY_METHOD, response_class=PlainTextResponse)
def hello(request: Request, path: str) -> PlainTextResponse:
    _ = path
    facts = request_facts(request)
    log_summary(oneline_log(facts), "helloHandler", stderr=True)
    return PlainTextResponse(render_diagnostics(facts))
