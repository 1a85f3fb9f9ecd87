from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

import structlog
from starlette.requests import Request

from diagserver.errors import GatewayDiscoveryError, HostnameLookupError, ProcessListingError
from diagserver.services.network import discover_gateway, get_hostname, get_local_ip, get_timestamp
from diagserver.services.processes import ProcessLister, format_args


logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RequestFacts:
    """The parts of a request the handlers report on."""

    host: str
    remote_addr: str
    headers: dict[str, list[str]] = field(default_factory=dict)

    def header(self, name: str) -> str:
        values = self.headers.get(canonical_header_key(name))
        return values[0] if values else ""


def canonical_header_key(name: str) -> str:
    return "-".join(part[:1].upper() + part[1:].lower() for part in name.split("-"))


def request_facts(request: Request) -> RequestFacts:
    headers: dict[str, list[str]] = {}
    host = ""
    for name, value in request.headers.items():
        if name.lower() == "host":
            host = value
            continue
        headers.setdefault(canonical_header_key(name), []).append(value)

    remote_addr = ""
    if request.client is not None:
        client_host = request.client.host
        if ":" in client_host:
            client_host = f"[{client_host}]"
        remote_addr = f"{client_host}:{request.client.port}"

    return RequestFacts(host=host, remote_addr=remote_addr, headers=headers)


def oneline_log(facts: RequestFacts, now: datetime | None = None) -> str:
    line = (
        f"{get_timestamp(now)} Hello, World: Host={facts.host}, "
        f"LocalAddr={get_local_ip()}, RemoteAddr={facts.remote_addr}"
    )
    forwarded = facts.header("X-Forwarded-For")
    if forwarded:
        line = f"{line}, X-Forwarded-For={forwarded}"
    return line


def render_diagnostics(facts: RequestFacts, now: datetime | None = None) -> str:
    """Build the `/` body.

    Lookup failures truncate the body at the failing field; the caller still
    answers 200 with whatever was written so far.
    """

    lines = ["Hello, World!"]

    try:
        hostname = get_hostname()
    except HostnameLookupError as exc:
        logger.warning("hostname_lookup_failed", error=str(exc))
        return _join(lines)

    lines.append(f"  Timestamp: {get_timestamp(now)}")
    lines.append(f"  Hostname: {hostname}")
    lines.append(f"  LocalAddress: {get_local_ip()}")

    try:
        gateway = discover_gateway()
    except GatewayDiscoveryError as exc:
        logger.warning("gateway_discovery_failed", error=str(exc))
        return _join(lines)

    lines.append(f"  Gateway: {gateway}")
    lines.append("  Headers:")
    for name in sorted(facts.headers):
        lines.append(f"    {name}: {format_args(facts.headers[name])}")
    lines.append(f"  Host: {facts.host}")
    lines.append(f"  RemoteAddress: {facts.remote_addr}")
    return _join(lines)


def render_process_listing(lister: ProcessLister) -> str:
    try:
        processes = lister.list_processes()
    except ProcessListingError as exc:
        logger.warning("process_listing_failed", error=str(exc))
        return f"process listing failed: {exc}\n"

    return "".join(f"* {proc.executable}\t{format_args(proc.args)}\n" for proc in processes)


def _join(lines: list[str]) -> str:
    return "\n".join(lines) + "\n"
