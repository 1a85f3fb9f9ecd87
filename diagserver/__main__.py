from __future__ import annotations

import argparse
import asyncio
import sys

import structlog
import uvicorn

from diagserver.config import get_settings
from diagserver.main import create_app, create_metrics_app
from diagserver.observability.logging import configure_logging


logger = structlog.get_logger("diagserver")


async def serve(servers: list[uvicorn.Server]) -> bool:
    """Run all servers in one loop; report whether every one of them came up."""

    await asyncio.gather(*(server.serve() for server in servers))
    return all(server.started for server in servers)


def _server(app, host: str, port: int, log_level: str) -> uvicorn.Server:
    config = uvicorn.Config(app, host=host, port=port, log_level=log_level.lower(), log_config=None)
    return uvicorn.Server(config)


def main() -> None:
    settings = get_settings()

    parser = argparse.ArgumentParser(description="Diagnostic demo HTTP service with Prometheus metrics")
    parser.add_argument("--host", default=settings.host, help="Address both listeners bind to")
    parser.add_argument("--port", type=int, default=settings.http_port, help="Application listener port")
    parser.add_argument("--metrics-port", type=int, default=settings.metrics_port, help="Metrics listener port")
    parser.add_argument("--log-level", default=settings.log_level, help="Log level (DEBUG, INFO, ...)")
    args = parser.parse_args()

    configure_logging(args.log_level)
    logger.info("startup", message="initializing this app...", version=settings.version)

    app = create_app(settings)
    metrics_app = create_metrics_app(app.state.metrics)

    logger.info("metrics_listener", message=f"serving metrics at: :{args.metrics_port}")
    servers = [
        _server(metrics_app, args.host, args.metrics_port, args.log_level),
        _server(app, args.host, args.port, args.log_level),
    ]

    try:
        started = asyncio.run(serve(servers))
    except OSError as exc:
        logger.error("listener_failed", error=str(exc))
        sys.exit(1)

    if not started:
        logger.error("listener_failed", error="a listener failed to start")
        sys.exit(1)


if __name__ == "__main__":
    main()
