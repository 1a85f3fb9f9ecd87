from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


STDERR_LOGGER_NAME = "diagserver.stderr"

_CONFIGURED = False


class _StderrEchoHandler(logging.StreamHandler):
    """Plain-text handler bound to whatever ``sys.stderr`` is at emit time."""

    def __init__(self) -> None:
        logging.Handler.__init__(self)
        self.setFormatter(logging.Formatter("%(message)s"))

    @property
    def stream(self):  # type: ignore[override]
        return sys.stderr


def install_stderr_echo() -> logging.Logger:
    """Attach the summary echo to ``diagserver.stderr`` once; independent of the root config."""

    logger = logging.getLogger(STDERR_LOGGER_NAME)
    if not any(isinstance(h, _StderrEchoHandler) for h in logger.handlers):
        logger.addHandler(_StderrEchoHandler())
    logger.propagate = False
    logger.setLevel(logging.INFO)
    return logger


def configure_logging(level: int | str = logging.INFO) -> None:
    """JSON lines on stdout for structlog, stdlib and uvicorn records.

    Safe to call multiple times (no-op after first call).
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=structlog.processors.JSONRenderer(),
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    # Both listeners' server logs go out as the same JSON lines.
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        server_logger = logging.getLogger(name)
        server_logger.handlers = [handler]
        server_logger.propagate = False
        server_logger.setLevel(level)

    install_stderr_echo()
    _CONFIGURED = True


def log_summary(summary: str, handler: str, *, stderr: bool = False) -> None:
    """Emit the one-line request summary; ``stderr`` adds the plain ``(STDERR)`` echo."""

    structlog.get_logger("diagserver").info("request_summary", summary=summary, handler=handler)
    if stderr:
        logging.getLogger(STDERR_LOGGER_NAME).info("(STDERR) %s <%s>", summary, handler)
