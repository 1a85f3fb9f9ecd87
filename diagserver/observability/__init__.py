"""Observability helpers.

structlog JSON logs on stdout, a plain stderr echo for per-request summaries,
and Prometheus collectors bound to an injected registry.
"""
