"""Instrumented demo HTTP service reporting host and request diagnostics."""
