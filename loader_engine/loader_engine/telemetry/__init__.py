"""Logging setup."""

from loader_engine.telemetry.log_setup import JSONFormatter, configure_logging

__all__ = ["JSONFormatter", "configure_logging"]
