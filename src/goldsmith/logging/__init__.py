"""Goldsmith Logging: logging port and structlog adapter."""

from goldsmith.logging.port import LoggingPort
from goldsmith.logging.structlog_adapter import StructlogAdapter

__all__ = ["LoggingPort", "StructlogAdapter"]
