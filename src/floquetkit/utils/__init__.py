"""Package-wide utilities (logging configuration)."""

from .log_config import logger, setup_logging

__all__ = ["logger", "setup_logging"]
