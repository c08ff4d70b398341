"""Logging configuration for floquetkit.

The level defaults to ``INFO`` and can be overridden with the
``FLOQUETKIT_LOG_LEVEL`` environment variable (e.g. ``DEBUG`` to trace
eigen backend runs and Arnoldi restarts).
"""

import logging
import os
import sys


def setup_logging(level=None, format_string='%(asctime)s - %(name)s - %(levelname)s - %(message)s'):
    """Configures basic logging to stdout."""
    if level is None:
        level = os.environ.get("FLOQUETKIT_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=level,
        format=format_string,
        stream=sys.stdout
    )

# Setup logging when this module is imported
setup_logging()

logger = logging.getLogger("floquetkit")
