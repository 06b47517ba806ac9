"""Logging setup for the wallet inspector CLI.

The report itself is printed to stdout; diagnostics (metadata parse faults,
RPC errors) go through `logging` to stderr so the two never interleave.
"""
import logging
from config import LOG_LEVEL


def setup_logging():
    level_name = (LOG_LEVEL or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Not configured on import: `main.main()` calls `setup_logging()` at startup.
