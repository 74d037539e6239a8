"""
Logging setup for the discounts service.
"""

import logging
import sys

from discount_api.config import Config


def setup_logging() -> None:
    """
    Configure the root logger once: stdout handler, a single format,
    and quieter levels for third-party libraries.
    """
    logging.basicConfig(
        level=getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info("Logging configured (level=%s)", Config.LOG_LEVEL)
