"""ART report pipeline package.

This package loads pediatric antiretroviral treatment (ART) indicator data
and country metadata, derives the datasets behind the report charts, and
renders those charts.
"""

import logging
import os
import sys

__version__ = "1.0.0"


# Configure logging for the entire package
def setup_package_logging() -> logging.Logger:
    """Set up the package-level logger."""
    logger = logging.getLogger(__name__)
    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())

    if not logger.handlers:
        console_handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


logger = setup_package_logging()
