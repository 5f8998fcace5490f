"""
Run the accessibility scanner API with uvicorn.
"""

import logging
import sys

import uvicorn
from dotenv import load_dotenv

from a11y_scanner.core.config import init_config

logger = logging.getLogger(__name__)


def main():
    """Console entry point for ``a11y-scanner-api``."""
    load_dotenv()

    try:
        config = init_config()
    except Exception as e:
        print(f"Failed to initialize configuration: {e}")
        print("\nCheck the SCAN_*, RATE_LIMIT_*, GEMINI_* and API_* environment variables")
        print("or the values in your .env file.")
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, config.monitoring.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger.info(f"Starting API server on {config.api.host}:{config.api.port}")

    # The in-memory rate limiter is per process
    if config.api.workers > 1 and not config.api.reload:
        logger.warning(
            f"Running {config.api.workers} workers, each enforces its own rate limit window"
        )

    uvicorn.run(
        "a11y_scanner.api.main:app",
        host=config.api.host,
        port=config.api.port,
        reload=config.api.reload,
        workers=1 if config.api.reload else config.api.workers,
        log_level=config.monitoring.log_level.lower()
    )


if __name__ == "__main__":
    main()
