"""Main entry point for the bootcamp tracker API"""
import logging

import uvicorn

from bootcamp_tracker.config import validate_config, API_HOST, API_PORT, LOG_LEVEL

# Configure logging
logging.basicConfig(
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    level=getattr(logging, LOG_LEVEL)
)

logger = logging.getLogger(__name__)


def main() -> None:
    """Validate configuration and serve the API"""
    logger.info("Validating configuration...")
    validate_config()

    from bootcamp_tracker.api.server import create_api_application

    logger.info(f"Starting API on {API_HOST}:{API_PORT}")
    uvicorn.run(create_api_application(), host=API_HOST, port=API_PORT, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
