"""Main entry point for Ramadan Timer application."""

import logging

import uvicorn

from ramadan_timer.api.app import create_app
from ramadan_timer.config import get_config, setup_logging


def main() -> None:
    """Run the Ramadan Timer application."""
    config = get_config()
    setup_logging(config.log_level)

    logger = logging.getLogger(__name__)
    logger.info("Ramadan Timer starting...")
    logger.info(f"State file: {config.state_path}")
    logger.info(f"Timings API: {config.api_base_url}")

    app = create_app(config=config)

    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
