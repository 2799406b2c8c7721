"""
Clinical Query Resolver API Server

Loads configuration, sets up logging and serves the FastAPI app with uvicorn.
"""

import logging

from clinical_resolver.api.app import create_app
from clinical_resolver.lib.config import ConfigLoader
from clinical_resolver.lib.logger import setup_logging

logger = logging.getLogger(__name__)

config = ConfigLoader()

setup_logging(
    log_level=config.get_env("log_level", "INFO"),
    log_file=config.get_env("log_file"),
    structured=config.get_env("structured_logs", False),
)

app = create_app(config=config)


if __name__ == "__main__":
    import uvicorn

    host = config.get_env("host", "0.0.0.0")
    port = config.get_env("port", 9000)
    logger.info(f"Serving on {host}:{port}")

    uvicorn.run(
        "main:app",
        host=host,
        port=port,
        log_level=config.get_env("log_level", "INFO").lower(),
    )
