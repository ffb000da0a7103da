"""Entry point for the GitHub bridge."""

import logging
import sys

import uvicorn
from dotenv import load_dotenv

from .chat import ChatAPI
from .config import ConfigHolder
from .errors import ConfigInvalid
from .plugin import Plugin
from .server import app, init_app
from .store import SQLiteKeyValueStore


def main() -> None:
    """Run the GitHub bridge server."""
    # Load .env from current working directory
    load_dotenv(".env", override=False)

    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger = logging.getLogger(__name__)

    # Load configuration
    config_holder = ConfigHolder()
    config = config_holder.load()
    try:
        config.validate()
    except ConfigInvalid as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    # Initialize components
    plugin = Plugin(
        config_holder,
        store=SQLiteKeyValueStore(config.store_path),
        chat=ChatAPI(
            url=config.chat_url,
            bot_token=config.chat_bot_token,
            request_timeout=config.request_timeout_seconds,
        ),
    )
    init_app(plugin)

    logger.info(f"Starting GitHub bridge on {config.host}:{config.port}")

    # Run server
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
