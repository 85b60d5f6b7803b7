"""Entry point for running the server as a subprocess."""

import logging
import sys

from .core.config import load_config
from .utils.rich_logging import setup_logging
from .web.server import run_server


def main():
    """Main entry point for the server subprocess.

    Usage: python -m vibetree.run_server [port]
    """
    config = load_config()
    setup_logging(config.log_level, config.log_file)
    logger = logging.getLogger("vibetree.run_server")

    if len(sys.argv) > 1:
        try:
            config.port = int(sys.argv[1])
        except ValueError:
            logger.error(f"Invalid port: {sys.argv[1]}")
            sys.exit(1)

    try:
        run_server(config, open_browser=False)
    except KeyboardInterrupt:
        logger.info("Server interrupted, shutting down")
    except Exception as e:
        logger.exception(f"Server crashed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
