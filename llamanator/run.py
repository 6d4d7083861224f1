"""Run the gateway with uvicorn"""
import argparse
import sys
from typing import List, Optional

import uvicorn

from llamanator.core.config import load_settings
from llamanator.core.exceptions import ConfigLoadError
from llamanator.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger("llamanator")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Prompt-template gateway for Ollama-style backends")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the JSON configuration file (default: $LLAMANATOR_CONFIG or ./config.json)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigLoadError as e:
        LoggingConfig.configure()
        logger.critical(f"Failed to load server configuration: {e.message}")
        return 1

    from llamanator.main import create_app

    try:
        app = create_app(settings)
    except OSError as e:
        logger.critical(f"Failed to load and cache templates: {e}")
        return 1

    uvicorn.run(
        app,
        host=settings.listen_host,
        port=settings.listen_port,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
