"""
Run the jq proxy.

Usage:
    python -m jqproxy --config-file-path config.yaml
"""

import argparse
import logging
import sys

import uvicorn

from jqproxy.config import load_config
from jqproxy.errors import ConfigurationError
from jqproxy.server import create_app
from jqproxy.utils import redact_url
from jqproxy.vars import LOG_LEVEL

LOG_FORMAT = "%(asctime)s [%(levelname)s] - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

logger = logging.getLogger("uvicorn.error")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="jqproxy",
        description="Serve jq-filtered views of upstream JSON resources",
    )
    parser.add_argument(
        "-c", "--config-file-path", required=True, help="Path to the YAML config file"
    )
    return parser.parse_args(argv)


def configure_logging(level: str = LOG_LEVEL) -> None:
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        resolved = logging.INFO
    logging.basicConfig(format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT, level=resolved)
    if resolved == logging.INFO and level.upper() != "INFO":
        logger.warning(f"Unknown LOG_LEVEL '{level}', using INFO")


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging()

    try:
        config = load_config(args.config_file_path)
    except ConfigurationError as e:
        print(e.message, file=sys.stderr)
        return 1

    print("Configured paths:")
    for path, spec in config.routes.items():
        print(f"  {path} -> {redact_url(spec.source_url)}")

    app = create_app(config)
    logger.info(f"Listening on {config.listen} in {config.mode} mode")
    # log_config=None keeps uvicorn on the root handler configured above
    uvicorn.run(app, host=config.host, port=config.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
