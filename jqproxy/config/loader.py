import logging
from typing import Any, Dict

import yaml
from pydantic import ValidationError

from jqproxy.errors import ConfigurationError
from jqproxy.models import Configuration

logger = logging.getLogger("uvicorn.error")


def _format_validation_error(error: ValidationError) -> str:
    details = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        details.append(f"{location}: {item.get('msg')}" if location else item.get("msg"))
    return "; ".join(details)


def parse_config(data: Any) -> Configuration:
    """Validate an already-parsed mapping into a Configuration."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError("Config parse error: top level must be a mapping")
    try:
        config = Configuration.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Config parse error: {_format_validation_error(e)}")

    if not config.routes:
        raise ConfigurationError("No paths configured in config file.")
    return config


def load_config_text(text: str) -> Configuration:
    try:
        data: Dict[str, Any] = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Config parse error: {e}")
    return parse_config(data)


def load_config(config_file_path: str) -> Configuration:
    """
    Read and validate the YAML configuration file.

    Raises:
        ConfigurationError: the file is unreadable, malformed, invalid, or
            configures no paths.
    """
    logger.debug(f"Reading config file {config_file_path}.")
    try:
        with open(config_file_path, "r", encoding="utf-8") as fh:
            text = fh.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Config read error: {e}")

    logger.debug("Parse config file.")
    return load_config_text(text)
