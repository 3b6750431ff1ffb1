from .loader import load_config, load_config_text, parse_config

__all__ = ["load_config", "load_config_text", "parse_config"]
