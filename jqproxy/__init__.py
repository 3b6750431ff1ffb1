"""Configuration-driven HTTP gateway that serves jq-filtered views of upstream JSON."""

__version__ = "0.1.0"
