"""Configuration modules."""

from agency_api.config.env import AppConfig, load_config

__all__ = ["AppConfig", "load_config"]
