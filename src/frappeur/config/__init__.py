"""Frappeur configuration."""

from frappeur.config.settings import (
    FrappeurConfig,
    get_settings,
    load_config,
)

__all__ = ["FrappeurConfig", "get_settings", "load_config"]
