"""Shared plumbing for the game server analytics plugins."""

from .exceptions import ConfigError, DeliveryError, TrackingError
from .host import PlayerReadyEvent, PluginHost, PluginManifest
from .plugin_config import PluginConfig

__all__ = [
    "ConfigError",
    "DeliveryError",
    "PlayerReadyEvent",
    "PluginConfig",
    "PluginHost",
    "PluginManifest",
    "TrackingError",
]
