"""
Public PostHog tracking API.

Other mods import this module and call the functions directly, or bind a
tracker to their own manifest name::

    tracker = stats_tracking.api.for_plugin(host)
    tracker.init()
"""

from typing import Optional

from tracking_core.api import PluginTracker, TrackingAPI

from .plugin import StatsTrackingPlugin

_api = TrackingAPI(StatsTrackingPlugin)

for_plugin = _api.for_plugin
track_installation = _api.track_installation
track_server_using_mod = _api.track_server_using_mod
track_player_count = _api.track_player_count
track_custom_event = _api.track_custom_event
is_tracking_available = _api.is_tracking_available
get_service = _api.get_service


def track_error(mod_id: str, exc: BaseException, mod_version: Optional[str] = None) -> None:
    """Report an exception a mod caught. Only the class name and message are sent."""
    service = get_service()
    if service is not None:
        service.track_error(mod_id, exc, mod_version)


__all__ = [
    "PluginTracker",
    "for_plugin",
    "get_service",
    "is_tracking_available",
    "track_custom_event",
    "track_error",
    "track_installation",
    "track_player_count",
    "track_server_using_mod",
]
