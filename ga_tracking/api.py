"""
Public Google Analytics tracking API.

Other mods import this module and call the functions directly, or bind a
tracker to their own manifest name::

    tracker = ga_tracking.api.for_plugin(host)
    tracker.init()
"""

from tracking_core.api import PluginTracker, TrackingAPI

from .plugin import GATrackingPlugin

_api = TrackingAPI(GATrackingPlugin)

for_plugin = _api.for_plugin
track_installation = _api.track_installation
track_server_using_mod = _api.track_server_using_mod
track_player_count = _api.track_player_count
track_custom_event = _api.track_custom_event
is_tracking_available = _api.is_tracking_available
get_service = _api.get_service

__all__ = [
    "PluginTracker",
    "for_plugin",
    "get_service",
    "is_tracking_available",
    "track_custom_event",
    "track_installation",
    "track_player_count",
    "track_server_using_mod",
]
