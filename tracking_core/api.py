"""Public tracking API for other mods, bound to one tracking plugin class."""

from typing import Any, Optional

from .host import PluginHost
from .plugin import TrackingPlugin
from .service import TrackingService


class TrackingAPI:
    """
    Static-style entry points other mods call without holding a reference to
    the tracking plugin. Every call is a no-op while the plugin is not running.
    """

    def __init__(self, plugin_cls: type[TrackingPlugin]):
        self._plugin_cls = plugin_cls

    def get_plugin(self) -> Optional[TrackingPlugin]:
        return self._plugin_cls.get_instance()

    def get_service(self) -> Optional[TrackingService]:
        plugin = self.get_plugin()
        return plugin.tracking_service if plugin is not None else None

    def track_installation(self, mod_id: str) -> None:
        service = self.get_service()
        if service is not None:
            service.track_installation(mod_id)

    def track_server_using_mod(self, mod_id: str) -> None:
        service = self.get_service()
        if service is not None:
            service.track_server_using_mod(mod_id)

    def track_player_count(self, mod_id: str, player_count: int) -> None:
        service = self.get_service()
        if service is not None:
            service.track_player_connected(mod_id, player_count)

    def track_custom_event(
        self,
        mod_id: str,
        event_name: str,
        event_parameters: Optional[dict[str, Any]] = None,
    ) -> None:
        service = self.get_service()
        if service is not None:
            service.track_custom_event(mod_id, event_name, event_parameters)

    def is_tracking_available(self) -> bool:
        service = self.get_service()
        return service is not None and service.is_enabled()

    def for_plugin(self, host: PluginHost) -> "PluginTracker":
        """Tracker bound to the calling plugin's manifest name."""
        return PluginTracker(self, host)


class PluginTracker:
    """Tracking helper that uses the owning plugin's name as the mod ID."""

    def __init__(self, api: TrackingAPI, host: PluginHost):
        self._api = api
        self.mod_id = host.manifest.name
        self.mod_version = host.manifest.version

    def track_installation(self) -> bool:
        service = self._api.get_service()
        if service is None:
            return False
        return service.track_installation(self.mod_id, self.mod_version)

    def track_server_using_mod(self) -> None:
        service = self._api.get_service()
        if service is not None:
            service.track_server_using_mod(self.mod_id, self.mod_version)

    def track_player_count(self, player_count: int) -> None:
        service = self._api.get_service()
        if service is not None:
            service.track_player_connected(self.mod_id, player_count, self.mod_version)

    def track_custom_event(
        self, event_name: str, event_parameters: Optional[dict[str, Any]] = None
    ) -> None:
        self._api.track_custom_event(self.mod_id, event_name, event_parameters)

    def init(self) -> None:
        """
        Report first-time installation (once per mod, persisted) and server usage.
        Call once from the consuming plugin's start.
        """
        plugin = self._api.get_plugin()
        if plugin is None or plugin.tracking_service is None:
            return

        tracker = plugin.installation_tracker
        # Marked only once the event was handed to the sender.
        if tracker is not None and not tracker.is_installed(self.mod_id):
            if self.track_installation():
                tracker.mark_as_installed(self.mod_id)

        self.track_server_using_mod()
