"""Host lifecycle shared by the tracking plugins."""

from abc import ABC, abstractmethod
from typing import ClassVar, Optional

import structlog

from .host import PlayerReadyEvent, PluginHost
from .installations import InstallationTracker
from .logging_config import setup_structlog
from .plugin_config import PluginConfig
from .sender import EventSender
from .service import TrackingService
from .settings import TrackingSettings, get_settings
from .tracing import setup_tracing

log = structlog.get_logger(__name__)


class TrackingPlugin(ABC):
    """
    Base class for a tracking add-on loaded by the server runtime.

    The runtime calls ``start()`` once the plugin is loaded and awaits
    ``shutdown()`` when it unloads. The running plugin is published as the
    class-wide instance so the public API module can reach its service.
    """

    _instance: ClassVar[Optional["TrackingPlugin"]] = None

    config_name: str = "config"
    auto_track_players_key: str = "tracking.autoTrackPlayers"
    auto_track_startup_key: str = "tracking.autoTrackServerStartup"

    def __init__(
        self,
        host: PluginHost,
        settings: Optional[TrackingSettings] = None,
        sender: Optional[EventSender] = None,
    ):
        self.host = host
        self.settings = settings or get_settings()
        self.sender = sender
        self.config = PluginConfig(host.config_directory, self.config_name)
        self.tracking_service: Optional[TrackingService] = None
        self.installation_tracker: Optional[InstallationTracker] = None

    @classmethod
    def get_instance(cls) -> Optional["TrackingPlugin"]:
        return cls._instance

    @property
    def mod_id(self) -> str:
        return self.host.manifest.name

    @property
    def mod_version(self) -> str:
        return self.host.manifest.version

    @abstractmethod
    def register_defaults(self) -> None:
        """Declare config keys and their defaults before the config is loaded."""

    @abstractmethod
    def create_service(self) -> TrackingService: ...

    def _log_context(self):
        return structlog.contextvars.bound_contextvars(
            plugin=type(self).__name__, mod_id=self.mod_id
        )

    def start(self) -> None:
        setup_structlog(
            json_logs=self.settings.json_logs, log_level=self.settings.log_level
        )
        if self.settings.tracing_enabled:
            setup_tracing(service_name=self.settings.service_name)

        with self._log_context():
            self.register_defaults()
            self.config.load()

            type(self)._instance = self

            self.tracking_service = self.create_service()
            self.installation_tracker = InstallationTracker(self.host.config_directory)

            if self.config.get_bool(self.auto_track_players_key, True):
                self.host.register_event(PlayerReadyEvent, self.on_player_ready)

            self.on_started()

            if self.config.get_bool(self.auto_track_startup_key, True):
                self.track_server_startup()

            log.info(
                "Tracking plugin started",
                enabled=self.tracking_service.is_enabled(),
            )

    def on_started(self) -> None:
        """Hook for extra setup once the service exists."""

    async def on_shutdown(self) -> None:
        """Hook run before the service is closed."""

    def on_player_ready(self, event: PlayerReadyEvent) -> None:
        if self.tracking_service is None:
            return
        self.tracking_service.track_player_connected(
            self.mod_id, self.host.player_count(), self.mod_version
        )

    def track_server_startup(self) -> None:
        if self.tracking_service is None:
            return
        self.tracking_service.track_server_using_mod(self.mod_id, self.mod_version)

    async def shutdown(self) -> None:
        with self._log_context():
            await self.on_shutdown()
            if self.tracking_service is not None:
                await self.tracking_service.shutdown()
            if type(self)._instance is self:
                type(self)._instance = None
            log.info("Tracking plugin stopped")
