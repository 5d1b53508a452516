import secrets
from typing import Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from tracking_core.host import PlayerReadyEvent
from tracking_core.plugin import TrackingPlugin
from tracking_core.service import DEFAULT_MAX_REQUESTS_PER_MINUTE

from .service import StatsTrackingService

log = structlog.get_logger(__name__)


class StatsTrackingPlugin(TrackingPlugin):
    """PostHog tracking add-on."""

    auto_track_players_key = "tracking.features.playerConnections"
    auto_track_startup_key = "tracking.features.serverLifecycle"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.scheduler: Optional[AsyncIOScheduler] = None

    @property
    def stats_service(self) -> StatsTrackingService:
        return self.tracking_service

    def register_defaults(self) -> None:
        # PostHog configuration
        self.config.add_default("posthog.enabled", True, "Whether PostHog tracking is enabled")
        self.config.add_default("posthog.apiKey", "", "PostHog API Key")

        # Tracking configuration
        self.config.add_default(
            "tracking.features.playerConnections",
            True,
            "Whether to automatically track player connections",
        )
        self.config.add_default(
            "tracking.features.serverLifecycle",
            True,
            "Whether to automatically track server lifecycle (startup and shutdown)",
        )
        self.config.add_default(
            "tracking.features.playerSeen",
            False,
            "Whether to send hashed player IDs when players join",
        )
        self.config.add_default(
            "tracking.heartbeatIntervalMinutes",
            30,
            "Minutes between heartbeat events, 0 to disable",
        )
        self.config.add_default(
            "tracking.playerSalt", "", "Salt for hashed player IDs, generated when empty"
        )

        self.config.add_default(
            "rateLimit.maxRequestsPerMinute",
            DEFAULT_MAX_REQUESTS_PER_MINUTE,
            "Maximum number of PostHog requests per minute",
        )

    def create_service(self) -> StatsTrackingService:
        return StatsTrackingService(
            self.config, sender=self.sender, settings=self.settings
        )

    @property
    def player_salt(self) -> str:
        salt = self.config.get_str("tracking.playerSalt", "")
        if not salt:
            salt = secrets.token_hex(16)
            self.config.set("tracking.playerSalt", salt)
            self.config.save()
        return salt

    def on_started(self) -> None:
        interval = self.config.get_int("tracking.heartbeatIntervalMinutes", 30)
        if interval <= 0:
            return

        # Jobs run on the loop the sender dispatches to, its own one when the
        # host starts plugins outside any event loop.
        loop = self.stats_service.sender.loop_for_caller()
        self.scheduler = AsyncIOScheduler(event_loop=loop)
        self.scheduler.add_job(
            self.send_heartbeat,
            IntervalTrigger(minutes=interval),
            id="posthog_heartbeat",
            name="PostHog heartbeat",
        )
        self.scheduler.start()
        log.info("Heartbeat scheduled", interval_minutes=interval)

    async def send_heartbeat(self) -> None:
        self.track_server_startup()

    def on_player_ready(self, event: PlayerReadyEvent) -> None:
        super().on_player_ready(event)
        if self.config.get_bool("tracking.features.playerSeen", False):
            self.stats_service.track_player_seen(
                self.mod_id, event.player_id, self.player_salt, self.mod_version
            )

    async def on_shutdown(self) -> None:
        if self.scheduler is not None and self.scheduler.running:
            self.scheduler.shutdown(wait=False)
        self.scheduler = None

        if self.tracking_service is not None and self.config.get_bool(
            self.auto_track_startup_key, True
        ):
            self.tracking_service.track_custom_event(
                self.mod_id,
                "server_shutdown",
                {"uptime_seconds": self.stats_service.uptime_seconds},
            )
