from tracking_core.plugin import TrackingPlugin
from tracking_core.service import DEFAULT_MAX_REQUESTS_PER_MINUTE

from .service import GATrackingService


class GATrackingPlugin(TrackingPlugin):
    """Google Analytics tracking add-on."""

    def register_defaults(self) -> None:
        self.config.add_default("ga.enabled", True, "Whether Google Analytics tracking is enabled")
        self.config.add_default("ga.measurementId", "", "Google Analytics Measurement ID (G-XXXXXXXXXX)")
        self.config.add_default("ga.apiSecret", "", "Measurement Protocol API secret (optional)")

        self.config.add_default(
            "tracking.autoTrackPlayers", True, "Whether to automatically track player connections"
        )
        self.config.add_default(
            "tracking.autoTrackServerStartup", True, "Whether to automatically track server startup"
        )

        self.config.add_default(
            "rateLimit.maxRequestsPerMinute",
            DEFAULT_MAX_REQUESTS_PER_MINUTE,
            "Maximum number of GA requests per minute",
        )

    def create_service(self) -> GATrackingService:
        return GATrackingService(
            self.config, sender=self.sender, settings=self.settings
        )
