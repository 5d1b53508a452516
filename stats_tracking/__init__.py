"""PostHog usage tracking plugin."""

from .plugin import StatsTrackingPlugin
from .service import StatsTrackingService

__all__ = ["StatsTrackingPlugin", "StatsTrackingService"]
