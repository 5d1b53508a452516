"""Google Analytics usage tracking plugin."""

from .plugin import GATrackingPlugin
from .service import GATrackingService

__all__ = ["GATrackingPlugin", "GATrackingService"]
