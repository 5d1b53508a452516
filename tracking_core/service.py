"""Bookkeeping shared by the Google Analytics and PostHog tracking services."""

import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

import structlog

from .client_ids import ClientIdCache
from .plugin_config import PluginConfig
from .rate_limit import RateLimiter
from .sender import EventSender
from .settings import TrackingSettings, get_settings

logger = structlog.get_logger(__name__)

DEFAULT_MAX_REQUESTS_PER_MINUTE = 20


class TrackingService(ABC):
    """
    Gatekeeper in front of an analytics backend.

    Decides whether an event for a given mod may be sent (enabled flag,
    credential present, shared per-minute budget) and hands admitted events
    to the backend-specific ``_deliver``.
    """

    backend_name: str = "analytics"
    config_prefix: str = ""
    credential_key: str = ""

    def __init__(
        self,
        config: PluginConfig,
        sender: Optional[EventSender] = None,
        settings: Optional[TrackingSettings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.settings = settings or get_settings()
        self.clock = clock
        self.log = logger.bind(backend=self.backend_name)

        self.enabled = config.get_bool(f"{self.config_prefix}.enabled", True)
        self.credential = config.get_str(
            f"{self.config_prefix}.{self.credential_key}", ""
        )
        self.max_requests_per_minute = config.get_int(
            "rateLimit.maxRequestsPerMinute", DEFAULT_MAX_REQUESTS_PER_MINUTE
        )

        self.rate_limiter = RateLimiter(self.max_requests_per_minute, 60.0, clock)
        self.client_ids = ClientIdCache()
        self.sender = sender or EventSender(
            timeout=self.settings.http_timeout,
            shutdown_grace=self.settings.shutdown_grace_seconds,
        )

        if self.enabled and not self.credential:
            self.log.warning(
                "Tracking is enabled but no credential is configured",
                config_key=f"{self.config_prefix}.{self.credential_key}",
            )

    def get_credential(self, mod_id: str) -> str:
        """Per-mod override from ``mods.<modId>.<credential>``, else the global one."""
        override = self.config.get_str(f"mods.{mod_id}.{self.credential_key}", "")
        return override or self.credential

    def is_enabled(self) -> bool:
        return self.enabled and bool(self.credential)

    def is_enabled_for(self, mod_id: str) -> bool:
        if not self.enabled:
            return False
        return bool(self.get_credential(mod_id))

    def get_client_id(self, mod_id: str) -> str:
        return self.client_ids.get(mod_id)

    def _admit(self, mod_id: str, event_name: str) -> bool:
        if not self.is_enabled_for(mod_id):
            return False

        if not self.rate_limiter.try_acquire():
            self.log.info(
                "Rate limit reached, skipping event",
                mod_id=mod_id,
                event_name=event_name,
                max_per_minute=self.max_requests_per_minute,
            )
            return False
        return True

    def send_event(
        self, mod_id: str, event_name: str, params: Optional[dict[str, Any]] = None
    ) -> bool:
        """Returns True when the event was handed to the sender."""
        if not self._admit(mod_id, event_name):
            return False
        return self._deliver(mod_id, event_name, dict(params or {}))

    @abstractmethod
    def _deliver(self, mod_id: str, event_name: str, params: dict[str, Any]) -> bool:
        """Build the backend payload and dispatch it."""

    @abstractmethod
    def track_installation(self, mod_id: str, mod_version: Optional[str] = None) -> bool:
        """Report the first run of a mod on this server."""

    @abstractmethod
    def track_server_using_mod(
        self, mod_id: str, mod_version: Optional[str] = None
    ) -> bool:
        """Report that a server has started with the mod loaded."""

    @abstractmethod
    def track_player_connected(
        self, mod_id: str, player_count: int, mod_version: Optional[str] = None
    ) -> bool:
        """Report the current number of connected players."""

    def track_server_startup(self, server_identifier: str) -> bool:
        # The server identifier doubles as the mod ID.
        return self.track_server_using_mod(server_identifier)

    def track_custom_event(
        self,
        mod_id: str,
        event_name: str,
        event_parameters: Optional[dict[str, Any]] = None,
    ) -> bool:
        params = dict(event_parameters or {})
        params["mod_id"] = mod_id
        return self.send_event(mod_id, event_name, params)

    async def shutdown(self) -> None:
        """Flush in-flight events and close the HTTP client."""
        try:
            await self.sender.aclose()
        except Exception as e:
            self.log.error("Error closing HTTP client", error=str(e))
