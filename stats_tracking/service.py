"""PostHog tracking service."""

from typing import Any, Optional

from tracking_core.service import TrackingService

from .telemetry_client import TelemetryClient

UNKNOWN_VERSION = "unknown"


class StatsTrackingService(TrackingService):
    """
    Sends installations, heartbeats, player counts and errors to PostHog.
    Each distinct API key (global or per-mod override) gets its own client.
    """

    backend_name = "posthog"
    config_prefix = "posthog"
    credential_key = "apiKey"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.endpoint = self.settings.posthog_endpoint
        self._clients: dict[str, TelemetryClient] = {}
        self.started_at = self.clock()

    def get_api_key(self, mod_id: str) -> str:
        return self.get_credential(mod_id)

    def client_for(self, mod_id: str) -> TelemetryClient:
        api_key = self.get_api_key(mod_id)
        client = self._clients.get(api_key)
        if client is None:
            client = TelemetryClient(api_key, self.sender, endpoint=self.endpoint)
            self._clients[api_key] = client
        return client

    @property
    def uptime_seconds(self) -> int:
        return int(self.clock() - self.started_at)

    def _deliver(self, mod_id: str, event_name: str, params: dict[str, Any]) -> bool:
        params["mod_id"] = mod_id
        return self.client_for(mod_id).capture(
            event_name, self.get_client_id(mod_id), params
        )

    def track_installation(self, mod_id: str, mod_version: Optional[str] = None) -> bool:
        if not self._admit(mod_id, "mod_install"):
            return False
        return self.client_for(mod_id).send_install(
            self.get_client_id(mod_id), mod_id, mod_version or UNKNOWN_VERSION
        )

    def track_server_using_mod(
        self, mod_id: str, mod_version: Optional[str] = None
    ) -> bool:
        if not self._admit(mod_id, "mod_heartbeat"):
            return False
        return self.client_for(mod_id).send_heartbeat(
            self.get_client_id(mod_id),
            mod_id,
            mod_version or UNKNOWN_VERSION,
            self.uptime_seconds,
        )

    def track_player_connected(
        self, mod_id: str, player_count: int, mod_version: Optional[str] = None
    ) -> bool:
        if not self._admit(mod_id, "players_online"):
            return False
        return self.client_for(mod_id).send_players_online(
            self.get_client_id(mod_id),
            mod_id,
            mod_version or UNKNOWN_VERSION,
            player_count,
        )

    def track_player_seen(
        self,
        mod_id: str,
        player_id: str,
        salt: str,
        mod_version: Optional[str] = None,
    ) -> bool:
        if not self._admit(mod_id, "player_seen"):
            return False
        return self.client_for(mod_id).send_player_seen(
            self.get_client_id(mod_id),
            mod_id,
            mod_version or UNKNOWN_VERSION,
            player_id,
            salt,
        )

    def track_error(
        self, mod_id: str, exc: BaseException, mod_version: Optional[str] = None
    ) -> bool:
        if not self._admit(mod_id, "mod_error"):
            return False
        return self.client_for(mod_id).send_error(
            self.get_client_id(mod_id), mod_id, mod_version or UNKNOWN_VERSION, exc
        )
