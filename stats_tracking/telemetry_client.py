import hashlib
import platform
import uuid
from typing import Any, Optional

from tracking_core.sender import EventSender
from tracking_core.settings import POSTHOG_ENDPOINT


def hash_player_id(player_uuid: str, salt: str) -> str:
    """SHA-256 of the player UUID plus salt, so raw player IDs never leave the server."""
    return hashlib.sha256(f"{player_uuid}{salt}".encode("utf-8")).hexdigest()


class TelemetryClient:
    """
    PostHog capture client for one project API key.

    Only builds and dispatches payloads; whether an event may be sent at all
    is decided by the tracking service.
    """

    def __init__(
        self,
        api_key: str,
        sender: EventSender,
        endpoint: str = POSTHOG_ENDPOINT,
        install_id: Optional[str] = None,
    ):
        self.api_key = api_key
        self.sender = sender
        self.endpoint = endpoint
        self.install_id = install_id or str(uuid.uuid4())

    def build_payload(
        self, event: str, distinct_id: str, properties: dict[str, Any]
    ) -> dict[str, Any]:
        return {
            "api_key": self.api_key,
            "event": event,
            "distinct_id": distinct_id,
            "properties": {**properties, "install_id": self.install_id},
        }

    def capture(self, event: str, distinct_id: str, properties: dict[str, Any]) -> bool:
        return self.sender.dispatch(
            self.endpoint,
            self.build_payload(event, distinct_id, properties),
            mod_id=properties.get("mod_id"),
            event_name=event,
        )

    def send_install(self, distinct_id: str, mod_name: str, mod_version: str) -> bool:
        return self.capture(
            "mod_install",
            distinct_id,
            {
                "mod_id": mod_name,
                "mod_name": mod_name,
                "mod_version": mod_version,
                "python_version": platform.python_version(),
                "os": platform.system(),
                "arch": platform.machine(),
            },
        )

    def send_heartbeat(
        self, distinct_id: str, mod_name: str, mod_version: str, uptime_seconds: int
    ) -> bool:
        return self.capture(
            "mod_heartbeat",
            distinct_id,
            {
                "mod_id": mod_name,
                "mod_version": mod_version,
                "uptime_seconds": uptime_seconds,
            },
        )

    def send_players_online(
        self, distinct_id: str, mod_name: str, mod_version: str, count: int
    ) -> bool:
        return self.capture(
            "players_online",
            distinct_id,
            {"mod_id": mod_name, "count": count, "mod_version": mod_version},
        )

    def send_player_seen(
        self,
        distinct_id: str,
        mod_name: str,
        mod_version: str,
        player_uuid: str,
        salt: str,
    ) -> bool:
        return self.capture(
            "player_seen",
            distinct_id,
            {
                "mod_id": mod_name,
                "player_id": hash_player_id(player_uuid, salt),
                "mod_version": mod_version,
            },
        )

    def send_error(
        self, distinct_id: str, mod_name: str, mod_version: str, exc: BaseException
    ) -> bool:
        return self.capture(
            "mod_error",
            distinct_id,
            {
                "mod_id": mod_name,
                "exception": type(exc).__name__,
                "message": str(exc),
                "mod_version": mod_version,
                "severity": "error",
            },
        )
