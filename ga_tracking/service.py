"""Google Analytics Measurement Protocol tracking service."""

from typing import Any, Iterable, Optional

from tracking_core.service import TrackingService

MAX_EVENTS_PER_REQUEST = 25
MAX_PARAM_NAME_LENGTH = 40
MAX_PARAM_VALUE_LENGTH = 100


def filter_params(params: dict[str, Any]) -> dict[str, str]:
    """Drop parameters Measurement Protocol would reject (long names, long or missing values)."""
    filtered = {}
    for key, value in params.items():
        if value is None or len(key) > MAX_PARAM_NAME_LENGTH:
            continue
        value = str(value).lower() if isinstance(value, bool) else str(value)
        if len(value) > MAX_PARAM_VALUE_LENGTH:
            continue
        filtered[key] = value
    return filtered


def build_event(event_name: str, params: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    event: dict[str, Any] = {"name": event_name}
    filtered = filter_params(params or {})
    if filtered:
        event["params"] = filtered
    return event


class GATrackingService(TrackingService):
    """
    Sends server usage, player counts and installations to Google Analytics,
    one client ID per mod.
    """

    backend_name = "google_analytics"
    config_prefix = "ga"
    credential_key = "measurementId"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.endpoint = self.settings.ga_endpoint
        self.api_secret = self.config.get_str("ga.apiSecret", "")

    def get_measurement_id(self, mod_id: str) -> str:
        return self.get_credential(mod_id)

    def get_api_secret(self, mod_id: str) -> str:
        override = self.config.get_str(f"mods.{mod_id}.apiSecret", "")
        return override or self.api_secret

    def _query_params(self, mod_id: str) -> dict[str, str]:
        params = {"measurement_id": self.get_measurement_id(mod_id)}
        api_secret = self.get_api_secret(mod_id)
        if api_secret:
            params["api_secret"] = api_secret
        return params

    def _dispatch(self, mod_id: str, events: list[dict[str, Any]], label: str) -> bool:
        body = {"client_id": self.get_client_id(mod_id), "events": events}
        return self.sender.dispatch(
            self.endpoint,
            body,
            params=self._query_params(mod_id),
            mod_id=mod_id,
            event_name=label,
        )

    def _deliver(self, mod_id: str, event_name: str, params: dict[str, Any]) -> bool:
        return self._dispatch(mod_id, [build_event(event_name, params)], event_name)

    def send_events(
        self,
        mod_id: str,
        events: Iterable[tuple[str, Optional[dict[str, Any]]]],
    ) -> int:
        """
        Send several events for one mod, batched into as few requests as the
        Measurement Protocol allows. Each request costs one rate-limit slot.

        Returns:
            Number of requests dispatched.
        """
        built = [build_event(name, params) for name, params in events]
        sent = 0
        for start in range(0, len(built), MAX_EVENTS_PER_REQUEST):
            batch = built[start : start + MAX_EVENTS_PER_REQUEST]
            label = f"batch:{len(batch)}"
            if not self._admit(mod_id, label):
                break
            if self._dispatch(mod_id, batch, label):
                sent += 1
        return sent

    def _with_version(self, params: dict[str, Any], mod_version: Optional[str]) -> dict[str, Any]:
        if mod_version:
            params["mod_version"] = mod_version
        return params

    def track_installation(self, mod_id: str, mod_version: Optional[str] = None) -> bool:
        params = {"mod_id": mod_id, "event_category": "mod_installation"}
        return self.send_event(
            mod_id, "mod_installation", self._with_version(params, mod_version)
        )

    def track_server_using_mod(
        self, mod_id: str, mod_version: Optional[str] = None
    ) -> bool:
        params = {"mod_id": mod_id, "event_category": "server_usage"}
        return self.send_event(
            mod_id, "server_using_mod", self._with_version(params, mod_version)
        )

    def track_player_connected(
        self, mod_id: str, player_count: int, mod_version: Optional[str] = None
    ) -> bool:
        params = {
            "mod_id": mod_id,
            "player_count": str(player_count),
            "event_category": "player_metrics",
        }
        return self.send_event(
            mod_id, "player_connected", self._with_version(params, mod_version)
        )
