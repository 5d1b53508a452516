import threading
import time
import uuid


def generate_client_id() -> str:
    """Client ID in the ``<unix seconds>.<random>`` shape analytics backends expect."""
    return f"{int(time.time())}.{uuid.uuid4().hex[:10]}"


class ClientIdCache:
    """Memoizes one client ID per mod for the life of the process."""

    def __init__(self):
        self._ids: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, mod_id: str) -> str:
        with self._lock:
            client_id = self._ids.get(mod_id)
            if client_id is None:
                client_id = generate_client_id()
                self._ids[mod_id] = client_id
            return client_id

    def known_mods(self) -> list[str]:
        with self._lock:
            return list(self._ids)
