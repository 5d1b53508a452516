"""Contract between the tracking plugins and the game server runtime that loads them."""

from pathlib import Path
from typing import Any, Callable, Optional, Protocol, runtime_checkable

from pydantic import BaseModel


class PluginManifest(BaseModel):
    name: str
    version: str = "1.0.0"


class PlayerReadyEvent(BaseModel):
    """Fired by the server once a player has fully joined."""

    player_id: str
    player_name: Optional[str] = None


EventHandler = Callable[[Any], Any]


@runtime_checkable
class PluginHost(Protocol):
    """
    What the server runtime exposes to a plugin. The runtime owns lifecycle,
    event dispatch and the player registry; plugins only consume them.
    """

    @property
    def manifest(self) -> PluginManifest: ...

    @property
    def config_directory(self) -> Path: ...

    def register_event(self, event_type: type, handler: EventHandler) -> None: ...

    def player_count(self) -> int: ...
