# tests/conftest.py

import json
from collections import defaultdict
from pathlib import Path

import httpx
import pytest

from ga_tracking.plugin import GATrackingPlugin
from stats_tracking.plugin import StatsTrackingPlugin
from tracking_core.host import PluginManifest
from tracking_core.plugin_config import PluginConfig
from tracking_core.sender import EventSender
from tracking_core.settings import TrackingSettings


class FakeHost:
    """In-memory stand-in for the game server runtime."""

    def __init__(self, config_directory: Path, name: str = "TestMod", version: str = "1.2.3"):
        self._manifest = PluginManifest(name=name, version=version)
        self._config_directory = config_directory
        self.handlers = defaultdict(list)
        self.players = 0

    @property
    def manifest(self) -> PluginManifest:
        return self._manifest

    @property
    def config_directory(self) -> Path:
        return self._config_directory

    def register_event(self, event_type, handler) -> None:
        self.handlers[event_type].append(handler)

    def fire(self, event) -> None:
        for handler in self.handlers[type(event)]:
            handler(event)

    def player_count(self) -> int:
        return self.players


class RecordingTransport:
    """Collects every outgoing request and answers with a fixed status."""

    def __init__(self, status_code: int = 204):
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code)

    def bodies(self) -> list[dict]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture(autouse=True)
def reset_plugin_instances():
    """Plugins publish themselves class-wide; keep tests isolated."""
    yield
    GATrackingPlugin._instance = None
    StatsTrackingPlugin._instance = None


@pytest.fixture
def settings() -> TrackingSettings:
    return TrackingSettings(_env_file=None)


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def sender(transport: RecordingTransport) -> EventSender:
    return EventSender(client=httpx.AsyncClient(transport=httpx.MockTransport(transport)))


@pytest.fixture
def host(tmp_path: Path) -> FakeHost:
    return FakeHost(tmp_path)


@pytest.fixture
def make_host(tmp_path: Path):
    def _make(name: str, version: str = "1.0.0") -> FakeHost:
        return FakeHost(tmp_path / name, name=name, version=version)

    return _make


@pytest.fixture
def make_config(tmp_path: Path):
    """Builds a loaded PluginConfig from a nested dict written to disk."""

    def _make(data: dict) -> PluginConfig:
        (tmp_path / "config.json").write_text(json.dumps(data), encoding="utf-8")
        config = PluginConfig(tmp_path, "config")
        config.load()
        return config

    return _make
