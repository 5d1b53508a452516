from pathlib import Path

from .plugin_config import PluginConfig

INSTALLATIONS_FILE = "installations.json"


class InstallationTracker:
    """
    Remembers which mods have already reported their first installation.
    State lives in its own file next to the plugin config.
    """

    def __init__(self, data_directory: Path | str):
        self.config = PluginConfig(data_directory, INSTALLATIONS_FILE)
        self.config.load()

    def _flags(self) -> dict[str, bool]:
        # Keyed by the literal mod ID; dotted IDs must not become nested keys.
        flags = self.config.get("installed")
        return flags if isinstance(flags, dict) else {}

    def is_installed(self, mod_id: str) -> bool:
        return self._flags().get(mod_id) is True

    def mark_as_installed(self, mod_id: str) -> None:
        flags = dict(self._flags())
        flags[mod_id] = True
        self.config.set("installed", flags)
        self.config.save()
