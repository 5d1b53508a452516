import json
from pathlib import Path

from tracking_core.installations import InstallationTracker


def test_first_run_is_not_installed(tmp_path: Path):
    tracker = InstallationTracker(tmp_path)

    assert tracker.is_installed("mauth") is False


def test_mark_as_installed_persists_across_instances(tmp_path: Path):
    InstallationTracker(tmp_path).mark_as_installed("mauth")

    tracker = InstallationTracker(tmp_path)
    assert tracker.is_installed("mauth") is True
    assert tracker.is_installed("meconomy") is False
    assert (tmp_path / "installations.json").exists()


def test_dotted_mod_ids_are_tracked_separately(tmp_path: Path):
    tracker = InstallationTracker(tmp_path)
    tracker.mark_as_installed("mauth")
    tracker.mark_as_installed("mauth.core")

    reloaded = InstallationTracker(tmp_path)
    assert reloaded.is_installed("mauth") is True
    assert reloaded.is_installed("mauth.core") is True
    assert reloaded.is_installed("core") is False

    on_disk = json.loads((tmp_path / "installations.json").read_text())
    assert on_disk == {"installed": {"mauth": True, "mauth.core": True}}


def test_dotted_mod_id_marked_first_leaves_parent_unset(tmp_path: Path):
    tracker = InstallationTracker(tmp_path)
    tracker.mark_as_installed("mauth.core")

    assert tracker.is_installed("mauth") is False
