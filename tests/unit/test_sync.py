"""Tests for the sync service."""

import os
from pathlib import Path

import pytest

from enumsync.core.codec import generate
from enumsync.core.config import SyncConfig
from enumsync.core.models import EnumDefinition
from enumsync.core.numbering import NumberingMode
from enumsync.core.store import DefinitionStore
from enumsync.core.sync import SyncService
from enumsync.core.watcher import EventKind


def _edit(path: Path, old: str, new: str) -> None:
    """Rewrite part of a file and move its mtime forward."""
    stat = path.stat()
    path.write_text(path.read_text().replace(old, new))
    os.utime(path, (stat.st_atime, stat.st_mtime + 10))


class TestApply:
    def test_writes_file_and_definition(
        self, service: SyncService, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        result = service.apply(weapons)

        assert result.ok
        assert result.action == "generated"
        assert result.path == service.config.enum_file_path("WeaponType")
        assert result.path.read_text() == generate(weapons, service.config)
        assert store.find("WeaponType") == weapons

    def test_apply_by_name(
        self, service: SyncService, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        store.save(weapons)
        assert service.apply("WeaponType").action == "generated"
        assert service.apply("WeaponType").action == "unchanged"

    def test_unknown_name(self, service: SyncService) -> None:
        result = service.apply("Missing")
        assert not result.ok
        assert "No definition named 'Missing'" in result.message

    def test_invalid_definition_writes_nothing(
        self, service: SyncService, store: DefinitionStore
    ) -> None:
        definition = EnumDefinition(enum_name="Bad", values=["ok", "ok"])
        result = service.apply(definition)

        assert not result.ok
        assert "declared more than once" in result.message
        assert not service.config.enum_file_path("Bad").exists()
        assert store.find("Bad") is None

    def test_own_write_is_not_reingested(
        self, service: SyncService, weapons: EnumDefinition
    ) -> None:
        path = service.apply(weapons).path
        assert service.sync_file(path).action == "skipped"

    def test_apply_requested_event(
        self, service: SyncService, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        store.save(weapons)
        service.post(EventKind.APPLY_REQUESTED, enum_name="WeaponType")

        results = service.process_events()

        assert [r.action for r in results] == ["generated"]
        assert len(service.queue) == 0


class TestSyncFile:
    def test_hand_edit_is_merged(
        self, service: SyncService, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        path = service.apply(weapons).path
        _edit(path, "        Bow = 1,\n", "        Bow = 1,\n        Spear = 7,\n")

        result = service.sync_file(path)

        assert result.action == "updated"
        assert "added: Spear" in result.changes
        updated = store.find("WeaponType")
        assert updated.values == ["Sword", "Bow", "Spear", "Staff"]
        assert updated.number_map(NumberingMode.SEQUENTIAL)["Spear"] == 7

    def test_marking_obsolete_soft_deletes(
        self, service: SyncService, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        path = service.apply(weapons).path
        _edit(path, "        Bow = 1,", "        [System.Obsolete]\n        Bow = 1,")

        service.sync_file(path)

        updated = store.find("WeaponType")
        assert updated.removed_values == ["Bow", "Axe"]
        assert updated.removed_value_numbers == [1, 3]
        assert updated.values == ["Sword", "Staff"]

    def test_same_revision_processed_once(
        self, service: SyncService, weapons: EnumDefinition
    ) -> None:
        path = service.apply(weapons).path
        _edit(path, "Bow", "Arrow")

        assert service.sync_file(path).action == "updated"
        assert service.sync_file(path).action == "skipped"
        assert service.sync_file(path, force=True).action == "unchanged"

    def test_parse_error_leaves_definition_unchanged(
        self, service: SyncService, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        path = service.apply(weapons).path
        _edit(path, "public enum WeaponType", "public class WeaponType")

        result = service.sync_file(path)

        assert not result.ok
        assert result.action == "failed"
        assert store.find("WeaponType") == weapons

    def test_standalone_file_creates_definition(
        self, service: SyncService, store: DefinitionStore, config: SyncConfig
    ) -> None:
        path = config.enum_file_path("Loot")
        path.parent.mkdir(parents=True)
        path.write_text("public enum Loot\n{\n    Coin,\n    Gem,\n}\n")

        result = service.sync_file(path)

        assert result.action == "created"
        definition = store.find("Loot")
        assert definition.values == ["Coin", "Gem"]
        assert definition.namespace == config.default_namespace

    def test_standalone_empty_file_is_ignored(
        self, service: SyncService, store: DefinitionStore, config: SyncConfig
    ) -> None:
        path = config.enum_file_path("Nothing")
        path.parent.mkdir(parents=True)
        path.write_text("public enum Nothing { }\n")

        assert service.sync_file(path).action == "skipped"
        assert store.find("Nothing") is None

    def test_unreadable_file(self, service: SyncService, config: SyncConfig) -> None:
        result = service.sync_file(config.enum_file_path("Ghost"))
        assert not result.ok
        assert result.action == "failed"

    def test_canonicalize_rewrites_file(
        self, config: SyncConfig, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        service = SyncService(config, store=store, defer_until_build=False, canonicalize=True)
        path = service.apply(weapons).path
        _edit(path, "        Bow = 1,", "        Bow   =   1 ,  // ranged")

        assert service.sync_file(path).action == "unchanged"
        assert path.read_text() == generate(weapons, config)
        assert service.sync_file(path).action == "skipped"


class TestEvents:
    def test_changes_wait_for_build(
        self, config: SyncConfig, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        service = SyncService(config, store=store)
        path = service.apply(weapons).path
        _edit(path, "Bow", "Arrow")

        service.post(EventKind.FILE_CHANGED, path=path)
        service.post(EventKind.FILE_CHANGED, path=path)
        results = service.process_events()

        assert [r.action for r in results] == ["pending", "pending"]
        assert service.pending == [path]
        assert store.find("WeaponType") == weapons

        service.post(EventKind.BUILD_FINISHED)
        results = service.process_events()

        assert [r.action for r in results] == ["updated"]
        assert service.pending == []
        assert store.find("WeaponType").has_value("Arrow")

    def test_immediate_mode(self, service: SyncService, weapons: EnumDefinition) -> None:
        path = service.apply(weapons).path
        _edit(path, "Bow", "Arrow")

        service.post(EventKind.FILE_CHANGED, path=path)
        assert [r.action for r in service.process_events()] == ["updated"]

    def test_startup_scan(
        self, service: SyncService, store: DefinitionStore, config: SyncConfig
    ) -> None:
        config.generated_path.mkdir(parents=True)
        (config.generated_path / "A.cs").write_text("enum A { X }")
        (config.generated_path / "B.cs").write_text("enum B { Y = 3 }")

        service.post(EventKind.STARTUP_SCAN)
        results = service.process_events()

        assert [r.enum_name for r in results] == ["A", "B"]
        assert {d.enum_name for d in store.load_all()} == {"A", "B"}

    def test_scan_without_directory(self, service: SyncService) -> None:
        assert service.scan() == []


class TestCreateEnumFile:
    def test_sequential_template(self, service: SyncService, store: DefinitionStore) -> None:
        result = service.create_enum_file("Element")

        assert result.ok
        assert result.action == "created"
        text = result.path.read_text()
        for line in ["None = 0,", "Value1 = 1,", "Value2 = 2,", "Value3 = 3,"]:
            assert line in text
        assert store.find("Element").namespace == "Game.Enums"

    def test_flags_template(self, service: SyncService) -> None:
        text = service.create_enum_file("Layers", use_flags=True).path.read_text()

        assert "[System.Flags]" in text
        for line in ["None = 0,", "Value1 = 1,", "Value2 = 2,", "Value3 = 4,"]:
            assert line in text

    @pytest.mark.parametrize("name", ["", "1Bad", "class", "Has Space"])
    def test_invalid_name(self, service: SyncService, name: str) -> None:
        result = service.create_enum_file(name)
        assert not result.ok
        assert "not a valid C# identifier" in result.message

    def test_existing_enum_needs_overwrite(self, service: SyncService) -> None:
        service.create_enum_file("Element")

        assert not service.create_enum_file("Element").ok
        assert service.create_enum_file("Element", use_flags=True, overwrite=True).ok


class TestEdit:
    def test_edit_saves_and_regenerates(
        self, service: SyncService, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        service.apply(weapons)
        result = service.edit("WeaponType", lambda d: d.add_value("Spear"))

        assert result.ok
        assert store.find("WeaponType").has_value("Spear")
        assert "Spear = 4," in result.path.read_text()

    def test_rejected_edit(self, service: SyncService, weapons: EnumDefinition) -> None:
        service.apply(weapons)
        result = service.edit("WeaponType", lambda d: d.add_value("Sword"))

        assert not result.ok
        assert "already exists" in result.message

    def test_missing_definition(self, service: SyncService) -> None:
        result = service.edit("Missing", lambda d: d)
        assert not result.ok


class TestAddValueToFile:
    def test_generated_file_updates_definition(
        self, service: SyncService, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        path = service.apply(weapons).path

        result = service.add_value_to_file(path, "WeaponType", "Spear")

        assert result.ok
        assert result.action == "updated"
        assert "added Spear = 4" in result.message
        assert "Spear = 4," in path.read_text()
        updated = store.find("WeaponType")
        assert updated.values == ["Sword", "Bow", "Staff", "Spear"]
        assert updated.number_map(NumberingMode.SEQUENTIAL)["Spear"] == 4
        assert service.sync_file(path).action == "skipped"

    def test_hand_written_file_leaves_store_alone(
        self, service: SyncService, store: DefinitionStore, tmp_path: Path
    ) -> None:
        path = tmp_path / "Scripts" / "Loot.cs"
        path.parent.mkdir()
        path.write_text("public enum Loot\n{\n    Coin = 0,\n    Gem = 1,\n}\n")

        result = service.add_value_to_file(path, "Loot", "Ruby")

        assert result.ok
        assert result.message == "added Ruby = 2 in Loot.cs"
        assert "    Ruby = 2,\n}" in path.read_text()
        assert store.find("Loot") is None

    def test_failure_is_reported(self, service: SyncService, weapons: EnumDefinition) -> None:
        path = service.apply(weapons).path
        before = path.read_text()

        result = service.add_value_to_file(path, "WeaponType", "Sword")

        assert not result.ok
        assert "already exists" in result.message
        assert path.read_text() == before

    def test_is_managed(self, service: SyncService, config: SyncConfig, tmp_path: Path) -> None:
        assert service.is_managed(config.enum_file_path("Anything"))
        assert not service.is_managed(tmp_path / "Scripts" / "Loot.cs")
