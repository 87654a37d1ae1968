"""Tests for JSON definition persistence."""

import json
from pathlib import Path

import pytest

from enumsync.core.errors import StoreError
from enumsync.core.models import EnumDefinition
from enumsync.core.store import DefinitionStore


class TestDefinitionStore:
    def test_save_and_load(self, store: DefinitionStore, weapons: EnumDefinition) -> None:
        path = store.save(weapons)

        assert path == store.root / "WeaponType.json"
        assert store.load(path) == weapons

    def test_saved_record_is_plain_json(
        self, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        data = json.loads(store.save(weapons).read_text())

        assert data["enum_name"] == "WeaponType"
        assert data["removed_values"] == ["Axe"]
        assert data["removed_value_numbers"] == [3]

    def test_save_leaves_no_temp_file(
        self, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        store.save(weapons)
        assert [p.name for p in store.root.iterdir()] == ["WeaponType.json"]

    def test_find_by_name(self, store: DefinitionStore, weapons: EnumDefinition) -> None:
        store.save(weapons)
        assert store.find("WeaponType") == weapons
        assert store.find("Missing") is None

    def test_find_record_saved_under_other_file_name(
        self, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        store.root.mkdir(parents=True)
        (store.root / "legacy.json").write_text(json.dumps(weapons.model_dump(mode="json")))
        assert store.find("WeaponType") == weapons

    def test_find_skips_corrupt_records(
        self, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        store.save(weapons)
        (store.root / "broken.json").write_text("{not json")

        assert store.find("WeaponType") == weapons
        assert store.load_all() == [weapons]

    def test_load_corrupt_record_raises(self, store: DefinitionStore) -> None:
        store.root.mkdir(parents=True)
        path = store.root / "Bad.json"
        path.write_text('{"values": "not a list"}')

        with pytest.raises(StoreError, match="Failed to load"):
            store.load(path)

    def test_find_all_on_missing_directory(self, tmp_path: Path) -> None:
        assert DefinitionStore(tmp_path / "nowhere").find_all() == []

    def test_delete(self, store: DefinitionStore, weapons: EnumDefinition) -> None:
        store.save(weapons)

        assert store.delete("WeaponType") is True
        assert store.delete("WeaponType") is False
        assert store.find("WeaponType") is None

    def test_save_updates_record_where_it_was_found(
        self, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        store.root.mkdir(parents=True)
        legacy = store.root / "legacy.json"
        legacy.write_text(json.dumps(weapons.model_dump(mode="json")))

        updated = weapons.add_value("Spear")
        assert store.save(updated) == legacy
        assert store.find("WeaponType") == updated
        assert not store.path_for("WeaponType").exists()

    def test_save_refuses_to_overwrite_other_definition(
        self, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        other = EnumDefinition(enum_name="Armor", values=["Plate"])
        store.root.mkdir(parents=True)
        squatter = store.path_for("WeaponType")
        squatter.write_text(json.dumps(other.model_dump(mode="json")))

        with pytest.raises(StoreError, match="different enum definition"):
            store.save(weapons)
        assert store.load(squatter) == other

    def test_delete_record_under_other_file_name(
        self, store: DefinitionStore, weapons: EnumDefinition
    ) -> None:
        store.root.mkdir(parents=True)
        legacy = store.root / "legacy.json"
        legacy.write_text(json.dumps(weapons.model_dump(mode="json")))

        assert store.delete("WeaponType") is True
        assert not legacy.exists()
