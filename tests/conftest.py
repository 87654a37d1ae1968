"""Shared pytest fixtures for enumsync tests."""

from pathlib import Path

import pytest

from enumsync.core.config import SyncConfig
from enumsync.core.models import EnumDefinition
from enumsync.core.store import DefinitionStore
from enumsync.core.sync import SyncService


@pytest.fixture
def config(tmp_path: Path) -> SyncConfig:
    """Default settings anchored in a temporary project directory."""
    return SyncConfig().resolved(tmp_path)


@pytest.fixture
def store(config: SyncConfig) -> DefinitionStore:
    return DefinitionStore(config.definitions_path)


@pytest.fixture
def service(config: SyncConfig, store: DefinitionStore) -> SyncService:
    """Sync service that processes file changes immediately."""
    return SyncService(config, store=store, defer_until_build=False)


@pytest.fixture
def weapons() -> EnumDefinition:
    """A small sequential definition with one tooltip and one removed member."""
    return EnumDefinition(
        enum_name="WeaponType",
        namespace="Game.Enums",
        values=["Sword", "Bow", "Staff"],
        tooltips=["Melee", "", 'Casts "spells"'],
        removed_values=["Axe"],
        removed_value_numbers=[3],
        pinned_numbers={},
    )
