"""Tests for envmon.stores.factory - config-driven store creation."""

from __future__ import annotations

import pytest

import envmon.stores as stores_pkg
from envmon.exceptions import EnvmonConfigError
from envmon.stores.factory import _STORE_REGISTRY, create_store, register_store
from envmon.stores.file import JsonFileStore
from envmon.stores.memory import MemoryStore


class TestCreateStore:
    def test_memory(self) -> None:
        assert isinstance(create_store({"type": "memory"}), MemoryStore)

    def test_file_forwards_kwargs(self, tmp_path) -> None:
        store = create_store({"type": "File ", "path": str(tmp_path)})
        assert isinstance(store, JsonFileStore)

    def test_config_is_not_mutated(self) -> None:
        config = {"type": "memory"}
        create_store(config)
        assert config == {"type": "memory"}

    def test_missing_type(self) -> None:
        with pytest.raises(EnvmonConfigError, match="type"):
            create_store({})

    def test_unknown_type(self) -> None:
        with pytest.raises(EnvmonConfigError, match="Unknown store type"):
            create_store({"type": "tape"})

    def test_bad_option(self) -> None:
        with pytest.raises(EnvmonConfigError, match="Invalid options"):
            create_store({"type": "file", "directory": "/tmp"})


class TestRegisterStore:
    def test_register_custom(self) -> None:
        register_store("Scratch", "envmon.stores.memory", "MemoryStore")
        try:
            assert isinstance(create_store({"type": "scratch"}), MemoryStore)
        finally:
            _STORE_REGISTRY.pop("scratch", None)


class TestPackageExports:
    def test_eager_exports(self) -> None:
        assert stores_pkg.MemoryStore is MemoryStore
        assert stores_pkg.JsonFileStore is JsonFileStore

    def test_unknown_attribute(self) -> None:
        with pytest.raises(AttributeError):
            stores_pkg.TapeStore  # noqa: B018
