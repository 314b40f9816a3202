"""Tests for scepgate.store.registry.load_challenge_store."""

from __future__ import annotations

import sys
import types

import pytest

from scepgate.challenge.base import StorageError
from scepgate.config.settings import DatabaseSettings, DynamicStoreSettings
from scepgate.store.base import ChallengeStore
from scepgate.store.memory import MemoryChallengeStore
from scepgate.store.postgres import PostgresChallengeStore
from scepgate.store.registry import load_challenge_store


def _settings(backend: str) -> DynamicStoreSettings:
    return DynamicStoreSettings(enabled=True, backend=backend, ttl_seconds=60, token_bytes=24)


class _GoodStore(ChallengeStore):
    backend_name = "good"

    def scep_challenge(self):
        return "fixed"

    def has_challenge(self, candidate):
        return candidate == "fixed"

    def gc(self):
        return 0


class _NotAStore:
    pass


@pytest.fixture()
def ext_module(monkeypatch):
    mod = types.ModuleType("scepgate_test_ext_stores")
    mod.GoodStore = _GoodStore
    mod.NotAStore = _NotAStore
    monkeypatch.setitem(sys.modules, mod.__name__, mod)
    return mod


class TestBuiltins:
    def test_memory(self):
        assert isinstance(load_challenge_store(_settings("memory")), MemoryChallengeStore)

    def test_postgres(self):
        db = DatabaseSettings(
            host="localhost",
            port=5432,
            database="scepgate",
            user="scepgate",
            password="",
            sslmode="prefer",
            connection_timeout=10,
            auto_setup=False,
        )
        store = load_challenge_store(_settings("postgres"), db)
        assert isinstance(store, PostgresChallengeStore)

    def test_postgres_without_database_fails(self):
        with pytest.raises(StorageError):
            load_challenge_store(_settings("postgres"), None)

    def test_unknown(self):
        with pytest.raises(StorageError, match="Unknown challenge store 'redis'"):
            load_challenge_store(_settings("redis"))


class TestExternal:
    def test_ext_store_loaded(self, ext_module):
        store = load_challenge_store(_settings("ext:scepgate_test_ext_stores.GoodStore"))
        assert isinstance(store, _GoodStore)
        assert store.has_challenge(store.scep_challenge()) is True

    def test_ext_not_a_store(self, ext_module):
        with pytest.raises(StorageError, match="not a subclass"):
            load_challenge_store(_settings("ext:scepgate_test_ext_stores.NotAStore"))

    def test_ext_missing_class(self, ext_module):
        with pytest.raises(StorageError, match="Failed to load"):
            load_challenge_store(_settings("ext:scepgate_test_ext_stores.Missing"))

    def test_ext_missing_module(self):
        with pytest.raises(StorageError, match="Failed to load"):
            load_challenge_store(_settings("ext:no_such_module_xyz.Store"))

    def test_ext_not_qualified(self):
        with pytest.raises(StorageError, match="fully qualified"):
            load_challenge_store(_settings("ext:Store"))
