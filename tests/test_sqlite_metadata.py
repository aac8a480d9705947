"""Tests pour le store de métadonnées serveurs (SQLite)."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from playertracker.data.infrastructure.database.sqlite_metadata import (
    SQLITE_MAX_VARIABLES,
    ServerInfo,
    SQLiteMetadataStore,
)


class TestSQLiteMetadataStore:
    def test_creates_parent_directory(self, tmp_path):
        store = SQLiteMetadataStore(tmp_path / "nested" / "metadata.db")
        assert store.db_path.exists()

    def test_upsert_and_get(self, metadata_store):
        server = metadata_store.get_server("srv-alpha")
        assert server == ServerInfo(
            guid="srv-alpha", name="Alpha Server", ip="10.0.0.1", port=14567, game_id="bf1942", country=None
        )
        assert metadata_store.get_server("srv-unknown") is None

    def test_upsert_updates_name_and_keeps_known_fields(self, metadata_store):
        metadata_store.upsert_server(ServerInfo(guid="srv-alpha", name="Alpha #2", country="FR"))
        server = metadata_store.get_server("srv-alpha")
        assert server.name == "Alpha #2"
        assert server.ip == "10.0.0.1"
        assert server.country == "FR"

    def test_get_server_names_skips_unknown(self, metadata_store):
        names = metadata_store.get_server_names(["srv-alpha", "srv-charlie", "srv-alpha", ""])
        assert names == {"srv-alpha": "Alpha Server"}

    def test_get_server_names_empty(self, metadata_store):
        assert metadata_store.get_server_names([]) == {}

    def test_get_server_names_beyond_variable_limit(self, tmp_path):
        store = SQLiteMetadataStore(tmp_path / "metadata.db")
        count = SQLITE_MAX_VARIABLES + 150
        for i in range(count):
            store.upsert_server(ServerInfo(guid=f"srv-{i:04d}", name=f"Server {i}"))

        names = store.get_server_names(f"srv-{i:04d}" for i in range(count))

        assert len(names) == count
        assert names["srv-0999"] == "Server 999"


class TestServerInfo:
    """Validation des fiches serveur (pydantic)."""

    def test_strips_text_fields(self):
        server = ServerInfo(guid="  srv-delta ", name=" Delta ")
        assert (server.guid, server.name) == ("srv-delta", "Delta")

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"guid": "srv-x", "name": ""},
            {"guid": "srv-x", "name": "   "},
            {"guid": "", "name": "X"},
            {"guid": "srv-x", "name": "X", "port": 70000},
            {"guid": "srv-x", "name": "X", "port": -1},
        ],
    )
    def test_invalid_records_rejected(self, kwargs):
        with pytest.raises(ValidationError):
            ServerInfo(**kwargs)

    def test_unknown_fields_ignored(self):
        server = ServerInfo.model_validate({"guid": "srv-x", "name": "X", "updated_at": "2024-06-01"})
        assert server.model_dump() == {
            "guid": "srv-x",
            "name": "X",
            "ip": None,
            "port": None,
            "game_id": None,
            "country": None,
        }

    def test_invalid_record_never_reaches_store(self, metadata_store):
        with pytest.raises(ValidationError):
            metadata_store.upsert_server(ServerInfo(guid="srv-alpha", name=""))
        assert metadata_store.get_server("srv-alpha").name == "Alpha Server"
