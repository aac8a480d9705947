"""Tests pour la configuration (seuils de similarité et DuckDB)."""

from __future__ import annotations

import pytest

from playertracker.config import SimilarityConfig
from playertracker.data.infrastructure.database.duckdb_config import DEFAULT_MEMORY_LIMIT, DuckDBConfig


class TestSimilarityConfig:
    """Valeurs par défaut, overrides d'environnement et bornes de limit."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("PLAYERTRACKER_LOOKBACK_MONTHS", raising=False)
        config = SimilarityConfig()
        assert config.lookback_months == 6
        assert config.overlap_lookback_months == 3
        assert config.active_server_min_minutes == 5.0
        assert config.candidate_min_play_minutes == 30.0
        assert config.candidate_overfetch_factor == 5

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("PLAYERTRACKER_LOOKBACK_MONTHS", "3")
        monkeypatch.setenv("PLAYERTRACKER_MAX_VALID_PING", "800")
        config = SimilarityConfig()
        assert config.lookback_months == 3
        assert config.max_valid_ping == 800.0

    def test_invalid_env_value_ignored(self, monkeypatch):
        monkeypatch.setenv("PLAYERTRACKER_LOOKBACK_MONTHS", "six")
        assert SimilarityConfig().lookback_months == 6

    @pytest.mark.parametrize("limit", [1, 10, 50])
    def test_valid_limits(self, limit):
        assert SimilarityConfig().validate_limit(limit) == limit

    @pytest.mark.parametrize("limit", [0, -3, 51, 1000])
    def test_out_of_range_limits(self, limit):
        with pytest.raises(ValueError):
            SimilarityConfig().validate_limit(limit)

    @pytest.mark.parametrize("limit", [True, 2.5, "10"])
    def test_non_integer_limits(self, limit):
        with pytest.raises(ValueError):
            SimilarityConfig().validate_limit(limit)


class TestDuckDBConfig:
    """Réglages de session DuckDB."""

    def test_env_overrides(self, monkeypatch):
        monkeypatch.setenv("PLAYERTRACKER_DUCKDB_MEMORY_LIMIT", "2GB")
        monkeypatch.setenv("PLAYERTRACKER_DUCKDB_THREADS", "2")
        config = DuckDBConfig.from_env()
        assert config.memory_limit == "2GB"
        assert config.threads == 2

    @pytest.mark.parametrize("threads", ["many", "0", "-4"])
    def test_invalid_env_threads_ignored(self, monkeypatch, threads):
        monkeypatch.setenv("PLAYERTRACKER_DUCKDB_THREADS", threads)
        assert DuckDBConfig.from_env().threads is None

    def test_invalid_env_memory_limit_ignored(self, monkeypatch):
        monkeypatch.setenv("PLAYERTRACKER_DUCKDB_MEMORY_LIMIT", "1GB'; DROP TABLE player_rounds; --")
        assert DuckDBConfig.from_env().memory_limit == DEFAULT_MEMORY_LIMIT

    @pytest.mark.parametrize("kwargs", [{"memory_limit": "beaucoup"}, {"threads": 0}, {"threads": True}])
    def test_invalid_values_rejected(self, kwargs):
        with pytest.raises(ValueError):
            DuckDBConfig(**kwargs)

    def test_settings_order(self):
        assert DuckDBConfig(memory_limit="512MB", threads=3).settings() == {
            "memory_limit": "512MB",
            "threads": 3,
            "enable_progress_bar": False,
        }
        assert "threads" not in DuckDBConfig().settings()

    def test_apply_sets_threads(self):
        import duckdb

        conn = duckdb.connect(":memory:")
        try:
            DuckDBConfig(threads=2).apply(conn)
            assert conn.execute("SELECT current_setting('threads')").fetchone()[0] == 2
            assert conn.execute("SELECT current_setting('enable_progress_bar')").fetchone()[0] is False
        finally:
            conn.close()

    def test_engine_applies_config_on_connect(self):
        from playertracker.data.infrastructure.database.duckdb_engine import DuckDBEngine

        with DuckDBEngine(config=DuckDBConfig(threads=1)) as engine:
            assert engine.query("SELECT current_setting('threads') AS threads") == [{"threads": 1}]
