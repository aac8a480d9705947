"""
Tests pour le builder de requêtes et les requêtes de similarité.
(Tests for query builder and similarity queries)
"""
from __future__ import annotations

from datetime import datetime

import pytest

from playertracker.config import SimilarityConfig
from playertracker.data.query.builder import QueryBuilder, SqlQuery
from playertracker.data.query import similarity_queries as queries

SINCE = datetime(2024, 1, 1)


class TestQueryBuilder:
    """Tests du QueryBuilder."""

    def test_fragments_and_params_accumulate(self):
        query = (
            QueryBuilder()
            .add("SELECT * FROM player_rounds")
            .add("WHERE player_name = $player", player="Sarge")
            .add("AND round_start_time >= $since", since=SINCE)
            .build()
        )
        assert isinstance(query, SqlQuery)
        assert query.sql.splitlines()[0] == "SELECT * FROM player_rounds"
        assert query.params == {"player": "Sarge", "since": SINCE}

    def test_rebinding_same_value_is_allowed(self):
        builder = QueryBuilder().add("WHERE a = $x", x=1).add("OR b = $x", x=1)
        assert builder.params == {"x": 1}

    def test_conflicting_value_raises(self):
        builder = QueryBuilder().add("WHERE a = $x", x=1)
        with pytest.raises(ValueError, match=r"\$x"):
            builder.add("OR b = $x", x=2)

    def test_add_if(self):
        query = QueryBuilder().add("SELECT 1").add_if(False, "WHERE $y", y=1).build()
        assert query.params == {}
        assert "WHERE" not in query.sql

    def test_empty_server_filter_binds_nothing(self):
        query = QueryBuilder().add("SELECT 1 WHERE TRUE").add_server_filter([]).build()
        assert "servers" not in query.params
        assert "list_contains" not in query.sql

    def test_server_filter_binds_list(self):
        query = QueryBuilder().add("SELECT 1 WHERE TRUE").add_server_filter(("a", "b")).build()
        assert query.params["servers"] == ["a", "b"]
        assert "list_contains($servers, server_guid)" in query.sql

    def test_values_never_inlined(self):
        query = QueryBuilder().add("WHERE player_name = $player", player="x'; DROP TABLE player_rounds; --").build()
        assert "DROP" not in query.sql


class TestSimilarityQueries:
    """Tests des requêtes prédéfinies (construction uniquement)."""

    def test_candidate_query_requires_servers(self):
        with pytest.raises(ValueError):
            queries.candidate_search_query(
                target="Sarge",
                target_favorite_server="a",
                target_kdr=1.0,
                target_play_minutes=100.0,
                servers=[],
                since=SINCE,
                ping_since=SINCE,
                fetch_limit=50,
                include_alias_signals=False,
                config=SimilarityConfig(),
            )

    def test_candidate_query_alias_signals_optional(self):
        common = dict(
            target="Sarge",
            target_favorite_server="a",
            target_kdr=1.0,
            target_play_minutes=100.0,
            servers=["a"],
            since=SINCE,
            ping_since=SINCE,
            fetch_limit=50,
            config=SimilarityConfig(),
        )
        default = queries.candidate_search_query(include_alias_signals=False, **common)
        alias = queries.candidate_search_query(include_alias_signals=True, **common)

        assert "player_metrics" not in default.sql
        assert "ping_since" not in default.params
        assert "player_metrics" in alias.sql
        assert alias.params["min_ping_samples"] == 10
        assert "LIMIT 50" in default.sql

    def test_invalid_percentile_rejected(self):
        config = SimilarityConfig(typical_hour_percentile=1.5)
        with pytest.raises(ValueError):
            queries.candidate_search_query(
                target="Sarge",
                target_favorite_server="a",
                target_kdr=1.0,
                target_play_minutes=100.0,
                servers=["a"],
                since=SINCE,
                ping_since=SINCE,
                fetch_limit=50,
                include_alias_signals=False,
                config=config,
            )

    def test_hourly_query_without_servers_is_unscoped(self):
        query = queries.hourly_activity_query("Sarge", SINCE, [])
        assert set(query.params) == {"player", "since"}
