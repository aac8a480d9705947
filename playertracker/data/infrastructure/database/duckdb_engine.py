"""
Moteur de requête DuckDB.
(DuckDB query engine)

HOW IT WORKS:
1. DuckDB est le store analytique : tables de faits player_rounds et player_metrics
2. La connexion est ouverte à la demande puis configurée (DuckDBConfig)
3. Les requêtes sont toujours paramétrées ($nom), jamais concaténées
4. Les erreurs d'accès au store sont remontées comme AnalyticsStoreUnavailableError

Exemple d'utilisation:
    with DuckDBEngine("data/warehouse/analytics.duckdb") as engine:
        rows = engine.query(
            "SELECT server_guid, SUM(play_time_minutes) AS minutes "
            "FROM player_rounds WHERE player_name = $player GROUP BY server_guid",
            {"player": "Sarge"},
        )
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

import duckdb
import polars as pl

from playertracker.data.infrastructure.database.duckdb_config import ANALYTICS_CONFIG, DuckDBConfig

if TYPE_CHECKING:
    from playertracker.data.query.builder import SqlQuery


logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"


# Schéma SQL des faits analytiques (alimentés par le pipeline d'ingestion)
ANALYTICS_SCHEMA = """
CREATE TABLE IF NOT EXISTS player_rounds (
    round_id VARCHAR,
    player_name VARCHAR NOT NULL,
    server_guid VARCHAR NOT NULL,
    map_name VARCHAR,
    game_id VARCHAR,
    round_start_time TIMESTAMP NOT NULL,
    round_end_time TIMESTAMP NOT NULL,
    final_score INTEGER DEFAULT 0,
    final_kills INTEGER DEFAULT 0,
    final_deaths INTEGER DEFAULT 0,
    play_time_minutes DOUBLE DEFAULT 0,
    is_bot BOOLEAN DEFAULT false
);

CREATE TABLE IF NOT EXISTS player_metrics (
    player_name VARCHAR NOT NULL,
    server_guid VARCHAR NOT NULL,
    timestamp TIMESTAMP NOT NULL,
    ping DOUBLE
);
"""


class AnalyticsStoreUnavailableError(RuntimeError):
    """Levée lorsque le store analytique DuckDB est inaccessible.

    Erreur transitoire : aucune tentative de reconnexion n'est faite ici,
    la politique de retry appartient à l'appelant.
    """

    def __init__(self, db_path: str, cause: Exception):
        super().__init__(f"Store analytique indisponible ({db_path}): {cause}")
        self.db_path = db_path


class DuckDBEngine:
    """
    Moteur de requête DuckDB sur les faits de rounds et de métriques.
    (DuckDB query engine over round and metric facts)
    """

    def __init__(
        self,
        db_path: str | Path = IN_MEMORY,
        *,
        read_only: bool = True,
        config: DuckDBConfig | None = None,
    ) -> None:
        """
        Initialise le moteur DuckDB.
        (Initialize DuckDB engine)

        Args:
            db_path: Chemin vers le fichier .duckdb (":memory:" pour les tests)
            read_only: Si True, connexion en lecture seule (ignoré en mémoire)
            config: Réglages DuckDB (défaut: ANALYTICS_CONFIG)
        """
        self.db_path = str(db_path)
        self.read_only = read_only and self.db_path != IN_MEMORY
        self.config = config or ANALYTICS_CONFIG
        self._connection: duckdb.DuckDBPyConnection | None = None
        self.queries_executed = 0

    @property
    def connection(self) -> duckdb.DuckDBPyConnection:
        """
        Retourne la connexion DuckDB (créée à la demande).
        (Returns the DuckDB connection, created on demand)
        """
        if self._connection is None:
            try:
                self._connection = duckdb.connect(self.db_path, read_only=self.read_only)
            except duckdb.Error as exc:
                raise AnalyticsStoreUnavailableError(self.db_path, exc) from exc
            self.config.apply(self._connection)
            logger.debug(f"Connexion DuckDB ouverte: {self.db_path} (read_only={self.read_only})")
        return self._connection

    def ensure_schema(self) -> None:
        """Crée les tables de faits si elles n'existent pas."""
        self.connection.execute(ANALYTICS_SCHEMA)

    def _execute(self, sql: str, params: dict[str, Any] | None) -> duckdb.DuckDBPyConnection:
        conn = self.connection
        try:
            result = conn.execute(sql, params) if params else conn.execute(sql)
        except (duckdb.IOException, duckdb.ConnectionException) as exc:
            raise AnalyticsStoreUnavailableError(self.db_path, exc) from exc
        self.queries_executed += 1
        return result

    def query(self, sql: str, params: dict[str, Any] | None = None) -> list[dict[str, Any]]:
        """
        Exécute une requête SQL et retourne les résultats.
        (Execute SQL query and return results)

        Args:
            sql: Requête SQL avec placeholders nommés ($nom)
            params: Valeurs des placeholders

        Returns:
            Liste de dictionnaires (une ligne = un dict)
        """
        result = self._execute(sql, params)
        columns = [desc[0] for desc in result.description]
        return [dict(zip(columns, row)) for row in result.fetchall()]

    def query_df(self, sql: str, params: dict[str, Any] | None = None) -> pl.DataFrame:
        """
        Exécute une requête SQL et retourne un DataFrame Polars.
        (Execute SQL query and return Polars DataFrame)
        """
        return self._execute(sql, params).pl()

    def run(self, query: SqlQuery) -> list[dict[str, Any]]:
        """Exécute une requête construite par QueryBuilder."""
        return self.query(query.sql, query.params)

    def run_df(self, query: SqlQuery) -> pl.DataFrame:
        """Exécute une requête construite par QueryBuilder (retour Polars)."""
        return self.query_df(query.sql, query.params)

    def close(self) -> None:
        """Ferme la connexion DuckDB. (Close DuckDB connection)"""
        if self._connection is not None:
            self._connection.close()
            self._connection = None

    def __enter__(self) -> DuckDBEngine:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
