"""
Couche base de données : DuckDB (faits analytiques) et SQLite (métadonnées serveurs).
"""

from playertracker.data.infrastructure.database.duckdb_config import (
    ANALYTICS_CONFIG,
    DuckDBConfig,
)
from playertracker.data.infrastructure.database.duckdb_engine import (
    AnalyticsStoreUnavailableError,
    DuckDBEngine,
)
from playertracker.data.infrastructure.database.sqlite_metadata import (
    ServerInfo,
    SQLiteMetadataStore,
)

__all__ = [
    "ANALYTICS_CONFIG",
    "AnalyticsStoreUnavailableError",
    "DuckDBConfig",
    "DuckDBEngine",
    "SQLiteMetadataStore",
    "ServerInfo",
]
