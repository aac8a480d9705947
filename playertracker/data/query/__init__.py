"""
Module de requêtage analytique avec DuckDB.
(Analytical query module with DuckDB)

HOW IT WORKS:
1. QueryBuilder : assemble fragments SQL et paramètres nommés liés
2. similarity_queries : requêtes prédéfinies (agrégats, candidats, chevauchement)

Usage:
    from playertracker.data.query import similarity_queries

    query = similarity_queries.server_minutes_query("Sarge", since)
    rows = engine.run(query)
"""

from playertracker.data.query import similarity_queries
from playertracker.data.query.builder import QueryBuilder, SqlQuery

__all__ = [
    "QueryBuilder",
    "SqlQuery",
    "similarity_queries",
]
