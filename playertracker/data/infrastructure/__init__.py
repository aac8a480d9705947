"""Infrastructure de stockage (DuckDB analytique + SQLite métadonnées)."""
