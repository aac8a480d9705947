"""Couche données : moteur DuckDB, store de métadonnées, requêtes et services."""
