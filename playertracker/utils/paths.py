"""Gestion centralisée des chemins pour PlayerTracker.

Ce module définit les chemins par défaut des deux stores consommés :
- data/warehouse/analytics.duckdb : faits player_rounds / player_metrics
- data/warehouse/metadata.db : référentiel serveurs (guid → nom)
"""

from __future__ import annotations

import os
from pathlib import Path

# =============================================================================
# Chemins racine
# =============================================================================


def _find_repo_root() -> Path:
    """Trouve la racine du projet (contient pyproject.toml ou .git)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / "pyproject.toml").exists() or (parent / ".git").exists():
            return parent

    # Fallback : variable d'environnement ou CWD
    if env_root := os.environ.get("PLAYERTRACKER_ROOT"):
        return Path(env_root)

    return Path.cwd()


REPO_ROOT: Path = _find_repo_root()

DATA_DIR: Path = REPO_ROOT / "data"

WAREHOUSE_DIR: Path = DATA_DIR / "warehouse"


# =============================================================================
# Constantes de noms de fichiers
# =============================================================================

ANALYTICS_DB_FILENAME = "analytics.duckdb"

METADATA_DB_FILENAME = "metadata.db"


# =============================================================================
# Fonctions utilitaires
# =============================================================================


def get_analytics_db_path() -> Path:
    """Retourne le chemin vers la DB analytique DuckDB.

    La variable PLAYERTRACKER_ANALYTICS_DB est prioritaire si définie.
    """
    if env_path := os.environ.get("PLAYERTRACKER_ANALYTICS_DB"):
        return Path(env_path)
    return WAREHOUSE_DIR / ANALYTICS_DB_FILENAME


def get_metadata_db_path() -> Path:
    """Retourne le chemin vers la DB SQLite des serveurs.

    La variable PLAYERTRACKER_METADATA_DB est prioritaire si définie.
    """
    if env_path := os.environ.get("PLAYERTRACKER_METADATA_DB"):
        return Path(env_path)
    return WAREHOUSE_DIR / METADATA_DB_FILENAME
