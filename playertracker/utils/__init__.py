"""Utilitaires partagés pour PlayerTracker."""

from playertracker.utils.paths import (
    DATA_DIR,
    REPO_ROOT,
    WAREHOUSE_DIR,
    get_analytics_db_path,
    get_metadata_db_path,
)
from playertracker.utils.time_windows import months_before, to_naive_utc

__all__ = [
    # paths
    "REPO_ROOT",
    "DATA_DIR",
    "WAREHOUSE_DIR",
    "get_analytics_db_path",
    "get_metadata_db_path",
    # time windows
    "months_before",
    "to_naive_utc",
]
