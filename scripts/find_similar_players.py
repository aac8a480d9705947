#!/usr/bin/env python3
"""Script pour rechercher les joueurs similaires ou les alias potentiels.

Ce script :
1. Agrège l'activité du joueur cible sur les 6 derniers mois
2. Recherche et classe les candidats partageant ses serveurs actifs
3. Affiche un tableau des résultats avec les justifications

Usage:
    # Joueurs au profil similaire (10 résultats)
    python scripts/find_similar_players.py similar Sarge

    # Détection d'alias, 20 résultats
    python scripts/find_similar_players.py similar Sarge --mode alias --limit 20

    # Comparer les heures d'activité de deux joueurs
    python scripts/find_similar_players.py hours Sarge Grunt

    # Bases explicites (sinon data/warehouse/ ou variables PLAYERTRACKER_*)
    python scripts/find_similar_players.py --db analytics.duckdb --metadata-db metadata.db similar Sarge

    # Fenêtres calculées à partir d'une date fixe
    python scripts/find_similar_players.py --as-of 2024-06-15T12:00:00 similar Sarge
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

# Ajouter le répertoire parent au path pour les imports
REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT))

import polars as pl

from playertracker.analysis.similarity_scoring import SimilarityMode
from playertracker.config import SIMILARITY_CONFIG
from playertracker.data.infrastructure.database.duckdb_config import ANALYTICS_CONFIG
from playertracker.data.infrastructure.database.duckdb_engine import (
    AnalyticsStoreUnavailableError,
    DuckDBEngine,
)
from playertracker.data.infrastructure.database.sqlite_metadata import SQLiteMetadataStore
from playertracker.data.services.similarity_service import PlayerSimilarityService
from playertracker.models import PlayerActivityHoursComparison, SimilarPlayersResult
from playertracker.utils.paths import get_analytics_db_path, get_metadata_db_path

# Configuration du logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


def similar_players_frame(result: SimilarPlayersResult) -> pl.DataFrame:
    """Tableau Polars des joueurs similaires (une ligne par joueur)."""
    return pl.DataFrame(
        {
            "player": [p.player_name for p in result.similar_players],
            "score": [round(p.similarity_score, 3) for p in result.similar_players],
            "kdr": [round(p.kill_death_ratio, 2) for p in result.similar_players],
            "play_minutes": [round(p.total_play_time_minutes) for p in result.similar_players],
            "favorite_server": [p.favorite_server for p in result.similar_players],
            "overlap_minutes": [round(p.temporal_overlap_minutes) for p in result.similar_players],
            "reasons": ["; ".join(p.similarity_reasons) for p in result.similar_players],
        },
        schema={
            "player": pl.Utf8,
            "score": pl.Float64,
            "kdr": pl.Float64,
            "play_minutes": pl.Int64,
            "favorite_server": pl.Utf8,
            "overlap_minutes": pl.Int64,
            "reasons": pl.Utf8,
        },
    )


def activity_hours_frame(comparison: PlayerActivityHoursComparison) -> pl.DataFrame:
    """Tableau Polars des minutes par heure pour les deux joueurs (heure croissante)."""
    minutes1 = {h.hour: h.minutes_active for h in comparison.player1_activity_hours}
    minutes2 = {h.hour: h.minutes_active for h in comparison.player2_activity_hours}
    hours = list(range(24))
    column2 = comparison.player2 if comparison.player2 != comparison.player1 else f"{comparison.player2} (2)"
    return pl.DataFrame(
        {
            "hour": hours,
            comparison.player1: [round(minutes1.get(h, 0.0), 1) for h in hours],
            column2: [round(minutes2.get(h, 0.0), 1) for h in hours],
        }
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Recherche de joueurs similaires et détection d'alias",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--db", type=Path, default=None, help="Chemin vers analytics.duckdb")
    parser.add_argument("--metadata-db", type=Path, default=None, help="Chemin vers metadata.db (SQLite)")
    parser.add_argument(
        "--as-of",
        type=datetime.fromisoformat,
        default=None,
        help="Instant de référence des fenêtres, ISO 8601 (défaut: maintenant)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Logs détaillés (DEBUG)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    similar = subparsers.add_parser("similar", help="Joueurs similaires à un joueur cible")
    similar.add_argument("player", type=str, help="Nom du joueur cible")
    similar.add_argument(
        "--limit",
        type=int,
        default=SIMILARITY_CONFIG.default_limit,
        help=f"Nombre de résultats ({SIMILARITY_CONFIG.min_limit}-{SIMILARITY_CONFIG.max_limit}, "
        f"défaut: {SIMILARITY_CONFIG.default_limit})",
    )
    similar.add_argument(
        "--mode",
        type=str,
        default=SimilarityMode.DEFAULT.value,
        help="Mode: default | alias (défaut: default)",
    )

    hours = subparsers.add_parser("hours", help="Comparer les heures d'activité de deux joueurs")
    hours.add_argument("player1", type=str, help="Premier joueur")
    hours.add_argument("player2", type=str, help="Second joueur")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Point d'entrée principal."""
    args = build_parser().parse_args(argv)
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    db_path = args.db or get_analytics_db_path()
    metadata_path = args.metadata_db or get_metadata_db_path()
    metadata_store = SQLiteMetadataStore(metadata_path) if metadata_path.exists() else None
    if metadata_store is None:
        logger.warning(f"Store de métadonnées absent ({metadata_path}), guids affichés tels quels")

    try:
        with DuckDBEngine(db_path, read_only=True, config=ANALYTICS_CONFIG) as engine:
            service = PlayerSimilarityService(engine, metadata_store)
            if args.command == "similar":
                result = service.find_similar_players(args.player, args.limit, args.mode, as_of=args.as_of)
                if result.target_stats is None:
                    print(f"Aucune activité récente pour {args.player}")
                    return 0
                print(similar_players_frame(result))
            else:
                comparison = service.compare_players_activity_hours(
                    args.player1, args.player2, as_of=args.as_of
                )
                if comparison.common_servers:
                    print(f"Serveurs communs: {', '.join(comparison.common_servers)}")
                print(activity_hours_frame(comparison))
    except ValueError as e:
        logger.error(f"Paramètre invalide: {e}")
        return 2
    except AnalyticsStoreUnavailableError as e:
        logger.error(str(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
