"""Recherche groupée des candidats similaires à un joueur cible."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from playertracker.analysis.similarity_scoring import SimilarityMode
from playertracker.config import SIMILARITY_CONFIG, SimilarityConfig
from playertracker.data.infrastructure.database.duckdb_engine import DuckDBEngine
from playertracker.data.query import similarity_queries as queries
from playertracker.models import PlayerActivitySummary, SimilarityCandidate
from playertracker.utils.time_windows import months_before, to_naive_utc

logger = logging.getLogger(__name__)


def _zip_mapping(keys: list[Any] | None, values: list[Any] | None) -> dict[str, float]:
    if not keys or not values:
        return {}
    return {str(k): float(v) if v is not None else 1.0 for k, v in zip(keys, values)}


def _row_to_candidate(row: dict[str, Any]) -> SimilarityCandidate:
    kills = int(row["total_kills"] or 0)
    deaths = int(row["total_deaths"] or 0)
    return SimilarityCandidate(
        player_name=row["player_name"],
        total_kills=kills,
        total_deaths=deaths,
        total_play_time_minutes=float(row["total_play_time_minutes"] or 0.0),
        kill_death_ratio=float(row["kdr"]) if row["kdr"] is not None else PlayerActivitySummary.compute_kdr(kills, deaths),
        favorite_server=row["favorite_server"] or "",
        favorite_server_play_time_minutes=float(row["favorite_server_minutes"] or 0.0),
        game_ids=tuple(row["game_ids"] or ()),
        typical_online_hours=tuple(int(h) for h in row["typical_hours"] or ()),
        server_pings=_zip_mapping(row.get("ping_servers"), row.get("ping_values")),
        map_dominance_scores=_zip_mapping(row.get("dominance_maps"), row.get("dominance_values")),
        common_servers=tuple(row["common_servers"] or ()),
    )


class CandidateFinder:
    """
    Trouve les joueurs partageant au moins un serveur actif avec la cible.
    (Find players sharing an active server with the target)

    Une seule requête ; pings et domination par carte uniquement en mode alias.
    """

    def __init__(self, engine: DuckDBEngine, config: SimilarityConfig | None = None) -> None:
        self.engine = engine
        self.config = config or SIMILARITY_CONFIG

    def find(
        self,
        target: PlayerActivitySummary,
        active_servers: list[str] | tuple[str, ...],
        limit: int,
        mode: SimilarityMode | str = SimilarityMode.DEFAULT,
        *,
        as_of: datetime | None = None,
    ) -> list[SimilarityCandidate]:
        """
        Retourne au plus `limit × candidate_overfetch_factor` candidats.

        Args:
            target: Résumé de la cible
            active_servers: Serveurs actifs de la cible
            limit: Nombre de résultats finalement demandés
            mode: Mode de similarité (les signaux alias sont optionnels)
            as_of: Instant de référence (défaut: maintenant)

        Returns:
            Candidats dans l'ordre de pré-tri SQL (favori commun, puis proximité KDR/temps)
        """
        if not active_servers:
            logger.debug(f"Aucun serveur actif pour {target.player_name}, recherche ignorée")
            return []

        mode = SimilarityMode.parse(mode)
        reference = to_naive_utc(as_of)
        query = queries.candidate_search_query(
            target=target.player_name,
            target_favorite_server=target.favorite_server,
            target_kdr=target.kill_death_ratio,
            target_play_minutes=target.total_play_time_minutes,
            servers=sorted(active_servers),
            since=months_before(reference, self.config.lookback_months),
            ping_since=reference - timedelta(days=self.config.ping_lookback_days),
            fetch_limit=limit * self.config.candidate_overfetch_factor,
            include_alias_signals=mode == SimilarityMode.ALIAS_DETECTION,
            config=self.config,
        )
        candidates = [_row_to_candidate(row) for row in self.engine.run(query)]
        logger.debug(f"{len(candidates)} candidat(s) pour {target.player_name} ({mode.value})")
        return candidates
