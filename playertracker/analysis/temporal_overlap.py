"""Chevauchement de sessions entre un joueur cible et ses candidats.

Deux noms qui ne sont jamais en ligne en même temps sur le même serveur
sont un indice fort d'alias. Le calcul porte sur une fenêtre récente
(3 mois par défaut) en une seule requête pour tous les candidats.
"""

from __future__ import annotations

import logging
from datetime import datetime

from playertracker.config import SIMILARITY_CONFIG, SimilarityConfig
from playertracker.data.infrastructure.database.duckdb_engine import DuckDBEngine
from playertracker.data.query import similarity_queries as queries
from playertracker.models import TemporalOverlap
from playertracker.utils.time_windows import months_before, to_naive_utc

logger = logging.getLogger(__name__)


class TemporalOverlapCalculator:
    """
    Calcule les minutes de présence simultanée cible/candidat.
    (Compute simultaneous presence minutes)
    """

    def __init__(self, engine: DuckDBEngine, config: SimilarityConfig | None = None) -> None:
        self.engine = engine
        self.config = config or SIMILARITY_CONFIG

    def calculate(
        self,
        target: str,
        candidates: list[str],
        *,
        as_of: datetime | None = None,
    ) -> dict[str, TemporalOverlap]:
        """
        Chevauchement pour chaque candidat demandé.

        Args:
            target: Joueur cible
            candidates: Noms des candidats
            as_of: Instant de référence (défaut: maintenant)

        Returns:
            Dictionnaire nom → TemporalOverlap, une entrée par nom demandé
            (0 minute pour les candidats sans round récent)
        """
        names = list(dict.fromkeys(candidates))
        if not names:
            return {}

        since = months_before(to_naive_utc(as_of), self.config.overlap_lookback_months)
        rows = self.engine.run(queries.temporal_overlap_query(target, names, since))

        target_minutes = float(rows[0]["target_recent_minutes"]) if rows else 0.0
        overlaps = {name: TemporalOverlap(target_recent_minutes=target_minutes) for name in names}
        for row in rows:
            overlaps[row["player_name"]] = TemporalOverlap(
                overlap_minutes=float(row["overlap_minutes"] or 0.0),
                candidate_recent_minutes=float(row["candidate_recent_minutes"] or 0.0),
                target_recent_minutes=target_minutes,
            )

        overlapping = sum(1 for o in overlaps.values() if o.overlap_minutes > 0)
        logger.debug(f"Chevauchement {target}: {overlapping}/{len(names)} candidat(s) vus simultanément")
        return overlaps
