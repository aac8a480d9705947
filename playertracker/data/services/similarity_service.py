"""Service Similarité : recherche de joueurs similaires et détection d'alias.

Pipeline séquentiel par requête :
agrégation de la cible → candidats (une requête) → chevauchement (une requête)
→ scoring → tri/troncature → résolution des noms de serveurs (un appel)
→ construction des résultats.

Aucun cache interne : l'appelant peut mettre en cache sur (cible, mode, limit).
"""

from __future__ import annotations

import logging
import time
from datetime import datetime

from playertracker.analysis.activity import ActivityAggregator
from playertracker.analysis.candidates import CandidateFinder
from playertracker.analysis.server_names import collect_server_ids, resolve_server_names
from playertracker.analysis.similarity_scoring import SimilarityMode, SimilarityScorer
from playertracker.analysis.temporal_overlap import TemporalOverlapCalculator
from playertracker.config import SIMILARITY_CONFIG, SimilarityConfig
from playertracker.data.infrastructure.database.duckdb_engine import DuckDBEngine
from playertracker.data.infrastructure.database.sqlite_metadata import SQLiteMetadataStore
from playertracker.models import (
    HourlyActivity,
    PlayerActivityHoursComparison,
    SimilarityCandidate,
    SimilarityResult,
    SimilarityScore,
    SimilarPlayersResult,
)

logger = logging.getLogger(__name__)


def _require_player_name(value: str, label: str = "player_name") -> str:
    if value is None or not str(value).strip():
        raise ValueError(f"{label} ne peut pas être vide")
    return str(value).strip()


# ─── Service ───────────────────────────────────────────────────────────


class PlayerSimilarityService:
    """Service de similarité entre joueurs.

    Encapsule l'agrégation DuckDB, le scoring et la résolution des noms
    de serveurs via le store SQLite.
    """

    def __init__(
        self,
        engine: DuckDBEngine,
        metadata_store: SQLiteMetadataStore | None = None,
        config: SimilarityConfig | None = None,
    ) -> None:
        """
        Args:
            engine: Moteur DuckDB (faits player_rounds / player_metrics)
            metadata_store: Store des noms de serveurs (None = guids affichés tels quels)
            config: Seuils du moteur (défaut: SIMILARITY_CONFIG)
        """
        self.engine = engine
        self.metadata_store = metadata_store
        self.config = config or SIMILARITY_CONFIG
        self.aggregator = ActivityAggregator(engine, self.config)
        self.candidate_finder = CandidateFinder(engine, self.config)
        self.overlap_calculator = TemporalOverlapCalculator(engine, self.config)

    def find_similar_players(
        self,
        target_player: str,
        limit: int | None = None,
        mode: SimilarityMode | str = SimilarityMode.DEFAULT,
        *,
        as_of: datetime | None = None,
    ) -> SimilarPlayersResult:
        """Trouve les joueurs au profil similaire à la cible.

        Args:
            target_player: Nom du joueur cible.
            limit: Nombre maximum de résultats (1-50, défaut: config.default_limit).
            mode: "default" ou "alias_detection".
            as_of: Instant de référence des fenêtres (défaut: maintenant).

        Returns:
            SimilarPlayersResult trié par score décroissant ; vide avec
            target_stats=None si la cible n'a aucune activité dans la fenêtre.

        Raises:
            ValueError: Nom vide, limit hors bornes ou mode inconnu.
            AnalyticsStoreUnavailableError: Store DuckDB inaccessible.
        """
        target_player = _require_player_name(target_player, "target_player")
        limit = self.config.validate_limit(self.config.default_limit if limit is None else limit)
        scorer = SimilarityScorer(mode)
        started = time.perf_counter()
        queries_before = self.engine.queries_executed

        aggregated = self.aggregator.aggregate(target_player, as_of=as_of)
        if aggregated is None:
            logger.warning(f"Aucune activité récente pour {target_player}, aucun joueur similaire")
            return SimilarPlayersResult(target_player=target_player)
        target = aggregated.summary

        candidates = self.candidate_finder.find(
            target, aggregated.active_servers, limit, scorer.mode, as_of=as_of
        )
        overlaps = self.overlap_calculator.calculate(
            target_player, [c.player_name for c in candidates], as_of=as_of
        )

        scored: list[tuple[SimilarityCandidate, SimilarityScore]] = [
            (candidate, scorer.score(target, candidate, overlaps.get(candidate.player_name)))
            for candidate in candidates
        ]
        scored.sort(key=lambda item: (-item[1].score, item[0].player_name))
        kept = scored[:limit]

        names = resolve_server_names(
            self.metadata_store,
            collect_server_ids([target, *(candidate for candidate, _ in kept)]),
        )
        results = tuple(
            SimilarityResult.build(
                candidate,
                score,
                overlaps[candidate.player_name],
                names,
            )
            for candidate, score in kept
        )

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"{len(results)} joueur(s) similaire(s) à {target_player} "
            f"(mode={scorer.mode.value}, {len(candidates)} candidat(s), "
            f"{self.engine.queries_executed - queries_before} requête(s), {elapsed_ms:.0f} ms)"
        )
        return SimilarPlayersResult(
            target_player=target_player,
            target_stats=target.with_server_names(names),
            similar_players=results,
        )

    def compare_players_activity_hours(
        self,
        player1: str,
        player2: str,
        *,
        as_of: datetime | None = None,
    ) -> PlayerActivityHoursComparison:
        """Compare les heures d'activité de deux joueurs.

        Les histogrammes portent sur les serveurs actifs communs s'il y en a,
        sinon sur les serveurs actifs de chaque joueur.

        Args:
            player1: Premier joueur.
            player2: Second joueur.
            as_of: Instant de référence des fenêtres (défaut: maintenant).

        Returns:
            PlayerActivityHoursComparison (24 heures par joueur, minutes décroissantes).
        """
        player1 = _require_player_name(player1, "player1")
        player2 = _require_player_name(player2, "player2")

        servers1 = self.aggregator.active_servers(player1, as_of=as_of)
        servers2 = self.aggregator.active_servers(player2, as_of=as_of)
        common = sorted(set(servers1) & set(servers2))

        scope1 = common or servers1
        scope2 = common or servers2
        hours1 = self.aggregator.hourly_activity(player1, scope1, as_of=as_of)
        hours2 = self.aggregator.hourly_activity(player2, scope2, as_of=as_of)

        names = resolve_server_names(self.metadata_store, set(common))
        return PlayerActivityHoursComparison(
            player1=player1,
            player2=player2,
            player1_activity_hours=tuple(
                HourlyActivity(hour=int(row["hour_of_day"]), minutes_active=float(row["minutes_active"]))
                for row in hours1.iter_rows(named=True)
            ),
            player2_activity_hours=tuple(
                HourlyActivity(hour=int(row["hour_of_day"]), minutes_active=float(row["minutes_active"]))
                for row in hours2.iter_rows(named=True)
            ),
            common_servers=tuple(names.get(guid, guid) for guid in common),
        )
