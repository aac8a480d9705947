"""Agrégation de l'activité d'un joueur sur une fenêtre glissante.

Fonctions principales:
- ActivityAggregator.aggregate : résumé complet (totaux, favori, heures, pings, cartes)
- ActivityAggregator.active_servers : serveurs avec plus de 5 minutes de jeu
- ActivityAggregator.hourly_activity : minutes jouées par heure (24 lignes)
- typical_online_hours : heures "typiques" depuis un histogramme horaire
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta

import polars as pl

from playertracker.config import SIMILARITY_CONFIG, SimilarityConfig
from playertracker.data.infrastructure.database.duckdb_engine import DuckDBEngine
from playertracker.data.query import similarity_queries as queries
from playertracker.models import PlayerActivitySummary
from playertracker.utils.time_windows import months_before, to_naive_utc

logger = logging.getLogger(__name__)

HOURS_IN_DAY = 24


@dataclass(frozen=True)
class AggregatedActivity:
    """Résumé d'un joueur et serveurs actifs utilisés pour le calculer."""

    summary: PlayerActivitySummary
    active_servers: tuple[str, ...] = field(default_factory=tuple)


def fill_hourly_activity(hourly: pl.DataFrame) -> pl.DataFrame:
    """
    Complète un histogramme horaire à 24 lignes (0 minute pour les heures absentes).

    Args:
        hourly: DataFrame avec colonnes hour_of_day, minutes_active

    Returns:
        DataFrame de 24 lignes trié par minutes décroissantes puis heure
    """
    all_hours = pl.DataFrame({"hour_of_day": list(range(HOURS_IN_DAY))}, schema={"hour_of_day": pl.Int64})
    played = hourly.select(
        pl.col("hour_of_day").cast(pl.Int64),
        pl.col("minutes_active").cast(pl.Float64),
    )
    return (
        all_hours.join(played, on="hour_of_day", how="left")
        .with_columns(pl.col("minutes_active").fill_null(0.0))
        .sort(["minutes_active", "hour_of_day"], descending=[True, False])
    )


def typical_online_hours(
    hourly: pl.DataFrame,
    *,
    percentile: float = SIMILARITY_CONFIG.typical_hour_percentile,
    ratio: float = SIMILARITY_CONFIG.typical_hour_ratio,
) -> tuple[int, ...]:
    """
    Heures (0-23) dont l'activité atteint `ratio` × percentile des heures jouées.

    Le percentile est continu (interpolation linéaire), calculé uniquement sur
    les heures avec du temps de jeu.

    Returns:
        Heures triées (vide si aucune heure jouée)
    """
    played = hourly.filter(pl.col("minutes_active") > 0)
    if played.is_empty():
        return ()
    reference = played["minutes_active"].quantile(percentile, interpolation="linear")
    threshold = (reference or 0.0) * ratio
    hours = played.filter(pl.col("minutes_active") >= threshold)["hour_of_day"].to_list()
    return tuple(sorted(int(h) for h in hours))


class ActivityAggregator:
    """
    Calcule le résumé d'activité d'un joueur.
    (Compute a player's activity summary)

    Environ cinq requêtes par appel, toutes paramétrées.
    """

    def __init__(self, engine: DuckDBEngine, config: SimilarityConfig | None = None) -> None:
        self.engine = engine
        self.config = config or SIMILARITY_CONFIG

    def _window_start(self, as_of: datetime | None) -> datetime:
        return months_before(to_naive_utc(as_of), self.config.lookback_months)

    def server_minutes(self, player: str, *, as_of: datetime | None = None) -> list[tuple[str, float]]:
        """Temps de jeu par serveur (décroissant, égalités départagées par guid)."""
        rows = self.engine.run(queries.server_minutes_query(player, self._window_start(as_of)))
        return [(row["server_guid"], float(row["total_minutes"] or 0.0)) for row in rows]

    def active_servers(self, player: str, *, as_of: datetime | None = None) -> list[str]:
        """
        Serveurs où le joueur cumule plus de `active_server_min_minutes` minutes.
        (Servers where the player is active)
        """
        return self._active_from_minutes(self.server_minutes(player, as_of=as_of))

    def _active_from_minutes(self, server_minutes: list[tuple[str, float]]) -> list[str]:
        threshold = self.config.active_server_min_minutes
        return sorted(guid for guid, minutes in server_minutes if minutes > threshold)

    def hourly_activity(
        self,
        player: str,
        servers: list[str],
        *,
        as_of: datetime | None = None,
    ) -> pl.DataFrame:
        """
        Minutes jouées par heure de la journée (24 lignes, 0 pour les heures sans jeu).

        Args:
            player: Nom du joueur
            servers: Serveurs à considérer (liste vide = tous)
            as_of: Instant de référence (défaut: maintenant)

        Returns:
            DataFrame Polars (hour_of_day, minutes_active)
        """
        hourly = self.engine.run_df(
            queries.hourly_activity_query(player, self._window_start(as_of), servers)
        )
        return fill_hourly_activity(hourly)

    def aggregate(self, player: str, *, as_of: datetime | None = None) -> AggregatedActivity | None:
        """
        Calcule le résumé d'activité complet d'un joueur.
        (Compute the full activity summary)

        Args:
            player: Nom du joueur
            as_of: Instant de référence (défaut: maintenant)

        Returns:
            AggregatedActivity, ou None si aucun round dans la fenêtre
        """
        reference = to_naive_utc(as_of)
        since = months_before(reference, self.config.lookback_months)

        totals = self.engine.run(queries.player_totals_query(player, since))
        if not totals or not totals[0]["round_count"]:
            logger.debug(f"Aucun round pour {player} depuis {since:%Y-%m-%d}")
            return None
        row = totals[0]

        server_minutes = self.server_minutes(player, as_of=reference)
        favorite_server, favorite_minutes = server_minutes[0] if server_minutes else ("", 0.0)
        active = self._active_from_minutes(server_minutes)

        hourly = self.engine.run_df(queries.hourly_activity_query(player, since, active))
        hours = typical_online_hours(
            hourly,
            percentile=self.config.typical_hour_percentile,
            ratio=self.config.typical_hour_ratio,
        )

        ping_since = reference - timedelta(days=self.config.ping_lookback_days)
        pings = {
            r["server_guid"]: float(r["avg_ping"])
            for r in self.engine.run(queries.server_pings_query(player, ping_since, active, self.config))
        }

        dominance = {
            r["map_name"]: float(r["dominance_score"])
            if r["dominance_score"] is not None
            else 1.0
            for r in self.engine.run(queries.map_dominance_query(player, since, active, self.config))
        }

        kills = int(row["total_kills"] or 0)
        deaths = int(row["total_deaths"] or 0)
        summary = PlayerActivitySummary(
            player_name=player,
            total_kills=kills,
            total_deaths=deaths,
            total_play_time_minutes=float(row["total_play_time_minutes"] or 0.0),
            kill_death_ratio=PlayerActivitySummary.compute_kdr(kills, deaths),
            favorite_server=favorite_server,
            favorite_server_play_time_minutes=favorite_minutes,
            game_ids=tuple(row["game_ids"] or ()),
            typical_online_hours=hours,
            server_pings=pings,
            map_dominance_scores=dominance,
        )
        return AggregatedActivity(summary=summary, active_servers=tuple(active))
