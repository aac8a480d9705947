"""
Requêtes SQL de similarité de joueurs.
(Player similarity SQL queries)

HOW IT WORKS:
Chaque fonction retourne une SqlQuery paramétrée, prête pour DuckDBEngine.run().
Les bornes temporelles sont calculées côté Python et liées ($since, ...).
Seuls LIMIT et le percentile (constantes validées) sont interpolés dans le texte.

Tables interrogées:
- player_rounds : un round joué par un joueur sur un serveur
- player_metrics : mesures de ping échantillonnées
"""
from __future__ import annotations

from datetime import datetime

from playertracker.config import SimilarityConfig
from playertracker.data.query.builder import QueryBuilder, SqlQuery


def _percentile_literal(value: float) -> str:
    percentile = float(value)
    if not 0.0 <= percentile <= 1.0:
        raise ValueError(f"Percentile hors de [0, 1]: {value}")
    return repr(percentile)


# =============================================================================
# Agrégats d'un joueur
# =============================================================================


def player_totals_query(player: str, since: datetime) -> SqlQuery:
    """Totaux kills/morts/temps de jeu, nombre de rounds et jeux distincts."""
    return (
        QueryBuilder()
        .add(
            """
            SELECT
                COUNT(*) AS round_count,
                COALESCE(SUM(final_kills), 0) AS total_kills,
                COALESCE(SUM(final_deaths), 0) AS total_deaths,
                COALESCE(SUM(play_time_minutes), 0.0) AS total_play_time_minutes,
                list_sort(list_distinct(list(game_id))) AS game_ids
            FROM player_rounds
            WHERE player_name = $player
              AND round_start_time >= $since
            """,
            player=player,
            since=since,
        )
        .build()
    )


def server_minutes_query(player: str, since: datetime) -> SqlQuery:
    """Temps de jeu par serveur, du plus joué au moins joué (égalités par guid)."""
    return (
        QueryBuilder()
        .add(
            """
            SELECT server_guid, SUM(play_time_minutes) AS total_minutes
            FROM player_rounds
            WHERE player_name = $player
              AND round_start_time >= $since
            GROUP BY server_guid
            ORDER BY total_minutes DESC, server_guid
            """,
            player=player,
            since=since,
        )
        .build()
    )


def hourly_activity_query(player: str, since: datetime, servers: list[str]) -> SqlQuery:
    """Histogramme minutes jouées par heure de début de round (heures jouées uniquement)."""
    return (
        QueryBuilder()
        .add(
            """
            SELECT
                hour(round_start_time) AS hour_of_day,
                SUM(play_time_minutes) AS minutes_active
            FROM player_rounds
            WHERE player_name = $player
              AND round_start_time >= $since
            """,
            player=player,
            since=since,
        )
        .add_server_filter(servers)
        .add(
            """
            GROUP BY hour_of_day
            HAVING SUM(play_time_minutes) > 0
            ORDER BY hour_of_day
            """
        )
        .build()
    )


def server_pings_query(
    player: str,
    ping_since: datetime,
    servers: list[str],
    config: SimilarityConfig,
) -> SqlQuery:
    """Ping moyen par serveur actif (mesures valides, échantillon minimum)."""
    return (
        QueryBuilder()
        .add(
            """
            SELECT server_guid, AVG(ping) AS avg_ping
            FROM player_metrics
            WHERE player_name = $player
              AND timestamp >= $ping_since
              AND ping > 0
              AND ping < $max_ping
            """,
            player=player,
            ping_since=ping_since,
            max_ping=float(config.max_valid_ping),
        )
        .add_server_filter(servers)
        .add(
            """
            GROUP BY server_guid
            HAVING COUNT(*) >= $min_ping_samples
            ORDER BY server_guid
            """,
            min_ping_samples=int(config.min_ping_samples),
        )
        .build()
    )


def map_dominance_query(
    player: str,
    since: datetime,
    servers: list[str],
    config: SimilarityConfig,
) -> SqlQuery:
    """
    Score de domination par carte.

    Rapport entre les taux par minute (kills, score) du joueur et ceux de la
    population humaine sur les mêmes serveurs, moyenné sur les deux taux.
    Vaut 1.0 quand les taux de la population sont nuls.
    """
    builder = QueryBuilder().add(
        """
        WITH player_maps AS (
            SELECT
                map_name,
                AVG(final_kills / NULLIF(play_time_minutes, 0)) AS kill_rate,
                AVG(final_score / NULLIF(play_time_minutes, 0)) AS score_rate
            FROM player_rounds
            WHERE player_name = $player
              AND round_start_time >= $since
              AND play_time_minutes > $min_round_minutes
              AND map_name IS NOT NULL
        """,
        player=player,
        since=since,
        min_round_minutes=float(config.map_round_min_minutes),
    )
    builder.add_server_filter(servers)
    builder.add(
        """
            GROUP BY map_name
            HAVING SUM(play_time_minutes) >= $min_map_minutes
        ),
        map_averages AS (
            SELECT
                map_name,
                AVG(final_kills / NULLIF(play_time_minutes, 0)) AS avg_kill_rate,
                AVG(final_score / NULLIF(play_time_minutes, 0)) AS avg_score_rate
            FROM player_rounds
            WHERE NOT COALESCE(is_bot, false)
              AND round_start_time >= $since
              AND play_time_minutes > $min_round_minutes
              AND map_name IN (SELECT map_name FROM player_maps)
        """,
        min_map_minutes=float(config.map_min_play_minutes),
    )
    builder.add_server_filter(servers)
    builder.add(
        """
            GROUP BY map_name
        )
        SELECT
            p.map_name,
            CASE
                WHEN a.avg_kill_rate > 0 AND a.avg_score_rate > 0 THEN
                    (p.kill_rate / a.avg_kill_rate + p.score_rate / a.avg_score_rate) / 2
                ELSE 1.0
            END AS dominance_score
        FROM player_maps p
        JOIN map_averages a ON p.map_name = a.map_name
        ORDER BY p.map_name
        """
    )
    return builder.build()


# =============================================================================
# Recherche groupée des candidats
# =============================================================================


def candidate_search_query(
    *,
    target: str,
    target_favorite_server: str,
    target_kdr: float,
    target_play_minutes: float,
    servers: list[str],
    since: datetime,
    ping_since: datetime,
    fetch_limit: int,
    include_alias_signals: bool,
    config: SimilarityConfig,
) -> SqlQuery:
    """
    Requête unique retournant les candidats et leurs agrégats.

    Chaque CTE est agrégée à une ligne par joueur (ou joueur/heure, joueur/serveur)
    avant les jointures finales sur player_name : aucune démultiplication.

    Args:
        target: Joueur cible (exclu des résultats)
        target_favorite_server: Serveur favori de la cible (tri prioritaire)
        target_kdr: KDR de la cible (tri secondaire)
        target_play_minutes: Temps de jeu de la cible (tri secondaire)
        servers: Serveurs actifs de la cible (non vide)
        since: Début de la fenêtre d'agrégation
        ping_since: Début de la fenêtre des pings
        fetch_limit: Nombre maximum de candidats retournés
        include_alias_signals: Ajoute pings et domination par carte

    Returns:
        SqlQuery paramétrée
    """
    if not servers:
        raise ValueError("La recherche de candidats exige au moins un serveur actif")
    fetch_limit = int(fetch_limit)
    if fetch_limit < 1:
        raise ValueError(f"fetch_limit doit être >= 1 (reçu {fetch_limit})")
    percentile = _percentile_literal(config.typical_hour_percentile)

    builder = QueryBuilder().bind(
        target=target,
        since=since,
        servers=list(servers),
    )
    builder.add(
        """
        WITH scoped_rounds AS (
            SELECT player_name, server_guid, map_name, game_id, round_start_time,
                   final_kills, final_deaths, final_score, play_time_minutes
            FROM player_rounds
            WHERE player_name <> $target
              AND round_start_time >= $since
              AND list_contains($servers, server_guid)
        ),
        server_playtime AS (
            SELECT player_name, server_guid, SUM(play_time_minutes) AS server_minutes
            FROM scoped_rounds
            GROUP BY player_name, server_guid
        ),
        common_servers AS (
            SELECT player_name, list_sort(list(server_guid)) AS common_servers
            FROM server_playtime
            WHERE server_minutes > $min_active_minutes
            GROUP BY player_name
        ),
        player_stats AS (
            SELECT
                player_name,
                SUM(final_kills) AS total_kills,
                SUM(final_deaths) AS total_deaths,
                SUM(play_time_minutes) AS total_play_time_minutes,
                CASE
                    WHEN SUM(final_deaths) > 0
                        THEN CAST(SUM(final_kills) AS DOUBLE) / SUM(final_deaths)
                    ELSE CAST(SUM(final_kills) AS DOUBLE)
                END AS kdr,
                list_sort(list_distinct(list(game_id))) AS game_ids
            FROM scoped_rounds
            WHERE player_name IN (SELECT player_name FROM common_servers)
            GROUP BY player_name
            HAVING SUM(play_time_minutes) >= $min_candidate_minutes
        ),
        favorite_servers AS (
            SELECT
                player_name, server_guid, server_minutes,
                ROW_NUMBER() OVER (
                    PARTITION BY player_name ORDER BY server_minutes DESC, server_guid
                ) AS rn
            FROM server_playtime
            WHERE player_name IN (SELECT player_name FROM player_stats)
        ),
        hourly AS (
            SELECT
                player_name,
                hour(round_start_time) AS hour_of_day,
                SUM(play_time_minutes) AS minutes
            FROM scoped_rounds
            WHERE player_name IN (SELECT player_name FROM player_stats)
            GROUP BY player_name, hour_of_day
            HAVING SUM(play_time_minutes) > 0
        ),
        """,
        min_active_minutes=float(config.active_server_min_minutes),
        min_candidate_minutes=float(config.candidate_min_play_minutes),
    )
    builder.add(
        f"""
        hour_thresholds AS (
            SELECT player_name, quantile_cont(minutes, {percentile}) * $hour_ratio AS threshold
            FROM hourly
            GROUP BY player_name
        ),
        online_hours AS (
            SELECT h.player_name, list_sort(list(h.hour_of_day)) AS typical_hours
            FROM hourly h
            JOIN hour_thresholds t ON h.player_name = t.player_name
            WHERE h.minutes >= t.threshold
            GROUP BY h.player_name
        )
        """,
        hour_ratio=float(config.typical_hour_ratio),
    )
    builder.add_if(
        include_alias_signals,
        """
        , server_pings AS (
            SELECT
                player_name,
                list(server_guid ORDER BY server_guid) AS ping_servers,
                list(avg_ping ORDER BY server_guid) AS ping_values
            FROM (
                SELECT player_name, server_guid, AVG(ping) AS avg_ping
                FROM player_metrics
                WHERE player_name IN (SELECT player_name FROM player_stats)
                  AND timestamp >= $ping_since
                  AND ping > 0
                  AND ping < $max_ping
                  AND list_contains($servers, server_guid)
                GROUP BY player_name, server_guid
                HAVING COUNT(*) >= $min_ping_samples
            )
            GROUP BY player_name
        ),
        map_averages AS (
            SELECT
                map_name,
                AVG(final_kills / NULLIF(play_time_minutes, 0)) AS avg_kill_rate,
                AVG(final_score / NULLIF(play_time_minutes, 0)) AS avg_score_rate
            FROM player_rounds
            WHERE NOT COALESCE(is_bot, false)
              AND round_start_time >= $since
              AND play_time_minutes > $min_round_minutes
              AND list_contains($servers, server_guid)
            GROUP BY map_name
        ),
        map_dominance AS (
            SELECT
                player_name,
                list(map_name ORDER BY map_name) AS dominance_maps,
                list(dominance_score ORDER BY map_name) AS dominance_values
            FROM (
                SELECT
                    p.player_name,
                    p.map_name,
                    CASE
                        WHEN a.avg_kill_rate > 0 AND a.avg_score_rate > 0 THEN
                            (p.kill_rate / a.avg_kill_rate + p.score_rate / a.avg_score_rate) / 2
                        ELSE 1.0
                    END AS dominance_score
                FROM (
                    SELECT
                        player_name,
                        map_name,
                        AVG(final_kills / NULLIF(play_time_minutes, 0)) AS kill_rate,
                        AVG(final_score / NULLIF(play_time_minutes, 0)) AS score_rate
                    FROM scoped_rounds
                    WHERE player_name IN (SELECT player_name FROM player_stats)
                      AND play_time_minutes > $min_round_minutes
                      AND map_name IS NOT NULL
                    GROUP BY player_name, map_name
                    HAVING SUM(play_time_minutes) >= $min_map_minutes
                ) p
                JOIN map_averages a ON p.map_name = a.map_name
            )
            GROUP BY player_name
        )
        """,
        ping_since=ping_since,
        max_ping=float(config.max_valid_ping),
        min_ping_samples=int(config.min_ping_samples),
        min_round_minutes=float(config.map_round_min_minutes),
        min_map_minutes=float(config.map_min_play_minutes),
    )
    builder.add(
        """
        SELECT
            p.player_name,
            p.total_kills,
            p.total_deaths,
            p.total_play_time_minutes,
            p.kdr,
            f.server_guid AS favorite_server,
            f.server_minutes AS favorite_server_minutes,
            p.game_ids,
            c.common_servers,
            o.typical_hours
        """
    )
    builder.add_if(
        include_alias_signals,
        """
            , sp.ping_servers,
            sp.ping_values,
            md.dominance_maps,
            md.dominance_values
        """,
    )
    builder.add(
        """
        FROM player_stats p
        JOIN common_servers c ON p.player_name = c.player_name
        LEFT JOIN favorite_servers f ON p.player_name = f.player_name AND f.rn = 1
        LEFT JOIN online_hours o ON p.player_name = o.player_name
        """
    )
    builder.add_if(
        include_alias_signals,
        """
        LEFT JOIN server_pings sp ON p.player_name = sp.player_name
        LEFT JOIN map_dominance md ON p.player_name = md.player_name
        """,
    )
    builder.add(
        f"""
        ORDER BY
            CASE WHEN f.server_guid = $target_favorite THEN 0 ELSE 1 END,
            abs(p.kdr - $target_kdr) + abs(p.total_play_time_minutes - $target_play_minutes) / 1000,
            p.player_name
        LIMIT {fetch_limit}
        """,
        target_favorite=target_favorite_server,
        target_kdr=float(target_kdr),
        target_play_minutes=float(target_play_minutes),
    )
    return builder.build()


# =============================================================================
# Chevauchement temporel
# =============================================================================


def temporal_overlap_query(target: str, candidates: list[str], overlap_since: datetime) -> SqlQuery:
    """
    Minutes de présence simultanée (même serveur) entre la cible et chaque candidat.

    Retourne aussi le temps de jeu récent de chaque côté. Les candidats sans
    round récent n'apparaissent pas : l'appelant complète avec des zéros.
    Suppose que les rounds d'un même joueur ne se chevauchent pas entre eux.
    """
    return (
        QueryBuilder()
        .add(
            """
            WITH target_rounds AS (
                SELECT server_guid, round_start_time, round_end_time, play_time_minutes
                FROM player_rounds
                WHERE player_name = $target
                  AND round_start_time >= $overlap_since
            ),
            candidate_rounds AS (
                SELECT player_name, server_guid, round_start_time, round_end_time, play_time_minutes
                FROM player_rounds
                WHERE list_contains($candidates, player_name)
                  AND round_start_time >= $overlap_since
            ),
            recent_play AS (
                SELECT player_name, SUM(play_time_minutes) AS candidate_minutes
                FROM candidate_rounds
                GROUP BY player_name
            ),
            session_overlaps AS (
                SELECT
                    c.player_name,
                    SUM(
                        date_diff(
                            'second',
                            greatest(c.round_start_time, t.round_start_time),
                            least(c.round_end_time, t.round_end_time)
                        ) / 60.0
                    ) AS overlap_minutes
                FROM candidate_rounds c
                JOIN target_rounds t
                  ON c.server_guid = t.server_guid
                 AND c.round_start_time < t.round_end_time
                 AND t.round_start_time < c.round_end_time
                GROUP BY c.player_name
            )
            SELECT
                r.player_name,
                COALESCE(o.overlap_minutes, 0.0) AS overlap_minutes,
                r.candidate_minutes AS candidate_recent_minutes,
                (SELECT COALESCE(SUM(play_time_minutes), 0.0) FROM target_rounds) AS target_recent_minutes
            FROM recent_play r
            LEFT JOIN session_overlaps o ON r.player_name = o.player_name
            ORDER BY r.player_name
            """,
            target=target,
            candidates=list(candidates),
            overlap_since=overlap_since,
        )
        .build()
    )

