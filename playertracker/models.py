"""Modèles de données (dataclasses) du moteur de similarité."""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass, field, replace


def _rename_keys(values: Mapping[str, float], names: Mapping[str, str]) -> dict[str, float]:
    """Remplace les identifiants serveur d'un mapping par leur nom lisible.

    Deux serveurs partageant le même nom deviennent "nom (guid)".
    """
    labels = {key: names.get(key, key) for key in values}
    counts = Counter(labels.values())
    return {
        label if counts[label] == 1 else f"{label} ({key})": values[key]
        for key, label in labels.items()
    }


@dataclass(frozen=True)
class PlayerActivitySummary:
    """Statistiques agrégées d'un joueur sur une fenêtre temporelle.

    Calculé à chaque requête, jamais persisté.

    Attributes:
        player_name: Nom du joueur (clé).
        total_kills: Nombre total de frags.
        total_deaths: Nombre total de morts.
        total_play_time_minutes: Temps de jeu total (minutes).
        kill_death_ratio: kills / deaths, ou kills si deaths == 0.
        favorite_server: Serveur au plus grand temps de jeu (guid, puis nom une fois résolu).
        favorite_server_play_time_minutes: Minutes jouées sur ce serveur.
        game_ids: Identifiants de jeu distincts.
        typical_online_hours: Heures (0-23) d'activité typique.
        server_pings: Serveur → ping moyen (serveurs avec assez de mesures).
        map_dominance_scores: Carte → score de domination relatif à la population.
    """

    player_name: str
    total_kills: int = 0
    total_deaths: int = 0
    total_play_time_minutes: float = 0.0
    kill_death_ratio: float = 0.0
    favorite_server: str = ""
    favorite_server_play_time_minutes: float = 0.0
    game_ids: tuple[str, ...] = ()
    typical_online_hours: tuple[int, ...] = ()
    server_pings: Mapping[str, float] = field(default_factory=dict)
    map_dominance_scores: Mapping[str, float] = field(default_factory=dict)

    @staticmethod
    def compute_kdr(kills: int, deaths: int) -> float:
        """Ratio K/D : kills / deaths, ou kills si aucune mort."""
        if deaths > 0:
            return kills / deaths
        return float(kills)

    @property
    def kills_per_minute(self) -> float:
        """Frags par minute (0 si aucun temps de jeu)."""
        if self.total_play_time_minutes <= 0:
            return 0.0
        return self.total_kills / self.total_play_time_minutes

    def server_ids(self) -> set[str]:
        """Identifiants serveur référencés par ce résumé."""
        ids = set(self.server_pings)
        if self.favorite_server:
            ids.add(self.favorite_server)
        return ids

    def with_server_names(self, names: Mapping[str, str]) -> PlayerActivitySummary:
        """Retourne une copie dont les identifiants serveur sont remplacés par leur nom."""
        return replace(
            self,
            favorite_server=names.get(self.favorite_server, self.favorite_server),
            server_pings=_rename_keys(self.server_pings, names),
        )


@dataclass(frozen=True)
class SimilarityCandidate(PlayerActivitySummary):
    """Candidat issu de la recherche groupée.

    Attributes:
        common_servers: Serveurs actifs partagés avec la cible (guids).
    """

    common_servers: tuple[str, ...] = ()

    def server_ids(self) -> set[str]:
        return super().server_ids() | set(self.common_servers)


@dataclass(frozen=True)
class TemporalOverlap:
    """Chevauchement de sessions entre la cible et un candidat (fenêtre récente).

    Attributes:
        overlap_minutes: Minutes où les deux joueurs étaient sur le même serveur.
        candidate_recent_minutes: Temps de jeu récent du candidat.
        target_recent_minutes: Temps de jeu récent de la cible.
    """

    overlap_minutes: float = 0.0
    candidate_recent_minutes: float = 0.0
    target_recent_minutes: float = 0.0

    @property
    def max_possible_minutes(self) -> float:
        """Chevauchement maximal possible : le plus petit des deux temps de jeu."""
        return min(self.candidate_recent_minutes, self.target_recent_minutes)

    @property
    def non_overlap_score(self) -> float:
        """Score 0-1 : 1 = jamais vus en ligne ensemble, 0.5 si aucune donnée récente."""
        max_possible = self.max_possible_minutes
        if max_possible <= 0:
            return 0.5
        return min(1.0, max(0.0, 1.0 - self.overlap_minutes / max_possible))


@dataclass(frozen=True)
class SimilarityScore:
    """Score de similarité et justifications ordonnées."""

    score: float
    reasons: tuple[str, ...] = ()


@dataclass(frozen=True)
class SimilarityResult:
    """Joueur similaire retourné à l'appelant (identifiants serveur résolus)."""

    player_name: str
    total_kills: int
    total_deaths: int
    total_play_time_minutes: float
    kill_death_ratio: float
    kills_per_minute: float
    favorite_server: str
    favorite_server_play_time_minutes: float
    game_ids: tuple[str, ...]
    typical_online_hours: tuple[int, ...]
    server_pings: Mapping[str, float]
    map_dominance_scores: Mapping[str, float]
    common_servers: tuple[str, ...]
    temporal_overlap_minutes: float
    temporal_non_overlap_score: float
    similarity_score: float
    similarity_reasons: tuple[str, ...]

    @classmethod
    def build(
        cls,
        candidate: SimilarityCandidate,
        scored: SimilarityScore,
        overlap: TemporalOverlap,
        server_names: Mapping[str, str],
    ) -> SimilarityResult:
        """Construit le résultat final une fois les noms de serveurs connus."""
        return cls(
            player_name=candidate.player_name,
            total_kills=candidate.total_kills,
            total_deaths=candidate.total_deaths,
            total_play_time_minutes=candidate.total_play_time_minutes,
            kill_death_ratio=candidate.kill_death_ratio,
            kills_per_minute=candidate.kills_per_minute,
            favorite_server=server_names.get(candidate.favorite_server, candidate.favorite_server),
            favorite_server_play_time_minutes=candidate.favorite_server_play_time_minutes,
            game_ids=candidate.game_ids,
            typical_online_hours=candidate.typical_online_hours,
            server_pings=_rename_keys(candidate.server_pings, server_names),
            map_dominance_scores=dict(candidate.map_dominance_scores),
            common_servers=tuple(server_names.get(s, s) for s in candidate.common_servers),
            temporal_overlap_minutes=overlap.overlap_minutes,
            temporal_non_overlap_score=overlap.non_overlap_score,
            similarity_score=scored.score,
            similarity_reasons=scored.reasons,
        )


@dataclass(frozen=True)
class SimilarPlayersResult:
    """Résultat de find_similar_players().

    target_stats vaut None si la cible n'a aucune activité dans la fenêtre.
    """

    target_player: str
    target_stats: PlayerActivitySummary | None = None
    similar_players: tuple[SimilarityResult, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.similar_players


@dataclass(frozen=True)
class HourlyActivity:
    """Minutes jouées pour une heure de la journée (0-23)."""

    hour: int
    minutes_active: float


@dataclass(frozen=True)
class PlayerActivityHoursComparison:
    """Comparaison des heures d'activité de deux joueurs.

    Chaque liste contient 24 entrées, triées par minutes décroissantes.
    """

    player1: str
    player2: str
    player1_activity_hours: tuple[HourlyActivity, ...] = ()
    player2_activity_hours: tuple[HourlyActivity, ...] = ()
    common_servers: tuple[str, ...] = ()
