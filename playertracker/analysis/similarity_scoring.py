"""Score de similarité multi-facteurs entre deux joueurs.

Le score est une somme pondérée de sous-scores normalisés dans [0, 1].
Les poids dépendent du mode (recherche de profils similaires ou détection
d'alias) et sont de simples données : voir WEIGHTS_BY_MODE.

Bonus de kill rate : jusqu'à +20 % du poids KDR, donc un score total
pouvant dépasser 1.0 (les scores de domination par carte aussi).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum

from playertracker.models import (
    PlayerActivitySummary,
    SimilarityScore,
    TemporalOverlap,
)

# =============================================================================
# Modes et poids
# =============================================================================


class SimilarityMode(Enum):
    """
    Modes de similarité disponibles.
    (Available similarity modes)
    """

    DEFAULT = "default"  # Profils de jeu similaires
    ALIAS_DETECTION = "alias_detection"  # Même humain sous un autre nom

    @classmethod
    def parse(cls, value: SimilarityMode | str) -> SimilarityMode:
        """Normalise un mode donné sous forme de chaîne ("alias", "AliasDetection", ...).

        Raises:
            ValueError: Si le mode est inconnu.
        """
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("-", "_")
        if normalized in ("alias", "aliasdetection"):
            normalized = cls.ALIAS_DETECTION.value
        try:
            return cls(normalized)
        except ValueError:
            valid = ", ".join(m.value for m in cls)
            raise ValueError(f"Mode de similarité inconnu: {value!r} (valides: {valid})") from None


@dataclass(frozen=True)
class SimilarityWeights:
    """Poids des facteurs pour un mode donné."""

    play_time: float
    kdr: float
    server: float
    online_hours: float
    temporal_non_overlap: float
    ping: float
    map_dominance: float
    kill_rate_bonus_fraction: float = 0.2

    @property
    def total(self) -> float:
        """Somme des poids de base (hors bonus de kill rate)."""
        return (
            self.play_time
            + self.kdr
            + self.server
            + self.online_hours
            + self.temporal_non_overlap
            + self.ping
            + self.map_dominance
        )


WEIGHTS_BY_MODE: dict[SimilarityMode, SimilarityWeights] = {
    SimilarityMode.DEFAULT: SimilarityWeights(
        play_time=0.15,
        kdr=0.40,  # Facteur principal : niveau de jeu
        server=0.25,
        online_hours=0.20,
        temporal_non_overlap=0.0,
        ping=0.0,
        map_dominance=0.0,
    ),
    SimilarityMode.ALIAS_DETECTION: SimilarityWeights(
        play_time=0.0,
        kdr=0.30,
        server=0.25,
        online_hours=0.0,
        temporal_non_overlap=0.20,  # Jamais en ligne en même temps
        ping=0.20,  # Même localisation physique
        map_dominance=0.05,
    ),
}


# =============================================================================
# Seuils des justifications
# =============================================================================

HIGH_OVERLAP_WARNING_MINUTES = 30.0
HIGH_PING_DIFF_WARNING_MS = 30.0

REASON_THRESHOLDS = {
    "play_time": 0.6,
    "kdr": 0.5,
    "kill_rate": 0.5,
    "online_hours": 0.3,
    "non_overlap": 0.8,
    "ping": 0.7,
    "map_dominance": 0.6,
}

# Écart de ping (ms) → similarité, du plus strict au plus large
PING_DIFF_BUCKETS: tuple[tuple[float, float], ...] = (
    (1.0, 1.0),
    (2.0, 0.9),
    (3.0, 0.7),
    (5.0, 0.4),
    (10.0, 0.1),
)

MAP_WEIGHT_MIN = 0.5
MAP_WEIGHT_MAX = 2.0


# =============================================================================
# Sous-scores
# =============================================================================


def play_time_similarity(a: float, b: float) -> float:
    """1 - écart relatif des temps de jeu (1.0 si les deux sont nuls)."""
    largest = max(a, b)
    if largest <= 0:
        return 1.0
    return max(0.0, 1.0 - abs(a - b) / largest)


def kdr_similarity(a: float, b: float) -> float:
    """Décroissance exponentielle : 1.0 à écart nul, 0.5 à écart 1, 0.25 à écart 2."""
    return 0.5 ** abs(a - b)


def kill_rate_similarity(a: float, b: float) -> float:
    """Comme kdr_similarity, deux fois plus strict (0.5 à écart 0.5)."""
    return 0.5 ** (abs(a - b) * 2)


def online_hours_similarity(a: tuple[int, ...], b: tuple[int, ...]) -> float:
    """Indice de Jaccard des heures typiques."""
    union = set(a) | set(b)
    if not union:
        return 0.0
    return len(set(a) & set(b)) / len(union)


def _ping_bucket(diff: float) -> float:
    for limit, similarity in PING_DIFF_BUCKETS:
        if diff <= limit:
            return similarity
    return 0.0


def ping_similarity(target: Mapping[str, float], candidate: Mapping[str, float]) -> float:
    """
    Similarité des pings sur les serveurs communs.

    Un alias joue depuis la même machine : l'écart attendu est de 1-2 ms.
    Retourne 0.0 sans serveur commun.
    """
    common = set(target) & set(candidate)
    if not common:
        return 0.0
    total = sum(_ping_bucket(abs(target[s] - candidate[s])) for s in common)
    return total / len(common)


def max_ping_difference(target: Mapping[str, float], candidate: Mapping[str, float]) -> float | None:
    """Plus grand écart de ping sur les serveurs communs (None sans serveur commun)."""
    common = set(target) & set(candidate)
    if not common:
        return None
    return max(abs(target[s] - candidate[s]) for s in common)


def map_dominance_similarity(target: Mapping[str, float], candidate: Mapping[str, float]) -> float:
    """
    Similarité des scores de domination sur les cartes communes.

    Chaque carte compte pour max(0, 1 - écart), pondérée par la domination
    moyenne bornée à [0.5, 2.0], puis moyennée sur le nombre de cartes.
    """
    common = set(target) & set(candidate)
    if not common:
        return 0.0
    total = 0.0
    for map_name in common:
        a, b = target[map_name], candidate[map_name]
        similarity = max(0.0, 1.0 - abs(a - b))
        weight = min(MAP_WEIGHT_MAX, max(MAP_WEIGHT_MIN, (a + b) / 2.0))
        total += similarity * weight
    return total / len(common)


# =============================================================================
# Scorer
# =============================================================================


class SimilarityScorer:
    """Combine les sous-scores selon les poids du mode."""

    def __init__(self, mode: SimilarityMode | str = SimilarityMode.DEFAULT) -> None:
        self.mode = SimilarityMode.parse(mode)
        self.weights = WEIGHTS_BY_MODE[self.mode]

    @property
    def is_alias_mode(self) -> bool:
        return self.mode == SimilarityMode.ALIAS_DETECTION

    def score(
        self,
        target: PlayerActivitySummary,
        candidate: PlayerActivitySummary,
        overlap: TemporalOverlap | None = None,
    ) -> SimilarityScore:
        """
        Calcule le score de similarité et ses justifications.
        (Compute similarity score and reasons)

        Args:
            target: Résumé d'activité de la cible
            candidate: Résumé d'activité du candidat
            overlap: Chevauchement de sessions (défaut: aucune donnée)

        Returns:
            SimilarityScore (score non borné, justifications ordonnées)
        """
        overlap = overlap or TemporalOverlap()
        w = self.weights
        score = 0.0
        reasons: list[str] = []

        # Avertissements (alias) : signaux contraires, le score n'est pas filtré
        if self.is_alias_mode:
            if overlap.overlap_minutes > HIGH_OVERLAP_WARNING_MINUTES:
                reasons.append(
                    f"High temporal overlap: {overlap.overlap_minutes:.0f} minutes "
                    "(suggests not an alias)"
                )
            max_diff = max_ping_difference(target.server_pings, candidate.server_pings)
            if max_diff is not None and max_diff > HIGH_PING_DIFF_WARNING_MS:
                reasons.append(f"High ping difference: {max_diff:.0f}ms (suggests different location)")

        play_time_score = play_time_similarity(
            target.total_play_time_minutes, candidate.total_play_time_minutes
        )
        score += play_time_score * w.play_time
        if play_time_score > REASON_THRESHOLDS["play_time"]:
            reasons.append(
                f"Similar play time ({candidate.total_play_time_minutes:.0f} vs "
                f"{target.total_play_time_minutes:.0f} minutes)"
            )

        kdr_score = kdr_similarity(target.kill_death_ratio, candidate.kill_death_ratio)
        score += kdr_score * w.kdr
        if kdr_score > REASON_THRESHOLDS["kdr"]:
            reasons.append(
                f"Similar KDR ({candidate.kill_death_ratio:.2f} vs {target.kill_death_ratio:.2f})"
            )

        target_rate = target.kills_per_minute
        candidate_rate = candidate.kills_per_minute
        if target_rate > 0 and candidate_rate > 0:
            rate_score = kill_rate_similarity(target_rate, candidate_rate)
            score += rate_score * w.kdr * w.kill_rate_bonus_fraction
            if rate_score > REASON_THRESHOLDS["kill_rate"]:
                reasons.append(
                    f"Similar kill rate ({candidate_rate:.2f} vs {target_rate:.2f} kills/min)"
                )

        if target.favorite_server and target.favorite_server == candidate.favorite_server:
            score += w.server
            reasons.append("Plays on same favorite server")

        if w.online_hours > 0:
            if target.typical_online_hours and candidate.typical_online_hours:
                hours_score = online_hours_similarity(
                    target.typical_online_hours, candidate.typical_online_hours
                )
                score += hours_score * w.online_hours
                common_hours = sorted(
                    set(target.typical_online_hours) & set(candidate.typical_online_hours)
                )
                if hours_score > REASON_THRESHOLDS["online_hours"] and common_hours:
                    hours_text = ", ".join(f"{h:02d}:00" for h in common_hours)
                    reasons.append(
                        f"Similar online times ({len(common_hours)} overlapping hours: {hours_text})"
                    )
            else:
                # Données horaires absentes : crédit partiel
                score += w.online_hours / 2.0

        if w.temporal_non_overlap > 0:
            non_overlap = overlap.non_overlap_score
            score += non_overlap * w.temporal_non_overlap
            if non_overlap > REASON_THRESHOLDS["non_overlap"]:
                reasons.append(
                    f"Never seen online simultaneously (non-overlap score: {non_overlap:.2f})"
                )

        if w.ping > 0:
            ping_score = ping_similarity(target.server_pings, candidate.server_pings)
            score += ping_score * w.ping
            if ping_score > REASON_THRESHOLDS["ping"]:
                common = len(set(target.server_pings) & set(candidate.server_pings))
                reasons.append(
                    f"Very similar ping patterns ({common} common servers, score: {ping_score:.2f})"
                )

        if w.map_dominance > 0:
            map_score = map_dominance_similarity(
                target.map_dominance_scores, candidate.map_dominance_scores
            )
            score += map_score * w.map_dominance
            if map_score > REASON_THRESHOLDS["map_dominance"]:
                common = len(set(target.map_dominance_scores) & set(candidate.map_dominance_scores))
                reasons.append(
                    f"Similar map performance patterns ({common} common maps, score: {map_score:.2f})"
                )

        return SimilarityScore(score=score, reasons=tuple(reasons))
