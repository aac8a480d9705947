"""Configuration centralisée du moteur de similarité.

Ce module regroupe tous les seuils utilisés par l'agrégation d'activité,
la recherche de candidats et le calcul de chevauchement temporel.

Usage:
    from playertracker.config import SIMILARITY_CONFIG

    # Valeurs par défaut (surchargées par l'environnement si défini)
    months = SIMILARITY_CONFIG.lookback_months

    # Ou avec des valeurs personnalisées
    config = SimilarityConfig(lookback_months=3, candidate_overfetch_factor=3)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields

# =============================================================================
# Fenêtres temporelles
# =============================================================================

# Fenêtre d'analyse de la similarité (mois)
DEFAULT_LOOKBACK_MONTHS = 6

# Fenêtre du chevauchement de sessions (plus courte : simultanéité récente)
DEFAULT_OVERLAP_LOOKBACK_MONTHS = 3

# Fenêtre des mesures de ping (jours)
DEFAULT_PING_LOOKBACK_DAYS = 30


# =============================================================================
# Seuils
# =============================================================================

# Temps de jeu minimum (minutes) pour qu'un serveur soit "actif"
DEFAULT_ACTIVE_SERVER_MIN_MINUTES = 5.0

# Temps de jeu minimum (minutes) d'un candidat dans la fenêtre
DEFAULT_CANDIDATE_MIN_PLAY_MINUTES = 30.0

# Temps de jeu minimum (minutes) sur une carte pour le score de domination
DEFAULT_MAP_MIN_PLAY_MINUTES = 60.0

# Durée minimum (minutes, stricte) d'un round pris en compte pour la domination
DEFAULT_MAP_ROUND_MIN_MINUTES = 5.0

# Nombre minimum de mesures de ping par serveur
DEFAULT_MIN_PING_SAMPLES = 10

# Pings >= à cette valeur sont des glitchs de télémétrie
DEFAULT_MAX_VALID_PING = 1000.0

# Percentile horaire de référence et ratio pour les heures "typiques"
DEFAULT_TYPICAL_HOUR_PERCENTILE = 0.95
DEFAULT_TYPICAL_HOUR_RATIO = 0.5

# Sur-échantillonnage des candidats (limit × facteur)
DEFAULT_CANDIDATE_OVERFETCH_FACTOR = 5

# Bornes du nombre de résultats
DEFAULT_RESULT_LIMIT = 10
MIN_RESULT_LIMIT = 1
MAX_RESULT_LIMIT = 50

ENV_PREFIX = "PLAYERTRACKER_"


def _read_env_override(name: str, current: int | float) -> int | float:
    """Lit un override numérique depuis l'environnement (ignore les valeurs invalides)."""
    raw = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
    if raw is None or raw.strip() == "":
        return current
    try:
        return type(current)(raw)
    except ValueError:
        return current


@dataclass
class SimilarityConfig:
    """Paramètres du moteur de similarité.

    Attributes:
        lookback_months: Fenêtre d'agrégation (mois).
        overlap_lookback_months: Fenêtre du chevauchement de sessions (mois).
        ping_lookback_days: Fenêtre des mesures de ping (jours).
        active_server_min_minutes: Seuil d'un serveur actif (minutes, strict).
        candidate_min_play_minutes: Plancher de temps de jeu d'un candidat.
        map_min_play_minutes: Plancher par carte pour la domination.
        map_round_min_minutes: Durée minimum d'un round pour la domination.
        min_ping_samples: Nombre minimum de mesures de ping par serveur.
        max_valid_ping: Borne haute (exclue) d'un ping valide.
        typical_hour_percentile: Percentile des minutes horaires de référence.
        typical_hour_ratio: Fraction du percentile pour une heure typique.
        candidate_overfetch_factor: Candidats récupérés = limit × facteur.
        default_limit: Nombre de résultats par défaut.
        min_limit: Nombre minimum de résultats demandé.
        max_limit: Nombre maximum de résultats demandé.
    """

    lookback_months: int = DEFAULT_LOOKBACK_MONTHS
    overlap_lookback_months: int = DEFAULT_OVERLAP_LOOKBACK_MONTHS
    ping_lookback_days: int = DEFAULT_PING_LOOKBACK_DAYS
    active_server_min_minutes: float = DEFAULT_ACTIVE_SERVER_MIN_MINUTES
    candidate_min_play_minutes: float = DEFAULT_CANDIDATE_MIN_PLAY_MINUTES
    map_min_play_minutes: float = DEFAULT_MAP_MIN_PLAY_MINUTES
    map_round_min_minutes: float = DEFAULT_MAP_ROUND_MIN_MINUTES
    min_ping_samples: int = DEFAULT_MIN_PING_SAMPLES
    max_valid_ping: float = DEFAULT_MAX_VALID_PING
    typical_hour_percentile: float = DEFAULT_TYPICAL_HOUR_PERCENTILE
    typical_hour_ratio: float = DEFAULT_TYPICAL_HOUR_RATIO
    candidate_overfetch_factor: int = DEFAULT_CANDIDATE_OVERFETCH_FACTOR
    default_limit: int = DEFAULT_RESULT_LIMIT
    min_limit: int = MIN_RESULT_LIMIT
    max_limit: int = MAX_RESULT_LIMIT

    def __post_init__(self) -> None:
        """Applique les overrides depuis l'environnement (PLAYERTRACKER_*)."""
        for f in fields(self):
            setattr(self, f.name, _read_env_override(f.name, getattr(self, f.name)))

    def validate_limit(self, limit: int) -> int:
        """Vérifie que le nombre de résultats demandé est dans les bornes.

        Raises:
            ValueError: Si limit est hors de [min_limit, max_limit].
        """
        if not isinstance(limit, int) or isinstance(limit, bool):
            raise ValueError(f"limit doit être un entier, reçu {limit!r}")
        if limit < self.min_limit or limit > self.max_limit:
            raise ValueError(
                f"limit doit être compris entre {self.min_limit} et {self.max_limit} (reçu {limit})"
            )
        return limit


# Configuration standard
SIMILARITY_CONFIG = SimilarityConfig()
