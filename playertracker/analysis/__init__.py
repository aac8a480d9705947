"""Analyses de similarité : agrégation, candidats, chevauchement, scoring."""

from playertracker.analysis.activity import (
    ActivityAggregator,
    AggregatedActivity,
    fill_hourly_activity,
    typical_online_hours,
)
from playertracker.analysis.candidates import CandidateFinder
from playertracker.analysis.server_names import collect_server_ids, resolve_server_names
from playertracker.analysis.similarity_scoring import (
    WEIGHTS_BY_MODE,
    SimilarityMode,
    SimilarityScorer,
    SimilarityWeights,
    kdr_similarity,
    map_dominance_similarity,
    ping_similarity,
    play_time_similarity,
)
from playertracker.analysis.temporal_overlap import TemporalOverlapCalculator

__all__ = [
    "ActivityAggregator",
    "AggregatedActivity",
    "CandidateFinder",
    "SimilarityMode",
    "SimilarityScorer",
    "SimilarityWeights",
    "TemporalOverlapCalculator",
    "WEIGHTS_BY_MODE",
    "collect_server_ids",
    "fill_hourly_activity",
    "kdr_similarity",
    "map_dominance_similarity",
    "ping_similarity",
    "play_time_similarity",
    "resolve_server_names",
    "typical_online_hours",
]
