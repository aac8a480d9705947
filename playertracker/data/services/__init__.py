"""Couche services : orchestration des analyses de similarité.

- Les services encapsulent le pipeline complet (requêtes, scoring, résolution des noms).
- Les retours sont typés (dataclasses gelées) avec docstrings FR.
"""

from playertracker.data.services.similarity_service import PlayerSimilarityService

__all__ = [
    "PlayerSimilarityService",
]
