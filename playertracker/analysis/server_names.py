"""Résolution des identifiants serveur en noms lisibles (un seul appel par requête)."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from playertracker.data.infrastructure.database.sqlite_metadata import SQLiteMetadataStore
from playertracker.models import PlayerActivitySummary

logger = logging.getLogger(__name__)


def collect_server_ids(summaries: Iterable[PlayerActivitySummary | None]) -> set[str]:
    """Union des identifiants serveur référencés (favori, pings, serveurs communs)."""
    ids: set[str] = set()
    for summary in summaries:
        if summary is not None:
            ids |= summary.server_ids()
    return ids


def resolve_server_names(store: SQLiteMetadataStore | None, server_ids: set[str]) -> dict[str, str]:
    """
    Résout les identifiants via le store de métadonnées.

    Sans store, retourne un mapping vide (les identifiants restent affichés tels quels).
    """
    if store is None or not server_ids:
        return {}
    names = store.get_server_names(server_ids)
    logger.debug(f"{len(names)}/{len(server_ids)} serveur(s) résolus")
    return names
