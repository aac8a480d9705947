"""Réglages de session DuckDB du store analytique.

Une seule configuration est utilisée par le moteur et le CLI : ANALYTICS_CONFIG,
construite à l'import depuis l'environnement.

Variables reconnues:
    PLAYERTRACKER_DUCKDB_MEMORY_LIMIT  ex: "512MB", "2GB", "1.5GiB"
    PLAYERTRACKER_DUCKDB_THREADS       entier >= 1 (absent = auto-détection)
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from playertracker.config import ENV_PREFIX

if TYPE_CHECKING:
    import duckdb

logger = logging.getLogger(__name__)

# Limite mémoire par défaut (requête groupée des candidats, CTE multiples)
DEFAULT_MEMORY_LIMIT = "1GB"

ENV_MEMORY_LIMIT = f"{ENV_PREFIX}DUCKDB_MEMORY_LIMIT"
ENV_THREADS = f"{ENV_PREFIX}DUCKDB_THREADS"

# Interpolé dans SET : seul ce format est accepté
_MEMORY_LIMIT_PATTERN = re.compile(r"^\d+(\.\d+)?\s*(B|KB|MB|GB|TB|KiB|MiB|GiB|TiB)$", re.IGNORECASE)


@dataclass(frozen=True)
class DuckDBConfig:
    """Réglages appliqués à chaque connexion ouverte par DuckDBEngine.

    Attributes:
        memory_limit: Limite mémoire DuckDB (ex: "1GB").
        threads: Nombre de threads (None = auto-détection par DuckDB).

    Raises:
        ValueError: Limite mémoire mal formée ou threads < 1.
    """

    memory_limit: str = DEFAULT_MEMORY_LIMIT
    threads: int | None = None

    def __post_init__(self) -> None:
        if not _MEMORY_LIMIT_PATTERN.match(self.memory_limit.strip()):
            raise ValueError(f"memory_limit invalide: {self.memory_limit!r}")
        if self.threads is not None and (isinstance(self.threads, bool) or self.threads < 1):
            raise ValueError(f"threads doit être >= 1 (reçu {self.threads!r})")

    @classmethod
    def from_env(cls) -> DuckDBConfig:
        """Construit la configuration depuis l'environnement.

        Une valeur invalide est ignorée (avec un warning) au profit du défaut.
        """
        memory_limit = os.environ.get(ENV_MEMORY_LIMIT, "").strip() or DEFAULT_MEMORY_LIMIT
        if not _MEMORY_LIMIT_PATTERN.match(memory_limit):
            logger.warning(f"{ENV_MEMORY_LIMIT}={memory_limit!r} ignoré, défaut {DEFAULT_MEMORY_LIMIT}")
            memory_limit = DEFAULT_MEMORY_LIMIT

        threads: int | None = None
        raw_threads = os.environ.get(ENV_THREADS, "").strip()
        if raw_threads:
            try:
                threads = int(raw_threads)
            except ValueError:
                threads = None
            if threads is None or threads < 1:
                logger.warning(f"{ENV_THREADS}={raw_threads!r} ignoré, auto-détection")
                threads = None

        return cls(memory_limit=memory_limit, threads=threads)

    def settings(self) -> dict[str, str | int | bool]:
        """Réglages DuckDB à appliquer, dans l'ordre."""
        settings: dict[str, str | int | bool] = {"memory_limit": self.memory_limit.strip()}
        if self.threads is not None:
            settings["threads"] = int(self.threads)
        settings["enable_progress_bar"] = False
        return settings

    def apply(self, conn: duckdb.DuckDBPyConnection) -> None:
        """Applique les réglages à une connexion DuckDB ouverte."""
        for name, value in self.settings().items():
            if isinstance(value, bool):
                literal = "true" if value else "false"
            elif isinstance(value, int):
                literal = str(value)
            else:
                literal = f"'{value}'"
            conn.execute(f"SET {name} = {literal}")


ANALYTICS_CONFIG = DuckDBConfig.from_env()
