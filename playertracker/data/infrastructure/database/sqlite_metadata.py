"""
Store de métadonnées SQLite.
(SQLite metadata store)

HOW IT WORKS:
Gère les données de référence "chaudes" dans SQLite :
- Serveurs (guid → nom lisible, adresse, jeu, pays)

Ces données sont relationnelles et de faible volume. Les faits (rounds,
métriques) restent dans DuckDB ; les guids y sont résolus en noms après coup,
en une seule requête par appel de service.
"""
from __future__ import annotations

import logging
import sqlite3
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

# Limite conservative du nombre de paramètres "?" par requête SQLite
SQLITE_MAX_VARIABLES = 900


# Schéma SQL pour les métadonnées
METADATA_SCHEMA = """
-- =============================================================================
-- SCHÉMA SQLite : Métadonnées serveurs
-- =============================================================================

CREATE TABLE IF NOT EXISTS servers (
    guid TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    ip TEXT,
    port INTEGER,
    game_id TEXT,
    country TEXT,
    updated_at TEXT DEFAULT (datetime('now'))
);

CREATE INDEX IF NOT EXISTS idx_servers_game ON servers(game_id);
"""


class ServerInfo(BaseModel):
    """
    Fiche d'un serveur de jeu.
    (Game server record)

    Stockée dans SQLite : référentiel de faible volume, mis à jour par
    l'ingestion, lu pour résoudre les guids des faits DuckDB.
    """
    model_config = ConfigDict(extra="ignore")

    guid: str = Field(..., min_length=1, description="Identifiant unique du serveur")
    name: str = Field(..., min_length=1, description="Nom d'affichage")

    # Adresse
    ip: str | None = Field(default=None, description="Adresse IP")
    port: int | None = Field(default=None, ge=0, le=65535, description="Port de jeu")

    game_id: str | None = Field(default=None, description="Jeu hébergé (ex: bf1942)")
    country: str | None = Field(default=None, description="Code pays")

    @field_validator("guid", "name", mode="before")
    @classmethod
    def strip_text(cls, v: Any) -> str:
        """Supprime les espaces superflus (une valeur vide est rejetée ensuite)."""
        if v is None:
            return ""
        return str(v).strip()


@contextmanager
def get_connection(db_path: str) -> Generator[sqlite3.Connection, None, None]:
    """Context manager pour une connexion SQLite (fermée en sortie).

    Args:
        db_path: Chemin vers le fichier SQLite (metadata.db).

    Yields:
        Connexion SQLite ouverte.
    """
    con = sqlite3.connect(db_path)
    try:
        yield con
    finally:
        con.close()


class SQLiteMetadataStore:
    """
    Gestionnaire des métadonnées serveurs.
    (SQLite server metadata manager)
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialise le store de métadonnées.
        (Initialize metadata store)

        Args:
            db_path: Chemin vers le fichier SQLite (metadata.db)
        """
        self.db_path = Path(db_path)
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        """
        Crée les tables si elles n'existent pas.
        (Create tables if they don't exist)
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with get_connection(str(self.db_path)) as con:
            con.executescript(METADATA_SCHEMA)
            con.commit()

    def upsert_server(self, server: ServerInfo) -> None:
        """
        Insère ou met à jour un serveur.
        (Insert or update a server)
        """
        with get_connection(str(self.db_path)) as con:
            cur = con.cursor()
            cur.execute(
                """
                INSERT INTO servers (guid, name, ip, port, game_id, country, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, datetime('now'))
                ON CONFLICT(guid) DO UPDATE SET
                    name = excluded.name,
                    ip = COALESCE(excluded.ip, ip),
                    port = COALESCE(excluded.port, port),
                    game_id = COALESCE(excluded.game_id, game_id),
                    country = COALESCE(excluded.country, country),
                    updated_at = datetime('now')
                """,
                (server.guid, server.name, server.ip, server.port, server.game_id, server.country),
            )
            con.commit()

    def get_server(self, guid: str) -> ServerInfo | None:
        """
        Récupère la fiche d'un serveur.
        (Get a server record)
        """
        with get_connection(str(self.db_path)) as con:
            cur = con.cursor()
            cur.execute(
                "SELECT guid, name, ip, port, game_id, country FROM servers WHERE guid = ?",
                (guid,),
            )
            row = cur.fetchone()
            if not row:
                return None
            columns = [desc[0] for desc in cur.description]
            return ServerInfo.model_validate(dict(zip(columns, row)))

    def get_server_names(self, guids: Iterable[str]) -> dict[str, str]:
        """
        Résout un ensemble de guids en noms de serveurs.
        (Resolve server guids to display names)

        Une seule requête IN par appel (découpée uniquement au-delà de la
        limite de variables SQLite). Les guids inconnus sont absents du résultat.

        Args:
            guids: Identifiants serveur (doublons et valeurs vides ignorés)

        Returns:
            Dictionnaire guid → nom
        """
        unique = sorted({g for g in guids if g})
        if not unique:
            return {}

        names: dict[str, str] = {}
        with get_connection(str(self.db_path)) as con:
            cur = con.cursor()
            for start in range(0, len(unique), SQLITE_MAX_VARIABLES):
                chunk = unique[start : start + SQLITE_MAX_VARIABLES]
                placeholders = ", ".join("?" for _ in chunk)
                cur.execute(
                    f"SELECT guid, name FROM servers WHERE guid IN ({placeholders})",
                    chunk,
                )
                names.update({guid: name for guid, name in cur.fetchall()})

        missing = len(unique) - len(names)
        if missing:
            logger.debug(f"{missing} serveur(s) sans nom dans {self.db_path}")
        return names
