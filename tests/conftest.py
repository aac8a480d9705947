"""Fixtures communes pour les tests.

Ce fichier contient un jeu de données de référence (rounds, métriques de ping,
serveurs) chargé dans un DuckDB en mémoire, à un instant de référence fixe.

Joueurs du jeu de données (AS_OF = 2024-06-15 12:00) :
- Sarge       : cible ; 15 rounds srv-alpha + 5 rounds srv-bravo à 20h, KDR 2.0
- SargeTwin   : même profil, srv-alpha à 20h (en ligne en même temps que Sarge)
- Sarge_Alt   : même profil, srv-alpha à 8h (jamais en même temps), même ping
- Overlapper  : srv-alpha à 20h avec Sarge, KDR 1.0, ping très différent
- Casual      : 24 minutes sur srv-alpha (sous le plancher de 30 minutes)
- Stranger    : uniquement srv-charlie (aucun serveur commun)
- BOT_Alpha   : bot sur srv-alpha (exclu des moyennes de population)
- Ghost       : aucun round depuis plus de 6 mois
"""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from playertracker.data.infrastructure.database.duckdb_engine import DuckDBEngine
from playertracker.data.infrastructure.database.sqlite_metadata import ServerInfo, SQLiteMetadataStore

AS_OF = datetime(2024, 6, 15, 12, 0, 0)

ALPHA = "srv-alpha"
BRAVO = "srv-bravo"
CHARLIE = "srv-charlie"

MAP = "wake_island"


# =============================================================================
# Construction du jeu de données
# =============================================================================


def _round(
    player: str,
    server: str,
    start: datetime,
    minutes: float,
    kills: int,
    deaths: int,
    score: int,
    *,
    game_id: str = "bf1942",
    is_bot: bool = False,
) -> tuple:
    end = start + timedelta(minutes=minutes)
    round_id = f"{server}-{start:%Y%m%d%H%M}"
    return (
        round_id,
        player,
        server,
        MAP,
        game_id,
        start,
        end,
        score,
        kills,
        deaths,
        float(minutes),
        is_bot,
    )


def _day(days_before: int, hour: int) -> datetime:
    return datetime(2024, 6, 15, hour, 0, 0) - timedelta(days=days_before)


def build_rounds() -> list[tuple]:
    """Rounds du jeu de données de référence."""
    rows: list[tuple] = []
    for d in range(1, 21):
        if d <= 15:
            rows.append(_round("Sarge", ALPHA, _day(d, 20), 30, 20, 10, 40))
        else:
            rows.append(_round("Sarge", BRAVO, _day(d, 20), 30, 20, 10, 40, game_id="bfvietnam"))
        rows.append(_round("SargeTwin", ALPHA, _day(d, 20), 30, 20, 10, 40))
        rows.append(_round("Sarge_Alt", ALPHA, _day(d, 8), 30, 20, 10, 40))
        if d <= 15:
            rows.append(_round("Overlapper", ALPHA, _day(d, 20), 30, 20, 20, 40))
        if d <= 10:
            rows.append(_round("Stranger", CHARLIE, _day(d, 20), 30, 15, 10, 30))

    rows.append(_round("Casual", ALPHA, _day(1, 14), 12, 8, 4, 16))
    rows.append(_round("Casual", ALPHA, _day(2, 14), 12, 8, 4, 16))

    rows.append(_round("BOT_Alpha", ALPHA, _day(1, 3), 30, 60, 1, 120, is_bot=True))
    rows.append(_round("BOT_Alpha", ALPHA, _day(2, 3), 30, 60, 1, 120, is_bot=True))

    for d in range(1, 6):
        rows.append(_round("Ghost", ALPHA, datetime(2023, 1, d, 20, 0), 30, 20, 10, 40))
    return rows


def build_metrics() -> list[tuple]:
    """Mesures de ping du jeu de données de référence."""
    rows: list[tuple] = []
    for k in range(1, 13):
        ts = AS_OF - timedelta(days=k, hours=3)
        rows.append(("Sarge", ALPHA, ts, 40.0))
        rows.append(("Sarge_Alt", ALPHA, ts, 40.5))
        rows.append(("Overlapper", ALPHA, ts, 95.0))
    for k in range(1, 6):
        rows.append(("SargeTwin", ALPHA, AS_OF - timedelta(days=k), 41.0))

    # Glitchs de télémétrie et mesure trop ancienne
    rows.append(("Sarge", ALPHA, AS_OF - timedelta(days=2), 1500.0))
    rows.append(("Sarge", ALPHA, AS_OF - timedelta(days=2), 0.0))
    rows.append(("Sarge", ALPHA, AS_OF - timedelta(days=60), 300.0))
    return rows


def seed_engine(engine: DuckDBEngine) -> None:
    """Crée le schéma et charge le jeu de données de référence."""
    engine.ensure_schema()
    con = engine.connection
    con.executemany(
        """
        INSERT INTO player_rounds (
            round_id, player_name, server_guid, map_name, game_id,
            round_start_time, round_end_time, final_score, final_kills,
            final_deaths, play_time_minutes, is_bot
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        build_rounds(),
    )
    con.executemany(
        "INSERT INTO player_metrics (player_name, server_guid, timestamp, ping) VALUES (?, ?, ?, ?)",
        build_metrics(),
    )


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def as_of() -> datetime:
    return AS_OF


@pytest.fixture
def engine():
    """DuckDB en mémoire chargé avec le jeu de données de référence."""
    eng = DuckDBEngine(":memory:")
    seed_engine(eng)
    yield eng
    eng.close()


@pytest.fixture
def analytics_db_file(tmp_path: Path) -> Path:
    """Fichier DuckDB chargé avec le jeu de données (pour les tests CLI)."""
    path = tmp_path / "analytics.duckdb"
    with DuckDBEngine(path, read_only=False) as eng:
        seed_engine(eng)
    return path


@pytest.fixture
def metadata_store(tmp_path: Path) -> SQLiteMetadataStore:
    """Store SQLite temporaire avec srv-alpha et srv-bravo (srv-charlie inconnu)."""
    store = SQLiteMetadataStore(tmp_path / "metadata.db")
    store.upsert_server(ServerInfo(guid=ALPHA, name="Alpha Server", ip="10.0.0.1", port=14567, game_id="bf1942"))
    store.upsert_server(ServerInfo(guid=BRAVO, name="Bravo Server", ip="10.0.0.2", port=14567, game_id="bfvietnam"))
    return store
