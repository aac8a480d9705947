"""Tests pour scripts/find_similar_players.py : parsing et exécution du CLI."""

from __future__ import annotations

from datetime import datetime

import pytest

from scripts.find_similar_players import build_parser, main

AS_OF_ARG = "2024-06-15T12:00:00"


# ── Fixtures communes ───────────────────────────────────────────────────────


@pytest.fixture
def parser():
    return build_parser()


@pytest.fixture
def run_cli(analytics_db_file, tmp_path):
    """Exécute main() sur la base de test, sans store de métadonnées par défaut."""

    def _run(*args: str, metadata_db=None) -> int:
        argv = [
            "--db",
            str(analytics_db_file),
            "--metadata-db",
            str(metadata_db or tmp_path / "absent_metadata.db"),
            "--as-of",
            AS_OF_ARG,
            *args,
        ]
        return main(argv)

    return _run


# ── Tests du parser ─────────────────────────────────────────────────────────


class TestParser:
    def test_similar_defaults(self, parser):
        args = parser.parse_args(["similar", "Sarge"])
        assert args.command == "similar"
        assert args.player == "Sarge"
        assert args.limit == 10
        assert args.mode == "default"
        assert args.as_of is None

    def test_similar_options(self, parser):
        args = parser.parse_args(["--as-of", AS_OF_ARG, "similar", "Sarge", "--limit", "20", "--mode", "alias"])
        assert args.limit == 20
        assert args.mode == "alias"
        assert args.as_of == datetime(2024, 6, 15, 12, 0)

    def test_hours(self, parser):
        args = parser.parse_args(["hours", "Sarge", "Sarge_Alt"])
        assert (args.player1, args.player2) == ("Sarge", "Sarge_Alt")

    def test_command_required(self, parser):
        with pytest.raises(SystemExit):
            parser.parse_args([])


# ── Tests d'exécution ───────────────────────────────────────────────────────


class TestMain:
    def test_similar(self, run_cli, capsys):
        code = run_cli("similar", "Sarge")
        out = capsys.readouterr().out
        assert code == 0
        assert "SargeTwin" in out
        assert "Sarge_Alt" in out

    def test_alias_mode(self, run_cli, capsys):
        code = run_cli("similar", "Sarge", "--mode", "alias", "--limit", "1")
        out = capsys.readouterr().out
        assert code == 0
        assert "Sarge_Alt" in out
        assert "Overlapper" not in out

    def test_dormant_player(self, run_cli, capsys):
        assert run_cli("similar", "Ghost") == 0
        assert "Aucune activité récente pour Ghost" in capsys.readouterr().out

    def test_hours_with_resolved_names(self, run_cli, metadata_store, capsys):
        code = run_cli("hours", "Sarge", "Sarge_Alt", metadata_db=metadata_store.db_path)
        out = capsys.readouterr().out
        assert code == 0
        assert "Serveurs communs: Alpha Server" in out

    def test_invalid_limit_exit_code(self, run_cli):
        assert run_cli("similar", "Sarge", "--limit", "99") == 2

    def test_invalid_mode_exit_code(self, run_cli):
        assert run_cli("similar", "Sarge", "--mode", "bogus") == 2

    def test_missing_database_exit_code(self, tmp_path):
        code = main(
            [
                "--db",
                str(tmp_path / "absent.duckdb"),
                "--metadata-db",
                str(tmp_path / "absent_metadata.db"),
                "similar",
                "Sarge",
            ]
        )
        assert code == 1
