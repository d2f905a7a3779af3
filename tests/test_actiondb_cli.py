from __future__ import annotations

import json
from pathlib import Path
import sys
import types
import zipfile

from typer.testing import CliRunner

from actiondb.cli import app
from actiondb.codec import Header, Row, dump_database, load_database
from actiondb.situations import (
    BroadState,
    HighLevelAction,
    Interaction,
    InteractionScore,
    Situation,
    StandardBroadState,
    StandardHighLevelAction,
)
from slp.ids import Character

from replay_builder import PortSpec, two_port_replay

FOX_DITTO = (
    PortSpec(port=0, character=Character.FOX, name=b"alpha", connect_code=b"ALPH#1"),
    PortSpec(port=1, character=Character.FOX, colour=2),
)


def _situation(state: StandardBroadState, x: float) -> Situation:
    return Situation(
        state=BroadState.standard(state),
        action=HighLevelAction.standard(StandardHighLevelAction.SHIELD),
        x=x,
        y=0.0,
    )


class _OneRowClassifier:
    def classify(self, stage, player_frames, opponent_frames):  # noqa: ANN001, ANN201
        situation = _situation(StandardBroadState.GROUND, float(len(player_frames)))
        return [Interaction(situation, situation, (InteractionScore(percent=1.0), InteractionScore()))]


def _config(tmp_path: Path) -> Path:
    path = tmp_path / "config.toml"
    path.write_text("workers = 2\n", encoding="utf-8")
    return path


def test_info_reads_raw_and_compressed(tmp_path: Path) -> None:
    raw = tmp_path / "game.slp"
    raw.write_bytes(two_port_replay(3, ports=FOX_DITTO))
    packed = tmp_path / "game.slpz"

    runner = CliRunner()
    result = runner.invoke(app, ["compress", str(raw), str(packed)])
    assert result.exit_code == 0, result.output

    for path in (raw, packed):
        result = runner.invoke(app, ["info", str(path)])
        assert result.exit_code == 0, result.output
        assert "stage:   BATTLEFIELD" in result.output
        assert "port 1: FOX (default)  alpha ALPH#1" in result.output
        assert "port 2: FOX (blue)" in result.output


def test_info_lists_only_occupied_ports(tmp_path: Path) -> None:
    ports = (PortSpec(port=1, character=Character.FALCO), PortSpec(port=3, character=Character.MARTH))
    path = tmp_path / "game.slp"
    path.write_bytes(two_port_replay(2, ports=ports))

    result = CliRunner().invoke(app, ["info", str(path)])
    assert result.exit_code == 0, result.output
    port_lines = [line for line in result.output.splitlines() if line.startswith("port ")]
    assert port_lines == ["port 2: FALCO (default)", "port 4: MARTH (default)"]


def test_compress_decompress_roundtrip(tmp_path: Path) -> None:
    raw = tmp_path / "game.slp"
    raw.write_bytes(two_port_replay(8, ports=FOX_DITTO))
    runner = CliRunner()
    assert runner.invoke(app, ["compress", str(raw), str(tmp_path / "g.slpz"), "--level", "9"]).exit_code == 0
    result = runner.invoke(app, ["decompress", str(tmp_path / "g.slpz"), str(tmp_path / "back.slp")])
    assert result.exit_code == 0, result.output
    assert (tmp_path / "back.slp").read_bytes() == raw.read_bytes()


def test_frames_command(tmp_path: Path) -> None:
    raw = tmp_path / "game.slp"
    raw.write_bytes(two_port_replay(5, ports=FOX_DITTO))
    result = CliRunner().invoke(app, ["frames", str(raw)])
    assert result.exit_code == 0, result.output
    assert "frames: 5" in result.output
    assert "port 2: 5 frames" in result.output


def test_invalid_replay_reports_error(tmp_path: Path) -> None:
    bad = tmp_path / "bad.slp"
    bad.write_bytes(b"definitely not a replay")
    result = CliRunner().invoke(app, ["info", str(bad)])
    assert result.exit_code == 1
    assert "not a slippi replay" in result.output


def test_build_dump_and_search(monkeypatch, tmp_path: Path) -> None:
    module = types.ModuleType("cli_test_classifiers")
    module.OneRow = _OneRowClassifier
    monkeypatch.setitem(sys.modules, "cli_test_classifiers", module)

    replays = tmp_path / "replays"
    replays.mkdir()
    (replays / "a.slp").write_bytes(two_port_replay(3, ports=FOX_DITTO))
    (replays / "b.slp").write_bytes(two_port_replay(6, ports=FOX_DITTO))
    db = tmp_path / "fox.db"

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["build", str(replays), str(db), "--classifier", "cli_test_classifiers:OneRow", "--config", str(_config(tmp_path))],
    )
    assert result.exit_code == 0, result.output
    assert "wrote 4 rows from 2 replays" in result.output
    header, rows = load_database(db)
    assert header == Header.current(Character.FOX, Character.FOX)
    assert [row.player_response.x for row in rows] == [3.0, 3.0, 6.0, 6.0]

    result = runner.invoke(app, ["dump", str(db), "--limit", "1"])
    assert result.exit_code == 0, result.output
    assert "FOX vs FOX, 4 rows" in result.output
    assert "GROUND/SHIELD" in result.output
    assert len([line for line in result.output.splitlines() if "score=" in line]) == 1

    queries = tmp_path / "queries.json"
    queries.write_text(
        json.dumps(
            [
                {"player_response": {"state": "ground", "x": 6.0}, "opponent_initiation": {"state": "ground", "x": 6.0}},
                {"player_response": {"state": "air"}, "opponent_initiation": {"state": "ground"}},
            ]
        ),
        encoding="utf-8",
    )
    result = runner.invoke(app, ["search", str(db), str(queries), "--config", str(_config(tmp_path))])
    assert result.exit_code == 0, result.output
    assert "query 0: 2 rows" in result.output
    assert "query 1: 0 rows" in result.output


def test_build_rejects_unknown_character(tmp_path: Path) -> None:
    replays = tmp_path / "replays"
    replays.mkdir()
    result = CliRunner().invoke(
        app,
        [
            "build",
            str(replays),
            str(tmp_path / "out.db"),
            "--classifier",
            "x:y",
            "--player-character",
            "nobody",
            "--config",
            str(_config(tmp_path)),
        ],
    )
    assert result.exit_code == 1
    assert "unknown character" in result.output


def test_dump_rejects_wrong_version(tmp_path: Path) -> None:
    db = tmp_path / "old.db"
    row = Row(
        player_response=_situation(StandardBroadState.AIR, 0.0),
        opponent_initiation=_situation(StandardBroadState.AIR, 0.0),
        score=0.0,
    )
    dump_database(db, Header(version=7, player_character=Character.FOX, opponent_character=Character.FOX), [row])
    result = CliRunner().invoke(app, ["dump", str(db)])
    assert result.exit_code == 1
    assert "unsupported database version: 7" in result.output


def test_import_command(tmp_path: Path) -> None:
    archive = tmp_path / "games.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        zf.writestr("Game_1.slp", two_port_replay(2, ports=FOX_DITTO))
    out = tmp_path / "out"
    result = CliRunner().invoke(
        app,
        ["import", str(archive), "--out", str(out), "--character", "fox", "--config", str(_config(tmp_path))],
    )
    assert result.exit_code == 0, result.output
    assert "wrote 1 replays (0 filtered, 0 failed)" in result.output
    assert (out / "Game_1.slpz").is_file()
