from __future__ import annotations

import logging
import sys
import types

import pytest

from actiondb.codec import Header, load_database
from actiondb.driver import (
    build_database,
    build_rows,
    game_rows,
    iter_replay_files,
    load_classifier,
    partition,
)
from actiondb.situations import (
    BroadState,
    HighLevelAction,
    Interaction,
    InteractionScore,
    Situation,
    StandardBroadState,
    StandardHighLevelAction,
)
from slp.game import parse_game
from slp.ids import Character
from slp.slpz import compress

from replay_builder import FOX_FALCO, PortSpec, two_port_replay

FOX_DITTO = (
    PortSpec(port=0, character=Character.FOX),
    PortSpec(port=2, character=Character.FOX, colour=3),
)


class FrameCountClassifier:
    """One scored interaction per call, tagged with the responding player's frame count."""

    def __init__(self) -> None:
        self.calls: list[tuple[int, int]] = []

    def classify(self, stage, player_frames, opponent_frames):  # noqa: ANN001, ANN201
        self.calls.append((player_frames[0].port, opponent_frames[0].port))
        situation = Situation(
            state=BroadState.standard(StandardBroadState.GROUND),
            action=HighLevelAction.standard(StandardHighLevelAction.WAIT),
            x=float(player_frames[0].port),
            y=0.0,
        )
        return [
            Interaction(
                player_response=situation,
                opponent_initiation=situation,
                score=(InteractionScore(percent=float(len(player_frames))), InteractionScore()),
            ),
            Interaction(player_response=situation, opponent_initiation=situation),
        ]


def test_partition_puts_remainder_on_last_slice() -> None:
    assert partition(list(range(10)), 4) == [[0, 1], [2, 3], [4, 5], [6, 7, 8, 9]]
    assert partition(list(range(3)), 8) == [[], [], [], [], [], [], [], [0, 1, 2]]
    assert partition([], 2) == [[], []]
    with pytest.raises(ValueError):
        partition([1], 0)


def test_game_rows_classifies_both_directions_for_dittos() -> None:
    game = parse_game(two_port_replay(4, ports=FOX_DITTO))
    classifier = FrameCountClassifier()
    rows = game_rows(game, classifier, Header.current(Character.FOX, Character.FOX))
    assert classifier.calls == [(0, 2), (2, 0)]
    assert [row.score for row in rows] == [4.0, 4.0]
    assert [row.player_response.x for row in rows] == [0.0, 2.0]


def test_game_rows_keeps_only_matching_direction() -> None:
    game = parse_game(two_port_replay(3, ports=FOX_FALCO))
    classifier = FrameCountClassifier()
    rows = game_rows(game, classifier, Header.current(Character.FALCO, Character.FOX))
    assert classifier.calls == [(1, 0)]
    assert len(rows) == 1


def test_build_rows_skips_bad_files_and_keeps_partition_order(tmp_path, caplog) -> None:
    (tmp_path / "a.slp").write_bytes(two_port_replay(2, ports=FOX_DITTO))
    (tmp_path / "b.slpz").write_bytes(compress(two_port_replay(5, ports=FOX_DITTO)))
    (tmp_path / "c.slp").write_bytes(b"garbage")
    (tmp_path / "d.slp").write_bytes(two_port_replay(3, ports=FOX_DITTO))
    (tmp_path / "notes.txt").write_text("ignored")

    paths = iter_replay_files(tmp_path)
    assert [path.name for path in paths] == ["a.slp", "b.slpz", "c.slp", "d.slp"]

    header = Header.current(Character.FOX, Character.FOX)
    with caplog.at_level(logging.WARNING, logger="actiondb.driver"):
        rows = build_rows(list(reversed(paths)), FrameCountClassifier(), header, workers=3)
    assert [row.score for row in rows] == [2.0, 2.0, 5.0, 5.0, 3.0, 3.0]
    assert "c.slp" in caplog.text


def test_build_database_writes_file(tmp_path) -> None:
    replays = tmp_path / "replays"
    replays.mkdir()
    (replays / "one.slp").write_bytes(two_port_replay(3, ports=FOX_DITTO))
    out = tmp_path / "fox.db"
    header = Header.current(Character.FOX, Character.FOX)

    count = build_database(iter_replay_files(replays), out, FrameCountClassifier(), header, workers=2)
    assert count == 2
    loaded_header, rows = load_database(out)
    assert loaded_header == header
    assert [row.score for row in rows] == [3.0, 3.0]


def test_load_classifier_instantiates_classes(monkeypatch) -> None:
    module = types.ModuleType("fake_classifiers")
    module.FrameCountClassifier = FrameCountClassifier
    module.instance = FrameCountClassifier()
    monkeypatch.setitem(sys.modules, "fake_classifiers", module)

    assert isinstance(load_classifier("fake_classifiers:FrameCountClassifier"), FrameCountClassifier)
    assert load_classifier("fake_classifiers:instance") is module.instance
    with pytest.raises(ValueError):
        load_classifier("fake_classifiers")
    with pytest.raises(AttributeError):
        load_classifier("fake_classifiers:missing")
