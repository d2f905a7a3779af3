from __future__ import annotations

import json

import pytest

from actiondb.codec import Header, Row
from actiondb.search import SearchQuery, SearchSituation, QueryFileError, decode_queries, search
from actiondb.situations import (
    BroadState,
    HighLevelAction,
    Interaction,
    Situation,
    StandardBroadState,
    StandardHighLevelAction,
)
from slp.ids import Character

GROUND = BroadState.standard(StandardBroadState.GROUND)
AIR = BroadState.standard(StandardBroadState.AIR)
SHIELD = BroadState.standard(StandardBroadState.SHIELD)
JAB = HighLevelAction.standard(StandardHighLevelAction.JAB)


def _row(player: tuple[BroadState, float, float], opponent: tuple[BroadState, float, float], score: float = 0.0) -> Row:
    return Row(
        player_response=Situation(state=player[0], action=JAB, x=player[1], y=player[2]),
        opponent_initiation=Situation(state=opponent[0], action=JAB, x=opponent[1], y=opponent[2]),
        score=score,
    )


def _query(player: tuple[BroadState, float, float], opponent: tuple[BroadState, float, float]) -> SearchQuery:
    return SearchQuery(
        player_response=SearchSituation(*player),
        opponent_initiation=SearchSituation(*opponent),
    )


def test_row_at_exact_threshold_is_included() -> None:
    row = _row((GROUND, 2.0, 0.0), (AIR, 0.0, -2.0))
    query = _query((GROUND, 0.0, 0.0), (AIR, 0.0, 0.0))
    assert search([row], [query]) == [[row]]


def test_row_just_beyond_threshold_is_excluded() -> None:
    row = _row((GROUND, 2.0, 0.5), (AIR, 0.0, 0.0))
    query = _query((GROUND, 0.0, 0.0), (AIR, 0.0, 0.0))
    assert search([row], [query]) == [[]]


def test_opponent_distance_is_checked_too() -> None:
    row = _row((GROUND, 0.0, 0.0), (AIR, 3.0, 0.0))
    query = _query((GROUND, 0.0, 0.0), (AIR, 0.0, 0.0))
    assert search([row], [query]) == [[]]


def test_state_mismatch_excludes_coincident_row() -> None:
    row = _row((SHIELD, 5.0, 5.0), (AIR, 1.0, 1.0))
    query = _query((GROUND, 5.0, 5.0), (AIR, 1.0, 1.0))
    assert search([row], [query]) == [[]]


def test_groups_follow_query_order_and_keep_row_order() -> None:
    rows = [
        _row((GROUND, 0.0, 0.0), (AIR, 0.0, 0.0), score=1.0),
        _row((SHIELD, 0.0, 0.0), (AIR, 0.0, 0.0), score=2.0),
        _row((GROUND, 1.0, 1.0), (AIR, 0.5, 0.0), score=3.0),
    ]
    shield_query = _query((SHIELD, 0.0, 0.0), (AIR, 0.0, 0.0))
    ground_query = _query((GROUND, 0.0, 0.0), (AIR, 0.0, 0.0))
    groups = search(rows, [shield_query, ground_query, shield_query])
    assert [[row.score for row in group] for group in groups] == [[2.0], [1.0, 3.0], [2.0]]


def test_no_queries_yields_no_groups() -> None:
    assert search([_row((GROUND, 0.0, 0.0), (AIR, 0.0, 0.0))], []) == []


def test_custom_distance() -> None:
    row = _row((GROUND, 3.0, 0.0), (AIR, 0.0, 0.0))
    query = _query((GROUND, 0.0, 0.0), (AIR, 0.0, 0.0))
    assert search([row], [query], distance=3.0) == [[row]]
    assert search([row], [query], distance=2.9) == [[]]


def test_query_from_interaction_drops_actions() -> None:
    row = _row((GROUND, 1.0, 2.0), (AIR, 3.0, 4.0))
    interaction = Interaction(player_response=row.player_response, opponent_initiation=row.opponent_initiation)
    query = SearchQuery.from_interaction(interaction)
    assert query == _query((GROUND, 1.0, 2.0), (AIR, 3.0, 4.0))
    assert search([row], [query]) == [[row]]


def test_decode_queries_accepts_names_and_codes() -> None:
    header = Header.current(Character.FOX, Character.FALCO)
    blob = json.dumps(
        [
            {
                "player_response": {"state": "shield", "x": 1.5, "y": 0.0},
                "opponent_initiation": {"state": int(StandardBroadState.AIR), "x": -3.0, "y": 8.0},
            },
            {
                "player_response": {"state": 0x100},
                "opponent_initiation": {"state": "ground"},
            },
        ]
    ).encode()
    queries = decode_queries(blob, header)
    assert queries[0] == _query((SHIELD, 1.5, 0.0), (AIR, -3.0, 8.0))
    assert queries[1].player_response.state == BroadState.special(Character.FOX, 0)
    assert queries[1].opponent_initiation == SearchSituation(GROUND, 0.0, 0.0)


@pytest.mark.parametrize(
    "payload",
    [
        b"{not json",
        b'[{"player_response": {"state": 1}}]',
        b'[{"player_response": {"state": "flying"}, "opponent_initiation": {"state": 1}}]',
        b'[{"player_response": {"state": 999}, "opponent_initiation": {"state": 1}}]',
        b'[{"player_response": {"state": 1, "z": 0}, "opponent_initiation": {"state": 1}}]',
    ],
)
def test_decode_queries_rejects_bad_input(payload: bytes) -> None:
    with pytest.raises(QueryFileError):
        decode_queries(payload, Header.current(Character.FOX, Character.FOX))
