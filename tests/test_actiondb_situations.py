from __future__ import annotations

import pytest

from actiondb.situations import (
    SPECIAL_CODE_BASE,
    SPECIAL_MOVES,
    BroadState,
    HighLevelAction,
    InteractionScore,
    Situation,
    StandardBroadState,
    StandardHighLevelAction,
)
from slp.ids import Character


def test_standard_codes_are_character_independent() -> None:
    for character in (Character.FOX, Character.SANDBAG):
        state = BroadState.from_u16(character, int(StandardBroadState.LEDGE))
        assert state == BroadState.standard(StandardBroadState.LEDGE)
        assert state.as_u16() == int(StandardBroadState.LEDGE)
        assert not state.is_special


def test_unknown_standard_codes_are_rejected() -> None:
    assert BroadState.from_u16(Character.FOX, len(StandardBroadState)) is None
    assert HighLevelAction.from_u16(Character.FOX, len(StandardHighLevelAction)) is None


def test_special_codes_depend_on_character() -> None:
    count = len(SPECIAL_MOVES[Character.FOX])
    assert HighLevelAction.from_u16(Character.FOX, SPECIAL_CODE_BASE + count - 1) is not None
    assert HighLevelAction.from_u16(Character.FOX, SPECIAL_CODE_BASE + count) is None
    assert HighLevelAction.from_u16(Character.SANDBAG, SPECIAL_CODE_BASE) is None


def test_special_constructor_and_labels() -> None:
    action = HighLevelAction.special(Character.FOX, 3)
    assert action.as_u16() == 0x103
    assert action.label(Character.FOX) == "SPECIAL_REFLECTOR"
    assert action.label() == "SPECIAL_3"
    assert HighLevelAction.standard(StandardHighLevelAction.WAVEDASH).label() == "WAVEDASH"
    with pytest.raises(ValueError):
        HighLevelAction.special(Character.FOX, 9)


def test_state_and_action_with_same_code_differ() -> None:
    assert BroadState(code=1) != HighLevelAction(code=1)


def test_interaction_score_total() -> None:
    assert InteractionScore(percent=12.0, kill=1.0, pos_x=-0.5, pos_y=0.25).total == pytest.approx(12.75)
    assert InteractionScore().total == 0.0


def test_constructors_return_the_calling_class() -> None:
    assert type(BroadState.standard(StandardBroadState.AIR)) is BroadState
    assert type(HighLevelAction.from_u16(Character.FOX, 0)) is HighLevelAction
    assert type(BroadState.special(Character.FOX, 0)) is BroadState


def test_situation_positions_are_single_precision() -> None:
    situation = Situation(state=BroadState(code=0), action=HighLevelAction(code=0), x=0.1, y=2.5)
    assert situation.x == pytest.approx(0.1, abs=1e-7)
    assert situation.x != 0.1
    assert situation.y == 2.5
