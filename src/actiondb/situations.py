from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import IntEnum
from typing import ClassVar, Final, Protocol, Self

from construct import ConstructError, Float32l

from slp.frames import Frame
from slp.ids import Character, Stage

# Codes at or above this value index the character's special move list.
SPECIAL_CODE_BASE: Final[int] = 0x100


def as_f32(value: float) -> float:
    """Round to the nearest single-precision value; values out of its range pass through."""
    value = float(value)
    try:
        return float(Float32l.parse(Float32l.build(value)))
    except ConstructError:
        return value


_ICE_CLIMBERS_SPECIALS: Final[tuple[str, ...]] = ("ice_shot", "squall_hammer", "belay", "blizzard")

SPECIAL_MOVES: Final[dict[Character, tuple[str, ...]]] = {
    Character.MARIO: ("fireball", "cape", "super_jump_punch", "mario_tornado"),
    Character.FOX: ("blaster", "fox_illusion", "fire_fox", "reflector"),
    Character.CAPTAIN_FALCON: ("falcon_punch", "raptor_boost", "falcon_dive", "falcon_kick"),
    Character.DONKEY_KONG: ("giant_punch", "headbutt", "spinning_kong", "hand_slap"),
    Character.KIRBY: ("inhale", "hammer", "final_cutter", "stone"),
    Character.BOWSER: ("fire_breath", "koopa_klaw", "whirling_fortress", "bowser_bomb"),
    Character.LINK: ("bow", "boomerang", "spin_attack", "bomb"),
    Character.SHEIK: ("needle_storm", "chain", "vanish", "transform"),
    Character.NESS: ("pk_flash", "pk_fire", "pk_thunder", "psi_magnet"),
    Character.PEACH: ("toad", "peach_bomber", "parasol", "vegetable"),
    Character.POPO: _ICE_CLIMBERS_SPECIALS,
    Character.NANA: _ICE_CLIMBERS_SPECIALS,
    Character.PIKACHU: ("thunder_jolt", "skull_bash", "quick_attack", "thunder"),
    Character.SAMUS: ("charge_shot", "missile", "screw_attack", "bomb"),
    Character.YOSHI: ("egg_lay", "egg_roll", "egg_throw", "yoshi_bomb"),
    Character.JIGGLYPUFF: ("rollout", "pound", "sing", "rest"),
    Character.MEWTWO: ("shadow_ball", "confusion", "teleport", "disable"),
    Character.LUIGI: ("fireball", "green_missile", "super_jump_punch", "luigi_cyclone"),
    Character.MARTH: ("shield_breaker", "dancing_blade", "dolphin_slash", "counter"),
    Character.ZELDA: ("nayrus_love", "dins_fire", "farores_wind", "transform"),
    Character.YOUNG_LINK: ("fire_bow", "boomerang", "spin_attack", "bomb"),
    Character.DR_MARIO: ("megavitamins", "super_sheet", "super_jump_punch", "dr_tornado"),
    Character.FALCO: ("blaster", "falco_phantasm", "fire_bird", "reflector"),
    Character.PICHU: ("thunder_jolt", "skull_bash", "agility", "thunder"),
    Character.GAME_AND_WATCH: ("chef", "judgement", "fire", "oil_panic"),
    Character.GANONDORF: ("warlock_punch", "gerudo_dragon", "dark_dive", "wizards_foot"),
    Character.ROY: ("flare_blade", "double_edge_dance", "blazer", "counter"),
}


class StandardBroadState(IntEnum):
    ATTACK = 0
    AIR = 1
    AIRDODGE = 2
    SPECIAL_LANDING = 3
    GROUND = 4
    WALK = 5
    DASH_RUN = 6
    SHIELD = 7
    LEDGE = 8
    LEDGE_ACTION = 9
    HITSTUN = 10
    GENERIC_INACTIONABLE = 11
    DEAD = 12


class StandardHighLevelAction(IntEnum):
    JAB = 0
    FTILT = 1
    UTILT = 2
    DTILT = 3
    DASH_ATTACK = 4
    FSMASH = 5
    USMASH = 6
    DSMASH = 7
    NAIR = 8
    FAIR = 9
    BAIR = 10
    UAIR = 11
    DAIR = 12
    GRAB = 13
    DASH_GRAB = 14
    FTHROW = 15
    BTHROW = 16
    UTHROW = 17
    DTHROW = 18
    PUMMEL = 19
    SHIELD = 20
    SPOTDODGE = 21
    ROLL_FORWARD = 22
    ROLL_BACKWARD = 23
    AIRDODGE = 24
    WAVEDASH = 25
    WAVELAND = 26
    JUMP = 27
    DOUBLE_JUMP = 28
    SHORT_HOP = 29
    FASTFALL = 30
    DASH = 31
    WALK = 32
    CROUCH = 33
    PLATFORM_DROP = 34
    LEDGE_GRAB = 35
    LEDGE_GETUP = 36
    LEDGE_ROLL = 37
    LEDGE_JUMP = 38
    LEDGE_ATTACK = 39
    LEDGE_DROP = 40
    TECH_IN_PLACE = 41
    TECH_FORWARD = 42
    TECH_BACKWARD = 43
    MISSED_TECH = 44
    GETUP_ATTACK = 45
    HITSTUN = 46
    WAIT = 47


@dataclass(frozen=True, slots=True)
class _CharacterScopedCode:
    """A u16 category code; values at `SPECIAL_CODE_BASE` and up depend on the character."""

    code: int

    STANDARD: ClassVar[type[IntEnum]]

    @classmethod
    def standard(cls, value: IntEnum) -> Self:
        return cls(code=int(cls.STANDARD(int(value))))

    @classmethod
    def special(cls, character: Character, index: int) -> Self:
        found = cls.from_u16(character, SPECIAL_CODE_BASE + int(index))
        if found is None:
            raise ValueError(f"{Character(character).name} has no special move {index}")
        return found

    @classmethod
    def from_u16(cls, character: Character, code: int) -> Self | None:
        code = int(code)
        if 0 <= code < SPECIAL_CODE_BASE:
            try:
                cls.STANDARD(code)
            except ValueError:
                return None
            return cls(code=code)
        if 0 <= code - SPECIAL_CODE_BASE < len(SPECIAL_MOVES.get(Character(character), ())):
            return cls(code=code)
        return None

    def as_u16(self) -> int:
        return int(self.code) & 0xFFFF

    @property
    def is_special(self) -> bool:
        return self.code >= SPECIAL_CODE_BASE

    def label(self, character: Character | None = None) -> str:
        if not self.is_special:
            return self.STANDARD(self.code).name
        index = self.code - SPECIAL_CODE_BASE
        moves = SPECIAL_MOVES.get(Character(character), ()) if character is not None else ()
        if index < len(moves):
            return f"SPECIAL_{moves[index].upper()}"
        return f"SPECIAL_{index}"


@dataclass(frozen=True, slots=True)
class BroadState(_CharacterScopedCode):
    """Coarse state a character was in when a situation started."""

    STANDARD: ClassVar[type[IntEnum]] = StandardBroadState


@dataclass(frozen=True, slots=True)
class HighLevelAction(_CharacterScopedCode):
    """Action a character took out of a situation."""

    STANDARD: ClassVar[type[IntEnum]] = StandardHighLevelAction


@dataclass(frozen=True, slots=True)
class Situation:
    state: BroadState
    action: HighLevelAction
    x: float
    y: float

    def __post_init__(self) -> None:
        # Rows store positions as f32.
        object.__setattr__(self, "x", as_f32(self.x))
        object.__setattr__(self, "y", as_f32(self.y))


@dataclass(frozen=True, slots=True)
class InteractionScore:
    percent: float = 0.0
    kill: float = 0.0
    pos_x: float = 0.0
    pos_y: float = 0.0

    @property
    def total(self) -> float:
        return self.percent + self.kill + self.pos_x + self.pos_y


@dataclass(frozen=True, slots=True)
class Interaction:
    """An opponent initiation and the player's response, with per-side outcome scores."""

    player_response: Situation
    opponent_initiation: Situation
    score: tuple[InteractionScore, InteractionScore] | None = None


class InteractionClassifier(Protocol):
    def classify(
        self,
        stage: Stage,
        player_frames: Sequence[Frame],
        opponent_frames: Sequence[Frame],
    ) -> Sequence[Interaction]: ...


__all__ = [
    "SPECIAL_CODE_BASE",
    "SPECIAL_MOVES",
    "as_f32",
    "BroadState",
    "HighLevelAction",
    "Interaction",
    "InteractionClassifier",
    "InteractionScore",
    "Situation",
    "StandardBroadState",
    "StandardHighLevelAction",
]
