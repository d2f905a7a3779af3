from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Final, Iterable

from construct import Byte, Bytes, Float32b, Int16ub, Int32sb, Int32ub, Struct

from .container import EventSizeTable
from .errors import InvalidFileError, ParseLocation
from .fields import U16, has_field, parse_struct, read_u16
from .game_start import GameStart, PORT_COUNT
from .geom import Vec2
from .ids import NULL_ACTION_STATE, ActionState, Character, EventCode, character_from_internal, has_follower

# Bookend counters start at -123 (the first pre-game frame); indices are shifted to be non-negative.
FRAME_INDEX_OFFSET: Final[int] = 123
SLOT_COUNT: Final[int] = PORT_COUNT * 2

_PRE_FRAME_UPDATE = Struct(
    "command" / Byte,
    "frame" / Int32sb,
    "port" / Byte,
    "is_follower" / Byte,
    "random_seed" / Int32ub,
    "state" / Int16ub,
    "position_x" / Float32b,
    "position_y" / Float32b,
    "facing" / Float32b,
    "joystick_x" / Float32b,
    "joystick_y" / Float32b,
    "cstick_x" / Float32b,
    "cstick_y" / Float32b,
    "trigger" / Float32b,
    "processed_buttons" / Int32ub,
    "physical_buttons" / Int16ub,
)

_POST_FRAME_UPDATE = Struct(
    "command" / Byte,
    "frame" / Int32sb,
    "port" / Byte,
    "is_follower" / Byte,
    "character" / Byte,
    "state" / Int16ub,
    "position_x" / Float32b,
    "position_y" / Float32b,
    "facing" / Float32b,
    "percent" / Float32b,
    "shield_size" / Float32b,
    "last_attack_landed" / Byte,
    "combo_count" / Byte,
    "last_hit_by" / Byte,
    "stocks" / Byte,
    "anim_frame" / Float32b,
)

# Fields appended to post-frame updates by newer recorders, starting at 0x26.
_POST_FRAME_EXTENSION = Struct(
    "state_flags" / Bytes(5),
    "hitstun_misc" / Float32b,
    "is_airborne" / Byte,
    "last_ground_id" / Int16ub,
    "jumps_remaining" / Byte,
    "l_cancel" / Byte,
    "hurtbox" / Byte,
    "self_air_x" / Float32b,
    "self_y" / Float32b,
    "attack_x" / Float32b,
    "attack_y" / Float32b,
    "self_ground_x" / Float32b,
    "hitlag_frames" / Float32b,
)
_POST_FRAME_EXTENSION_OFFSET = _POST_FRAME_UPDATE.sizeof()
_POST_FRAME_HIT_BY_INSTANCE_OFFSET = 0x51

_FRAME_BOOKEND = Struct(
    "command" / Byte,
    "frame" / Int32sb,
)


class Direction(IntEnum):
    LEFT = 0
    RIGHT = 1

    @classmethod
    def from_facing(cls, facing: float) -> Direction:
        return cls.RIGHT if float(facing) == 1.0 else cls.LEFT


class Buttons:
    """Physical controller button bits (pre-frame update, 0x31)."""

    D_PAD_LEFT = 1 << 0
    D_PAD_RIGHT = 1 << 1
    D_PAD_DOWN = 1 << 2
    D_PAD_UP = 1 << 3
    Z = 1 << 4
    R_DIGITAL = 1 << 5
    L_DIGITAL = 1 << 6
    A = 1 << 8
    B = 1 << 9
    X = 1 << 10
    Y = 1 << 11
    START = 1 << 12


@dataclass(frozen=True, slots=True)
class PreFrameUpdate:
    port: int = 0
    is_follower: bool = False
    buttons: int = 0
    trigger: float = 0.0
    joystick: Vec2 = Vec2()
    cstick: Vec2 = Vec2()

    @property
    def slot(self) -> int:
        return slot_index(self.port, self.is_follower)


@dataclass(frozen=True, slots=True)
class PostFrameUpdate:
    port: int = 0
    is_follower: bool = False
    character: Character = Character.MARIO
    state: ActionState = NULL_ACTION_STATE
    position: Vec2 = Vec2()
    direction: Direction = Direction.LEFT
    percent: float = 0.0
    shield_size: float = 0.0
    last_attack_landed: int = 0
    stocks: int = 0
    anim_frame: float = 0.0
    state_flags: bytes = bytes(5)
    hitstun_misc: float = 0.0
    is_airborne: bool = False
    last_ground_id: int = 0
    jumps_remaining: int = 0
    velocity: Vec2 = Vec2()
    hit_velocity: Vec2 = Vec2()
    ground_x_velocity: float = 0.0
    hitlag_frames: float = 0.0
    last_hit_by_instance_id: int = 0

    @property
    def slot(self) -> int:
        return slot_index(self.port, self.is_follower)


NULL_PRE_FRAME_UPDATE: Final[PreFrameUpdate] = PreFrameUpdate()
NULL_POST_FRAME_UPDATE: Final[PostFrameUpdate] = PostFrameUpdate()


@dataclass(frozen=True, slots=True)
class Frame:
    character: Character = Character.MARIO
    port: int = 0
    is_follower: bool = False
    direction: Direction = Direction.LEFT
    position: Vec2 = Vec2()
    velocity: Vec2 = Vec2()
    hit_velocity: Vec2 = Vec2()
    ground_x_velocity: float = 0.0
    state: ActionState = NULL_ACTION_STATE
    anim_frame: float = 0.0
    shield_size: float = 0.0
    buttons: int = 0
    trigger: float = 0.0
    joystick: Vec2 = Vec2()
    cstick: Vec2 = Vec2()
    stocks: int = 0
    jumps_remaining: int = 0
    is_airborne: bool = False
    percent: float = 0.0
    hitlag_frames: float = 0.0
    last_ground_id: int = 0
    hitstun_misc: float = 0.0
    state_flags: bytes = bytes(5)
    last_attack_landed: int = 0
    last_hit_by_instance_id: int = 0

    @property
    def state_code(self) -> int:
        return int(self.state.code)


NULL_FRAME: Final[Frame] = Frame()


def slot_index(port: int, is_follower: bool) -> int:
    return int(port) + (PORT_COUNT if is_follower else 0)


def merge_frame(pre: PreFrameUpdate, post: PostFrameUpdate) -> Frame:
    return Frame(
        character=post.character,
        port=post.port,
        is_follower=post.is_follower,
        direction=post.direction,
        position=post.position,
        velocity=post.velocity,
        hit_velocity=post.hit_velocity,
        ground_x_velocity=post.ground_x_velocity,
        state=post.state,
        anim_frame=post.anim_frame,
        shield_size=post.shield_size,
        buttons=pre.buttons,
        trigger=pre.trigger,
        joystick=pre.joystick,
        cstick=pre.cstick,
        stocks=post.stocks,
        jumps_remaining=post.jumps_remaining,
        is_airborne=post.is_airborne,
        percent=post.percent,
        hitlag_frames=post.hitlag_frames,
        last_ground_id=post.last_ground_id,
        hitstun_misc=post.hitstun_misc,
        state_flags=post.state_flags,
        last_attack_landed=post.last_attack_landed,
        last_hit_by_instance_id=post.last_hit_by_instance_id,
    )


def _check_slot(port: int, location: ParseLocation) -> None:
    if not (0 <= int(port) < PORT_COUNT):
        raise InvalidFileError(location, f"port index {port} out of range")


def parse_pre_frame_update(record: bytes) -> PreFrameUpdate:
    loc = ParseLocation.PRE_FRAME_UPDATE
    raw = parse_struct(_PRE_FRAME_UPDATE, record, location=loc)
    _check_slot(raw.port, loc)
    return PreFrameUpdate(
        port=int(raw.port),
        is_follower=bool(raw.is_follower),
        buttons=int(raw.physical_buttons),
        trigger=float(raw.trigger),
        joystick=Vec2(float(raw.joystick_x), float(raw.joystick_y)),
        cstick=Vec2(float(raw.cstick_x), float(raw.cstick_y)),
    )


def parse_post_frame_update(record: bytes) -> PostFrameUpdate:
    loc = ParseLocation.POST_FRAME_UPDATE
    raw = parse_struct(_POST_FRAME_UPDATE, record, location=loc)
    _check_slot(raw.port, loc)

    character = character_from_internal(raw.character)
    if character is None:
        raise InvalidFileError(loc, f"unknown internal character id {int(raw.character)}")
    state = ActionState.from_u16(raw.state, character)
    if state is None:
        raise InvalidFileError(loc, f"action state {int(raw.state)} is invalid for {character.name}")

    extra: dict[str, object] = {}
    if has_field(record, _POST_FRAME_EXTENSION_OFFSET, _POST_FRAME_EXTENSION):
        ext = parse_struct(_POST_FRAME_EXTENSION, record[_POST_FRAME_EXTENSION_OFFSET:], location=loc)
        extra = {
            "state_flags": bytes(ext.state_flags),
            "hitstun_misc": float(ext.hitstun_misc),
            "is_airborne": bool(ext.is_airborne),
            "last_ground_id": int(ext.last_ground_id),
            "jumps_remaining": int(ext.jumps_remaining),
            "velocity": Vec2(float(ext.self_air_x), float(ext.self_y)),
            "hit_velocity": Vec2(float(ext.attack_x), float(ext.attack_y)),
            "ground_x_velocity": float(ext.self_ground_x),
            "hitlag_frames": float(ext.hitlag_frames),
        }
    if has_field(record, _POST_FRAME_HIT_BY_INSTANCE_OFFSET, U16):
        extra["last_hit_by_instance_id"] = read_u16(record, _POST_FRAME_HIT_BY_INSTANCE_OFFSET, location=loc)

    return PostFrameUpdate(
        port=int(raw.port),
        is_follower=bool(raw.is_follower),
        character=character,
        state=state,
        position=Vec2(float(raw.position_x), float(raw.position_y)),
        direction=Direction.from_facing(raw.facing),
        percent=float(raw.percent),
        shield_size=float(raw.shield_size),
        last_attack_landed=int(raw.last_attack_landed),
        stocks=int(raw.stocks),
        anim_frame=float(raw.anim_frame),
        **extra,  # type: ignore[arg-type]
    )


def parse_frame_bookend(record: bytes) -> int:
    """Return the shifted, non-negative frame index of a bookend record."""
    loc = ParseLocation.FRAME_BOOKEND
    raw = parse_struct(_FRAME_BOOKEND, record, location=loc)
    index = int(raw.frame) + FRAME_INDEX_OFFSET
    if index < 0:
        raise InvalidFileError(loc, f"frame counter {int(raw.frame)} precedes the first game frame")
    return index


@dataclass(slots=True)
class FrameStore:
    """Index-addressed frame sequence; writes overwrite, gaps fill with `NULL_FRAME`."""

    frames: list[Frame] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.frames)

    def __getitem__(self, index: int) -> Frame:
        return self.frames[index]

    def write(self, index: int, frame: Frame) -> None:
        index = int(index)
        if index >= len(self.frames):
            self.frames.extend([NULL_FRAME] * (index + 1 - len(self.frames)))
        self.frames[index] = frame

    def freeze(self) -> tuple[Frame, ...]:
        return tuple(self.frames)


def active_slots(game_start: GameStart) -> tuple[int, ...]:
    slots: list[int] = []
    for port, colour in enumerate(game_start.character_colours):
        if colour is None:
            continue
        slots.append(slot_index(port, False))
        if has_follower(colour.character):
            slots.append(slot_index(port, True))
    return tuple(slots)


@dataclass(slots=True)
class FrameReconstructor:
    """Merge per-slot pre/post fragments into frames at each bookend.

    Rollback needs no special case: a re-sent frame index simply overwrites
    the earlier write, so the last write per index wins.
    """

    slots: tuple[int, ...]
    pre_updates: list[PreFrameUpdate] = field(default_factory=lambda: [NULL_PRE_FRAME_UPDATE] * SLOT_COUNT)
    post_updates: list[PostFrameUpdate] = field(default_factory=lambda: [NULL_POST_FRAME_UPDATE] * SLOT_COUNT)
    stores: dict[int, FrameStore] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for slot in self.slots:
            self.stores.setdefault(int(slot), FrameStore())

    @classmethod
    def for_game_start(cls, game_start: GameStart) -> FrameReconstructor:
        return cls(slots=active_slots(game_start))

    def apply_pre(self, update: PreFrameUpdate) -> None:
        self.pre_updates[update.slot] = update

    def apply_post(self, update: PostFrameUpdate) -> None:
        self.post_updates[update.slot] = update

    def commit(self, frame_index: int) -> None:
        for slot, store in self.stores.items():
            store.write(frame_index, merge_frame(self.pre_updates[slot], self.post_updates[slot]))

    def feed(self, record: bytes) -> bool:
        """Apply one event record. Returns False once the game end event is seen."""
        code = record[0]
        if code == EventCode.PRE_FRAME_UPDATE:
            self.apply_pre(parse_pre_frame_update(record))
        elif code == EventCode.POST_FRAME_UPDATE:
            self.apply_post(parse_post_frame_update(record))
        elif code == EventCode.FRAME_BOOKEND:
            self.commit(parse_frame_bookend(record))
        elif code == EventCode.GAME_END:
            return False
        return True

    def results(self) -> dict[int, tuple[Frame, ...]]:
        return {slot: store.freeze() for slot, store in self.stores.items()}


def iter_event_records(data: bytes, table: EventSizeTable, start: int, end: int) -> Iterable[bytes]:
    cursor = int(start)
    end = min(int(end), len(data))
    while cursor < end:
        code = data[cursor]
        size = table.record_size(code)
        if cursor + size > len(data):
            raise InvalidFileError(
                ParseLocation.EVENT_STREAM,
                f"event 0x{code:02x} at {cursor} runs past end of buffer ({cursor + size} > {len(data)})",
            )
        yield data[cursor : cursor + size]
        cursor += size


def reconstruct_frames(
    data: bytes,
    table: EventSizeTable,
    game_start: GameStart,
    *,
    start: int,
    end: int,
) -> dict[int, tuple[Frame, ...]]:
    reconstructor = FrameReconstructor.for_game_start(game_start)
    for record in iter_event_records(data, table, start, end):
        if not reconstructor.feed(record):
            break
    return reconstructor.results()


__all__ = [
    "FRAME_INDEX_OFFSET",
    "NULL_FRAME",
    "NULL_POST_FRAME_UPDATE",
    "NULL_PRE_FRAME_UPDATE",
    "SLOT_COUNT",
    "Buttons",
    "Direction",
    "Frame",
    "FrameReconstructor",
    "FrameStore",
    "PostFrameUpdate",
    "PreFrameUpdate",
    "active_slots",
    "iter_event_records",
    "merge_frame",
    "parse_frame_bookend",
    "parse_post_frame_update",
    "parse_pre_frame_update",
    "reconstruct_frames",
    "slot_index",
]
