from __future__ import annotations

from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
import importlib
import logging
from pathlib import Path
from typing import Final, TypeVar

from slp.errors import SlpError
from slp.game import Game, parse_game
from slp.slpz import DEFAULT_COMPRESSION_LEVEL, SlpzCodec

from .codec import Header, Row, dump_database
from .situations import InteractionClassifier

log = logging.getLogger(__name__)

DEFAULT_WORKERS: Final[int] = 8
REPLAY_SUFFIXES: Final[tuple[str, ...]] = (".slp", ".slpz")

T = TypeVar("T")


def partition(items: Sequence[T], n: int) -> list[list[T]]:
    """Split into `n` contiguous slices of `len // n`; the last slice takes the remainder."""
    n = int(n)
    if n < 1:
        raise ValueError(f"partition count must be at least 1, got {n}")
    size = len(items) // n
    slices = [list(items[i * size : (i + 1) * size]) for i in range(n - 1)]
    slices.append(list(items[(n - 1) * size :]))
    return slices


def iter_replay_files(root: Path) -> list[Path]:
    """Replay files under `root`, sorted so partitions are reproducible."""
    root = Path(root)
    return sorted(path for path in root.rglob("*") if path.is_file() and path.suffix.lower() in REPLAY_SUFFIXES)


def load_classifier(target: str) -> InteractionClassifier:
    """Resolve `module:attr` to a classifier; classes and factories are called with no arguments."""
    module_name, sep, attr = str(target).partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"classifier must look like 'module:attr', got {target!r}")
    module = importlib.import_module(module_name)
    obj = module
    for part in attr.split("."):
        obj = getattr(obj, part)
    if isinstance(obj, type) or (callable(obj) and not hasattr(obj, "classify")):
        obj = obj()
    if not callable(getattr(obj, "classify", None)):
        raise TypeError(f"{target!r} has no classify() method")
    return obj


def read_game(path: Path, codec: SlpzCodec) -> Game:
    data = Path(path).read_bytes()
    if Path(path).suffix.lower() == ".slpz":
        data = codec.decompress(data)
    return parse_game(data)


def game_rows(game: Game, classifier: InteractionClassifier, header: Header) -> list[Row]:
    """Classify both directions of a two-player game and keep rows for the header's matchup."""
    ports = game.info.low_high_ports()
    if ports is None:
        return []

    rows: list[Row] = []
    for player_port, opponent_port in (ports, ports[::-1]):
        player = game.info.character_colours[player_port]
        opponent = game.info.character_colours[opponent_port]
        if player is None or opponent is None:
            continue
        if player.character != header.player_character or opponent.character != header.opponent_character:
            continue
        interactions = classifier.classify(
            game.info.stage,
            game.port_frames(player_port),
            game.port_frames(opponent_port),
        )
        for interaction in interactions:
            row = Row.from_interaction(interaction)
            if row is not None:
                rows.append(row)
    return rows


def convert_files(
    paths: Iterable[Path],
    classifier: InteractionClassifier,
    header: Header,
    *,
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
) -> list[Row]:
    """Sequential worker body; unreadable replays are logged and skipped."""
    rows: list[Row] = []
    with SlpzCodec(compression_level) as codec:
        for path in paths:
            try:
                game = read_game(path, codec)
            except (SlpError, OSError) as exc:
                log.warning("skipping %s: %s", path, exc)
                continue
            file_rows = game_rows(game, classifier, header)
            log.debug("%s: %d rows", path, len(file_rows))
            rows.extend(file_rows)
    return rows


def build_rows(
    paths: Sequence[Path],
    classifier: InteractionClassifier,
    header: Header,
    *,
    workers: int = DEFAULT_WORKERS,
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
) -> list[Row]:
    slices = partition(sorted(paths), workers)
    log.info("converting %d replays with %d workers", len(paths), len(slices))
    with ThreadPoolExecutor(max_workers=len(slices)) as pool:
        futures = [
            pool.submit(convert_files, chunk, classifier, header, compression_level=compression_level)
            for chunk in slices
        ]
        rows: list[Row] = []
        for index, future in enumerate(futures):
            chunk_rows = future.result()
            log.info("worker %d: %d replays, %d rows", index, len(slices[index]), len(chunk_rows))
            rows.extend(chunk_rows)
    return rows


def build_database(
    paths: Sequence[Path],
    out_path: Path,
    classifier: InteractionClassifier,
    header: Header,
    *,
    workers: int = DEFAULT_WORKERS,
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
) -> int:
    rows = build_rows(paths, classifier, header, workers=workers, compression_level=compression_level)
    count = dump_database(out_path, header, rows)
    log.info("wrote %d rows to %s", count, out_path)
    return count


__all__ = [
    "DEFAULT_WORKERS",
    "build_database",
    "build_rows",
    "convert_files",
    "game_rows",
    "iter_replay_files",
    "load_classifier",
    "partition",
    "read_game",
]
