from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
import io
import logging
from pathlib import Path, PurePosixPath
import zipfile

from slp.errors import SlpError
from slp.game_start import PORT_TYPE_EMPTY, PORT_TYPE_HUMAN, GameStart, read_game_start
from slp.ids import Character
from slp.slpz import DEFAULT_COMPRESSION_LEVEL, SlpzCodec

log = logging.getLogger(__name__)


class ArchiveError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    name: str
    data: bytes

    @property
    def stem(self) -> str:
        return PurePosixPath(self.name.replace("\\", "/")).stem


@dataclass(slots=True)
class ImportSummary:
    written: int = 0
    filtered: int = 0
    failed: int = 0


def iter_archive_entries(path: Path) -> Iterator[ArchiveEntry]:
    """Yield `.slp` members of a zip archive."""
    try:
        archive = zipfile.ZipFile(Path(path))
    except (zipfile.BadZipFile, OSError) as exc:
        raise ArchiveError(f"could not open archive {path}: {exc}") from exc
    with archive:
        for info in archive.infolist():
            if info.is_dir() or not info.filename.lower().endswith(".slp"):
                continue
            try:
                data = archive.read(info)
            except (zipfile.BadZipFile, OSError) as exc:
                log.warning("%s: could not read %s: %s", path, info.filename, exc)
                continue
            yield ArchiveEntry(name=info.filename, data=data)


def is_wanted_game(game_start: GameStart, character: Character | None = None) -> bool:
    """Exactly two human ports and no others, optionally both playing `character`."""
    if any(kind not in (PORT_TYPE_HUMAN, PORT_TYPE_EMPTY) for kind in game_start.port_types):
        return False
    humans = [port for port, kind in enumerate(game_start.port_types) if kind == PORT_TYPE_HUMAN]
    if len(humans) != 2:
        return False
    if character is None:
        return True
    for port in humans:
        colour = game_start.character_colours[port]
        if colour is None or colour.character != character:
            return False
    return True


def import_entries(
    entries: Iterable[ArchiveEntry],
    out_dir: Path,
    codec: SlpzCodec,
    *,
    character: Character | None = None,
    summary: ImportSummary | None = None,
) -> ImportSummary:
    summary = ImportSummary() if summary is None else summary
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    for entry in entries:
        try:
            game_start = read_game_start(io.BytesIO(entry.data))
        except SlpError as exc:
            log.warning("skipping %s: %s", entry.name, exc)
            summary.failed += 1
            continue
        if not is_wanted_game(game_start, character):
            summary.filtered += 1
            continue
        try:
            compressed = codec.compress(entry.data)
        except SlpError as exc:
            log.warning("skipping %s: %s", entry.name, exc)
            summary.failed += 1
            continue
        out_path = out_dir / f"{entry.stem}.slpz"
        try:
            out_path.write_bytes(compressed)
        except OSError as exc:
            log.warning("could not write %s: %s", out_path, exc)
            summary.failed += 1
            continue
        summary.written += 1
    return summary


def import_archives(
    archives: Iterable[Path],
    out_dir: Path,
    *,
    character: Character | None = None,
    compression_level: int = DEFAULT_COMPRESSION_LEVEL,
) -> ImportSummary:
    summary = ImportSummary()
    with SlpzCodec(compression_level) as codec:
        for archive in archives:
            log.info("importing %s", archive)
            import_entries(iter_archive_entries(archive), out_dir, codec, character=character, summary=summary)
    return summary


__all__ = [
    "ArchiveEntry",
    "ArchiveError",
    "ImportSummary",
    "import_archives",
    "import_entries",
    "is_wanted_game",
    "iter_archive_entries",
]
