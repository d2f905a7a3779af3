from __future__ import annotations

import logging
from pathlib import Path

import typer

from slp.errors import SlpError
from slp.game import parse_game
from slp.game_start import GameStart, read_game_start
from slp.ids import Character, character_from_name
from slp.slpz import SlpzCodec, read_slpz_game_start

from .codec import DatabaseError, Header, load_database
from .config import ActionDbConfig, ConfigError, load_config

app = typer.Typer(add_completion=False)

_CONFIG_HELP = "config file (default: per-user config dir)"
_VERBOSE_HELP = "log progress (repeat for debug output)"


def _setup(config_path: Path | None, verbose: int) -> ActionDbConfig:
    try:
        config = load_config(config_path)
    except ConfigError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = config.logging_level()
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    return config


def _character_option(name: str, option: str) -> Character:
    character = character_from_name(name)
    if character is None:
        typer.echo(f"unknown character for {option}: {name!r}", err=True)
        raise typer.Exit(code=1)
    return character


def _read_game_start(path: Path) -> GameStart:
    with Path(path).open("rb") as f:
        if path.suffix.lower() == ".slpz":
            return read_slpz_game_start(f)
        return read_game_start(f)


def _read_raw(path: Path) -> bytes:
    data = Path(path).read_bytes()
    if path.suffix.lower() == ".slpz":
        with SlpzCodec() as codec:
            return codec.decompress(data)
    return data


@app.command("info")
def cmd_info(replay_file: Path = typer.Argument(..., help="replay file (.slp or .slpz)")) -> None:
    """Print the game start of a replay without reading its frames."""
    try:
        game_start = _read_game_start(replay_file)
    except (SlpError, OSError) as exc:
        typer.echo(f"{replay_file}: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    version = ".".join(str(part) for part in game_start.version)
    typer.echo(f"version: {version}")
    typer.echo(f"stage:   {game_start.stage.name}")
    typer.echo(f"timer:   {game_start.timer}")
    for port, colour in enumerate(game_start.character_colours):
        if colour is None:
            continue
        line = f"port {port + 1}: {colour.character.name} ({colour.colour_name})"
        name = game_start.display_name(port)
        code = game_start.display_connect_code(port)
        if name or code:
            line += f"  {name} {code}".rstrip()
        typer.echo(line)


@app.command("frames")
def cmd_frames(replay_file: Path = typer.Argument(..., help="replay file (.slp or .slpz)")) -> None:
    """Reconstruct frames and print per-port frame counts."""
    try:
        game = parse_game(_read_raw(replay_file))
    except (SlpError, OSError) as exc:
        typer.echo(f"{replay_file}: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"frames: {game.frame_count}")
    for port, frames in enumerate(game.frames):
        if frames is None:
            continue
        last = frames[-1] if frames else None
        text = f"port {port + 1}: {len(frames)} frames"
        if last is not None:
            text += f", final stocks={last.stocks} percent={last.percent:.1f}"
        typer.echo(text)
        followers = game.follower_frames[port]
        if followers is not None:
            typer.echo(f"port {port + 1} follower: {len(followers)} frames")


@app.command("compress")
def cmd_compress(
    src: Path = typer.Argument(..., help="raw replay (.slp)"),
    dest: Path = typer.Argument(..., help="output (.slpz)"),
    level: int = typer.Option(3, "--level", min=0, max=9, help="zlib compression level"),
) -> None:
    """Compress a replay into the slpz container."""
    try:
        with SlpzCodec(level) as codec:
            out = codec.compress(src.read_bytes())
    except (SlpError, OSError) as exc:
        typer.echo(f"{src}: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    dest.write_bytes(out)
    typer.echo(f"wrote {dest} ({len(out)} bytes)")


@app.command("decompress")
def cmd_decompress(
    src: Path = typer.Argument(..., help="compressed replay (.slpz)"),
    dest: Path = typer.Argument(..., help="output (.slp)"),
) -> None:
    """Restore the raw replay from an slpz container."""
    try:
        with SlpzCodec() as codec:
            out = codec.decompress(src.read_bytes())
    except (SlpError, OSError) as exc:
        typer.echo(f"{src}: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    dest.write_bytes(out)
    typer.echo(f"wrote {dest} ({len(out)} bytes)")


@app.command("import")
def cmd_import(
    archives: list[Path] = typer.Argument(..., help="zip archives of .slp replays"),
    out_dir: Path = typer.Option(..., "--out", help="directory for .slpz output"),
    character: str | None = typer.Option(None, "--character", help="keep only games where both players use this character"),
    config_path: Path | None = typer.Option(None, "--config", help=_CONFIG_HELP),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help=_VERBOSE_HELP),
) -> None:
    """Import two-player games from archives as compressed replays."""
    from .archive import ArchiveError, import_archives

    config = _setup(config_path, verbose)
    wanted = _character_option(character, "--character") if character is not None else None
    try:
        summary = import_archives(
            archives,
            out_dir,
            character=wanted,
            compression_level=config.compression_level,
        )
    except ArchiveError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(f"wrote {summary.written} replays ({summary.filtered} filtered, {summary.failed} failed)")


@app.command("build")
def cmd_build(
    replay_dir: Path = typer.Argument(..., help="directory of .slp/.slpz replays"),
    out_file: Path = typer.Argument(..., help="database output path"),
    classifier: str = typer.Option(..., "--classifier", help="interaction classifier as module:attr"),
    workers: int | None = typer.Option(None, "--workers", min=1, help="worker threads (default: config)"),
    player_character: str | None = typer.Option(None, "--player-character", help="responding character"),
    opponent_character: str | None = typer.Option(None, "--opponent-character", help="initiating character"),
    config_path: Path | None = typer.Option(None, "--config", help=_CONFIG_HELP),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help=_VERBOSE_HELP),
) -> None:
    """Classify replays and write an interaction database."""
    from .driver import build_database, iter_replay_files, load_classifier

    config = _setup(config_path, verbose)
    if not replay_dir.is_dir():
        typer.echo(f"replay dir not found: {replay_dir}", err=True)
        raise typer.Exit(code=1)

    player = (
        _character_option(player_character, "--player-character") if player_character is not None else config.player()
    )
    opponent = (
        _character_option(opponent_character, "--opponent-character")
        if opponent_character is not None
        else config.opponent()
    )
    try:
        resolved = load_classifier(classifier)
    except (ImportError, AttributeError, TypeError, ValueError) as exc:
        typer.echo(f"could not load classifier {classifier!r}: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    paths = iter_replay_files(replay_dir)
    if not paths:
        typer.echo(f"no replays under {replay_dir}", err=True)
        raise typer.Exit(code=1)
    count = build_database(
        paths,
        out_file,
        resolved,
        Header.current(player, opponent),
        workers=workers if workers is not None else config.workers,
        compression_level=config.compression_level,
    )
    typer.echo(f"wrote {count} rows from {len(paths)} replays to {out_file}")


def _format_situation(situation, character: Character) -> str:
    return (
        f"{situation.state.label(character)}/{situation.action.label(character)}"
        f" @ ({situation.x:.2f}, {situation.y:.2f})"
    )


@app.command("dump")
def cmd_dump(
    database: Path = typer.Argument(..., help="database file"),
    limit: int | None = typer.Option(None, "--limit", min=0, help="print at most N rows"),
    strict: bool = typer.Option(False, "--strict", help="fail on a truncated trailing row"),
) -> None:
    """Print a database header and its rows."""
    try:
        header, rows = load_database(database, strict=strict)
    except (DatabaseError, OSError) as exc:
        typer.echo(f"{database}: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(
        f"version {header.version}: {header.player_character.name} vs {header.opponent_character.name}, {len(rows)} rows"
    )
    shown = rows if limit is None else rows[:limit]
    for idx, row in enumerate(shown):
        typer.echo(
            f"{idx:6d}  {_format_situation(row.opponent_initiation, header.opponent_character)}"
            f"  ->  {_format_situation(row.player_response, header.player_character)}"
            f"  score={row.score:+.3f}"
        )


@app.command("search")
def cmd_search(
    database: Path = typer.Argument(..., help="database file"),
    queries_file: Path = typer.Argument(..., help="JSON list of queries"),
    distance: float | None = typer.Option(None, "--distance", min=0.0, help="match radius (default: config)"),
    config_path: Path | None = typer.Option(None, "--config", help=_CONFIG_HELP),
) -> None:
    """Find rows matching each query's situations."""
    from .search import QueryFileError, decode_queries, search

    config = _setup(config_path, 0)
    try:
        header, rows = load_database(database)
        queries = decode_queries(queries_file.read_bytes(), header)
    except (DatabaseError, QueryFileError, OSError) as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc

    groups = search(rows, queries, distance=config.search_distance if distance is None else distance)
    for idx, group in enumerate(groups):
        if group:
            mean = sum(row.score for row in group) / len(group)
            typer.echo(f"query {idx}: {len(group)} rows, mean score {mean:+.3f}")
        else:
            typer.echo(f"query {idx}: 0 rows")
        for row in group:
            typer.echo(f"  {_format_situation(row.player_response, header.player_character)}  score={row.score:+.3f}")


def main(argv: list[str] | None = None) -> None:
    app(prog_name="actiondb", args=argv)


if __name__ == "__main__":
    main()
