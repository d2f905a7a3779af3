from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Final

import msgspec

from slp.geom import Vec2
from slp.ids import Character

from .codec import Header, Row
from .situations import BroadState, Interaction, Situation, StandardBroadState

SEARCH_DISTANCE: Final[float] = 2.0


class QueryFileError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class SearchSituation:
    state: BroadState
    x: float
    y: float

    @classmethod
    def from_situation(cls, situation: Situation) -> SearchSituation:
        return cls(state=situation.state, x=float(situation.x), y=float(situation.y))


@dataclass(frozen=True, slots=True)
class SearchQuery:
    player_response: SearchSituation
    opponent_initiation: SearchSituation

    @classmethod
    def from_interaction(cls, interaction: Interaction) -> SearchQuery:
        return cls(
            player_response=SearchSituation.from_situation(interaction.player_response),
            opponent_initiation=SearchSituation.from_situation(interaction.opponent_initiation),
        )


def _close(query: SearchSituation, situation: Situation, max_distance_sq: float) -> bool:
    if query.state != situation.state:
        return False
    return not Vec2(query.x, query.y).distance_sq_to(situation) > max_distance_sq


def search(
    rows: Iterable[Row],
    queries: Sequence[SearchQuery],
    *,
    distance: float = SEARCH_DISTANCE,
) -> list[list[Row]]:
    """Group rows by the queries they match, one group per query.

    A row matches when both situation states equal the query's and both
    positions lie within `distance`. Groups keep row order.
    """
    max_distance_sq = float(distance) * float(distance)
    groups: list[list[Row]] = [[] for _ in queries]
    for row in rows:
        for query, group in zip(queries, groups):
            if not _close(query.player_response, row.player_response, max_distance_sq):
                continue
            if not _close(query.opponent_initiation, row.opponent_initiation, max_distance_sq):
                continue
            group.append(row)
    return groups


class _QuerySituation(msgspec.Struct, forbid_unknown_fields=True):
    state: int | str
    x: float = 0.0
    y: float = 0.0


class _QueryEntry(msgspec.Struct, forbid_unknown_fields=True):
    player_response: _QuerySituation
    opponent_initiation: _QuerySituation


_QUERY_DECODER = msgspec.json.Decoder(type=list[_QueryEntry])


def _broad_state(value: int | str, character: Character) -> BroadState:
    if isinstance(value, str):
        try:
            return BroadState.standard(StandardBroadState[value.strip().upper()])
        except KeyError as exc:
            raise QueryFileError(f"unknown broad state name: {value!r}") from exc
    state = BroadState.from_u16(character, value)
    if state is None:
        raise QueryFileError(f"unknown broad state code {value} for {character.name}")
    return state


def decode_queries(blob: bytes, header: Header) -> list[SearchQuery]:
    """Decode a JSON list of queries against a database's characters."""
    try:
        entries = _QUERY_DECODER.decode(blob)
    except msgspec.DecodeError as exc:
        raise QueryFileError(f"invalid query file: {exc}") from exc

    queries: list[SearchQuery] = []
    for entry in entries:
        player = entry.player_response
        opponent = entry.opponent_initiation
        queries.append(
            SearchQuery(
                player_response=SearchSituation(
                    state=_broad_state(player.state, header.player_character),
                    x=float(player.x),
                    y=float(player.y),
                ),
                opponent_initiation=SearchSituation(
                    state=_broad_state(opponent.state, header.opponent_character),
                    x=float(opponent.x),
                    y=float(opponent.y),
                ),
            )
        )
    return queries


__all__ = [
    "SEARCH_DISTANCE",
    "QueryFileError",
    "SearchQuery",
    "SearchSituation",
    "decode_queries",
    "search",
]
