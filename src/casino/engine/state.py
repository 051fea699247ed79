"""Immutable game state and the small helpers every rule module shares."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field, replace

from .types import PLAYERS, Build, Card, GameConfig, IllegalAction, Phase, PlayerId, opponent, seat


@dataclass(frozen=True)
class PlayerState:
    hand: tuple[Card, ...] = ()
    captured: tuple[Card, ...] = ()
    round_score: int = 0
    total_score: int = 0
    wins: int = 0


@dataclass(frozen=True)
class GameState:
    seed: int
    deck: tuple[Card, ...]
    table: tuple[Card, ...]
    players: tuple[PlayerState, PlayerState]
    current_turn: PlayerId | None
    current_dealer: PlayerId
    builds: tuple[Build, ...] = ()
    round_number: int = 1
    last_capture: PlayerId | None = None
    phase: Phase = "awaiting_action"
    winner: PlayerId | None = None
    next_build_id: int = 1
    last_message: str | None = None
    config: GameConfig = field(default_factory=GameConfig)

    def player(self, player: PlayerId) -> PlayerState:
        return self.players[seat(player)]

    def with_player(self, player: PlayerId, **changes: object) -> "GameState":
        updated = replace(self.player(player), **changes)
        players = list(self.players)
        players[seat(player)] = updated
        return replace(self, players=(players[0], players[1]))

    def find_build(self, build_id: int) -> Build:
        for build in self.builds:
            if build.id == build_id:
                return build
        raise IllegalAction("no_selection", f"No build #{build_id} on the table.")

    def owned_builds(self, player: PlayerId) -> tuple[Build, ...]:
        return tuple(b for b in self.builds if b.owner == player)


def card_total(state: GameState) -> int:
    """Count every card in the state; 52 whenever the state is consistent."""

    total = len(state.deck) + len(state.table)
    total += sum(len(b.cards) for b in state.builds)
    for ps in state.players:
        total += len(ps.hand) + len(ps.captured)
    return total


def without(cards: Sequence[Card], removed: Iterable[Card]) -> tuple[Card, ...]:
    gone = set(removed)
    return tuple(c for c in cards if c not in gone)


def require_in_hand(state: GameState, player: PlayerId, card: Card) -> tuple[Card, ...]:
    """Return the player's hand with ``card`` removed."""

    hand = state.player(player).hand
    if card not in hand:
        raise IllegalAction("no_selection", f"{card.label()} is not in your hand.")
    return without(hand, [card])


def require_on_table(state: GameState, cards: Sequence[Card]) -> None:
    if len(set(cards)) != len(cards):
        raise IllegalAction("illegal_combination", "The same table card was selected twice.")
    missing = [c for c in cards if c not in state.table]
    if missing:
        labels = ", ".join(c.label() for c in missing)
        raise IllegalAction("no_selection", f"Not on the table: {labels}.")


def flip_turn(state: GameState) -> GameState:
    if state.current_turn is None:
        return state
    return replace(state, current_turn=opponent(state.current_turn))


def hands_empty(state: GameState) -> bool:
    return all(not state.player(p).hand for p in PLAYERS)
