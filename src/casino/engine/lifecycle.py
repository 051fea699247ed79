"""End-of-round sweep, scoring and the move to the next round or game."""

from __future__ import annotations

from dataclasses import dataclass, replace

from .deck import deal_initial, round_rng, shuffled_deck
from .scoring import RoundScore, score_round
from .state import GameState, PlayerState
from .types import PLAYERS, Card, Event, GameConfig, PlayerId, opponent


@dataclass(frozen=True)
class RoundSummary:
    round_number: int
    scores: tuple[RoundScore, RoundScore]
    totals: tuple[int, int]
    winner: PlayerId | None


def sweep_remaining(state: GameState) -> tuple[Card, ...]:
    """Cards nobody captured: both hands, the table, open builds and any undealt cards."""

    swept: list[Card] = []
    for player in PLAYERS:
        swept.extend(state.player(player).hand)
    swept.extend(state.table)
    for build in state.builds:
        swept.extend(build.cards)
    swept.extend(state.deck)
    return tuple(swept)


def decide_winner(totals: tuple[int, int], target: int) -> PlayerId | None:
    p1, p2 = totals
    if p1 < target and p2 < target:
        return None
    if p1 == p2:
        # Both crossed on the same total; play another round.
        return None
    return "player1" if p1 > p2 else "player2"


def finish_round(state: GameState) -> tuple[GameState, list[Event]]:
    cfg = state.config
    swept = sweep_remaining(state)
    # Nobody captured all round: the sweep goes to the arbiter.
    taker = state.last_capture or cfg.arbiter

    piles = [state.player(p).captured for p in PLAYERS]
    piles[PLAYERS.index(taker)] += swept
    scores = score_round(piles[0], piles[1], cfg)
    totals = (
        state.players[0].total_score + scores[0].total,
        state.players[1].total_score + scores[1].total,
    )
    winner = decide_winner(totals, cfg.target_score)

    players = tuple(
        PlayerState(
            hand=(),
            captured=piles[i],
            round_score=scores[i].total,
            total_score=totals[i],
            wins=ps.wins + (1 if winner == PLAYERS[i] else 0),
        )
        for i, ps in enumerate(state.players)
    )
    new_state = replace(
        state,
        deck=(),
        table=(),
        builds=(),
        players=(players[0], players[1]),
        current_turn=None,
        phase="game_over" if winner is not None else "round_ended",
        winner=winner,
    )
    events: list[Event] = [
        {
            "type": "ROUND_ENDED",
            "round": state.round_number,
            "swept": len(swept),
            "swept_to": taker,
            "scores": [s.total for s in scores],
            "totals": list(totals),
        }
    ]
    if winner is not None:
        events.append({"type": "GAME_ENDED", "winner": winner, "totals": list(totals)})
    return new_state, events


def round_summary(state: GameState) -> RoundSummary:
    """Recompute the summary of a finished round from the captured piles."""

    scores = score_round(state.players[0].captured, state.players[1].captured, state.config)
    return RoundSummary(
        round_number=state.round_number,
        scores=scores,
        totals=(state.players[0].total_score, state.players[1].total_score),
        winner=state.winner,
    )


def _opening_state(
    seed: int,
    round_number: int,
    dealer: PlayerId,
    config: GameConfig,
    totals: tuple[int, int],
    wins: tuple[int, int],
) -> GameState:
    deal = deal_initial(shuffled_deck(round_rng(seed, round_number)), config.hand_size)
    hands = (deal.player1_hand, deal.player2_hand)
    players = tuple(
        PlayerState(hand=hands[i], total_score=totals[i], wins=wins[i]) for i in range(2)
    )
    return GameState(
        seed=seed,
        deck=deal.deck,
        table=deal.table,
        players=(players[0], players[1]),
        current_turn=opponent(dealer),
        current_dealer=dealer,
        round_number=round_number,
        config=config,
    )


def new_game(
    seed: int, config: GameConfig | None = None, wins: tuple[int, int] = (0, 0)
) -> GameState:
    cfg = config or GameConfig()
    return _opening_state(seed, 1, cfg.arbiter, cfg, (0, 0), wins)


def start_next_round(state: GameState) -> tuple[GameState, list[Event]]:
    dealer = opponent(state.current_dealer)
    new_state = _opening_state(
        state.seed,
        state.round_number + 1,
        dealer,
        state.config,
        (state.players[0].total_score, state.players[1].total_score),
        (state.players[0].wins, state.players[1].wins),
    )
    events: list[Event] = [
        {"type": "ROUND_STARTED", "round": new_state.round_number, "dealer": dealer}
    ]
    return new_state, events


def rematch(state: GameState, seed: int) -> GameState:
    """A fresh game that keeps only the win counters."""

    return new_game(seed, state.config, (state.players[0].wins, state.players[1].wins))
