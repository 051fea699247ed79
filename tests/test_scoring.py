from __future__ import annotations

from casino.engine.deck import new_deck
from casino.engine.scoring import pile_stats, score_round
from casino.engine.types import GameConfig
from conftest import cards


def test_round_score_adds_bonuses() -> None:
    # three aces, big casino, more spades, more cards
    pile1 = cards("AS", "AH", "AC", "10D", "3S", "4S")
    pile2 = cards("KC", "QC")
    s1, s2 = score_round(pile1, pile2)
    assert s1.stats.score == 5
    assert s1.stats.ace_count == 3
    assert s1.stats.has_big_casino and not s1.stats.has_little_casino
    assert s1.spade_bonus == 1
    assert s1.card_bonus == 3
    assert s1.total == 9
    assert s2.total == 0


def test_whole_deck_is_worth_eleven() -> None:
    s1, s2 = score_round(new_deck(), ())
    assert s1.total == 11
    assert s2.total == 0


def test_majority_ties_award_nothing() -> None:
    deck = new_deck()
    spades = [c for c in deck if c.suit == "Spade"]
    clubs = [c for c in deck if c.suit == "Club"]
    hearts = [c for c in deck if c.suit == "Heart"]
    diamonds = [c for c in deck if c.suit == "Diamond"]
    # 13 cards each; spades split 7/6.
    pile1 = spades[:7] + clubs[:6]
    pile2 = spades[7:] + hearts[:7]
    s1, s2 = score_round(pile1, pile2)
    assert s1.card_bonus == s2.card_bonus == 0
    assert s1.stats.spade_count == 7
    assert s2.stats.spade_count == 6
    assert s1.spade_bonus == 1 and s2.spade_bonus == 0

    even1 = spades[:6] + diamonds[:7]
    even2 = spades[6:12] + clubs[:7]
    t1, t2 = score_round(even1, even2)
    assert t1.spade_bonus == t2.spade_bonus == 0
    assert t1.card_bonus == t2.card_bonus == 0


def test_little_casino_is_only_the_two_of_spades() -> None:
    assert pile_stats(cards("2S")).score == 1
    assert pile_stats(cards("2C", "2H", "2D")).score == 0
    assert pile_stats(cards("10S", "10C", "10H")).score == 0
    assert pile_stats(cards("10D")).score == 2


def test_casino_suits_follow_config() -> None:
    cfg = GameConfig(big_casino_suit="Heart", little_casino_suit="Club")
    stats = pile_stats(cards("10H", "2C", "10D", "2S"), cfg)
    assert stats.score == 3
    assert stats.has_big_casino and stats.has_little_casino
