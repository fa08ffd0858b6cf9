"""
Tests for hand evaluation.
"""

import pytest
from orthrus.core.card import Card, Rank, Suit, parse_cards
from orthrus.core.hand import HandCategory, HandEvaluator, evaluate_five


@pytest.fixture
def evaluator():
    return HandEvaluator()


class TestHandRanking:
    """Tests for hand category recognition."""

    def test_royal_flush(self, evaluator, royal_flush):
        """Test royal flush recognition."""
        value = evaluator.evaluate(royal_flush)
        assert value.category == HandCategory.ROYAL_FLUSH
        assert value.name == "Royal Flush"

    def test_wheel_is_five_high_straight(self, evaluator, wheel_straight):
        """A-2-3-4-5 is a straight with 5 as the high card."""
        value = evaluator.evaluate(wheel_straight)
        assert value.category == HandCategory.STRAIGHT
        assert value.strength[1] == 5

    def test_pair(self, evaluator, sample_hand):
        """Test one pair recognition."""
        assert evaluator.evaluate(sample_hand).category == HandCategory.ONE_PAIR

    @pytest.mark.parametrize("cards, category", [
        ("9h 8h 7h 6h 5h", HandCategory.STRAIGHT_FLUSH),
        ("As Ah Ad Ac Ks", HandCategory.FOUR_OF_A_KIND),
        ("As Ah Ad Kc Ks", HandCategory.FULL_HOUSE),
        ("As Js 9s 6s 2s", HandCategory.FLUSH),
        ("10s 9h 8d 7c 6s", HandCategory.STRAIGHT),
        ("Qs Qh Qd 7c 2s", HandCategory.THREE_OF_A_KIND),
        ("Qs Qh 7d 7c 2s", HandCategory.TWO_PAIR),
        ("As Jh 9d 6c 2s", HandCategory.HIGH_CARD),
    ])
    def test_categories(self, cards, category):
        """Each category is recognised from exactly five cards."""
        assert evaluate_five(parse_cards(cards)).category == category

    def test_best_of_seven(self, evaluator):
        """Seven cards: the best five are used."""
        value = evaluator.evaluate(parse_cards("As Ks Qs Js 10s 2h 3d"))
        assert value.category == HandCategory.ROYAL_FLUSH

    def test_wrong_card_count(self, evaluator):
        """Test that fewer than 5 or more than 7 cards raise."""
        with pytest.raises(ValueError):
            evaluator.evaluate(parse_cards("As Ks Qs Js"))
        with pytest.raises(ValueError):
            evaluator.evaluate(parse_cards("As Ks Qs Js 10s 9s 8s 7s"))


class TestHandComparison:
    """Tests for comparing hands and picking winners."""

    def test_kicker_decides(self, evaluator):
        """Same pair, better kicker wins."""
        a = evaluator.evaluate(parse_cards("As Ah Kd 7c 2s"))
        b = evaluator.evaluate(parse_cards("Ad Ac Qd 7h 2h"))
        assert a > b

    def test_two_pair_ordering(self, evaluator):
        """Higher top pair beats more kickers."""
        a = evaluator.evaluate(parse_cards("Ks Kh 3d 3c 2s"))
        b = evaluator.evaluate(parse_cards("Qs Qh Jd Jc As"))
        assert a > b

    def test_wheel_loses_to_six_high_straight(self, evaluator):
        """Ace plays low in the wheel."""
        wheel = evaluator.evaluate(parse_cards("As 2h 3d 4c 5s"))
        six_high = evaluator.evaluate(parse_cards("2s 3h 4d 5c 6s"))
        assert six_high > wheel

    def test_winners_include_ties(self, evaluator):
        """Board plays: both hands tie and both are returned."""
        board = parse_cards("As Ks Qh Jd 10c")
        a = evaluator.evaluate(parse_cards("2h 3h") + board)
        b = evaluator.evaluate(parse_cards("4d 5d") + board)
        c = evaluator.evaluate(parse_cards("6c 7c") + board)
        assert evaluator.winners([a, b, c]) == [a, b, c]

    def test_winners_single_best(self, evaluator):
        """Only the maximal value is returned."""
        board = parse_cards("2s 7h 9d Jc Kd")
        pair = evaluator.evaluate(parse_cards("Ah Ad") + board)
        high = evaluator.evaluate(parse_cards("3h 4c") + board)
        assert evaluator.winners([high, pair]) == [pair]

    def test_winners_empty(self, evaluator):
        assert evaluator.winners([]) == []
