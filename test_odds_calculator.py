"""即時機率測試"""
import random

import pytest

from card_engine import Color, Shoe, DivideByZero
from odds_calculator import OddsCalculator


def test_fresh_shoe_is_even():
    calc = OddsCalculator(Shoe(2, rng=random.Random(1)))
    assert calc.odds_for(Color.BLACK) == 50.0
    assert calc.all_odds() == {'black': 50.0, 'red': 50.0}


def test_odds_rounded_to_one_decimal(stack):
    calc = OddsCalculator(stack('b', 'r', 'r'))
    assert calc.odds_for('black') == 33.3
    assert calc.odds_for('red') == 66.7


def test_odds_follow_draws(stack):
    shoe = stack('b', 'b', 'r', 'r')
    calc = OddsCalculator(shoe)
    shoe.draw()
    assert calc.odds_for(Color.BLACK) == pytest.approx(33.3)
    assert calc.odds_for(Color.RED) == pytest.approx(66.7)


def test_empty_shoe_raises():
    calc = OddsCalculator(Shoe.from_cards([]))
    with pytest.raises(DivideByZero):
        calc.odds_for(Color.RED)
    with pytest.raises(ZeroDivisionError):
        calc.odds_for(Color.BLACK)


def test_edge_indicator(stack):
    calc = OddsCalculator(stack('r', 'r', 'r', 'b'))
    edge = calc.edge_indicator()
    assert edge['favored'] == 'red'
    assert edge['deviation'] == 25.0
    assert edge['remaining'] == 4

    even = OddsCalculator(stack('r', 'b')).edge_indicator()
    assert even['favored'] is None
    assert even['deviation'] == 0.0


def test_does_not_mutate_shoe(stack):
    shoe = stack('b', 'r', 'r')
    before = list(shoe.cards)
    calc = OddsCalculator(shoe)
    calc.all_odds()
    calc.edge_indicator()
    calc.status_display()
    assert shoe.cards == before


def test_status_display():
    text = OddsCalculator(Shoe(1, rng=random.Random(2))).status_display()
    assert '剩餘牌數: 52/52' in text
    assert '50.0%' in text
