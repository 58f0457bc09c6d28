"""牌靴測試：建靴、洗牌、不放回抽牌、計數"""
import random
from collections import Counter

import pytest

from card_engine import (
    Card, Color, Shoe, EmptyShoe, InvalidDeckCount,
    new_deck_cards, parse_deck_count, CARDS_PER_COLOR,
)


@pytest.mark.parametrize("decks,total", [(1, 52), (2, 104), (3, 156)])
def test_build_sizes(decks, total):
    shoe = Shoe(decks, rng=random.Random(1))
    assert shoe.remaining == total
    assert shoe.initial_count == total
    assert shoe.remaining_black == CARDS_PER_COLOR * decks
    assert shoe.remaining_red == CARDS_PER_COLOR * decks


def test_shuffle_is_permutation_of_fresh_decks():
    shoe = Shoe(2, rng=random.Random(7))
    assert Counter(shoe.cards) == Counter(new_deck_cards(2))
    assert shoe.cards != new_deck_cards(2)


def test_same_seed_same_order():
    a = Shoe(1, rng=random.Random(123))
    b = Shoe(1, rng=random.Random(123))
    assert a.cards == b.cards


def test_counts_track_every_draw():
    shoe = Shoe(1, rng=random.Random(3))
    drawn = []
    while shoe.remaining:
        card = shoe.draw()
        drawn.append(card)
        assert shoe.remaining_black + shoe.remaining_red == shoe.remaining
        assert shoe.remaining_black == sum(1 for c in shoe.cards if c.color is Color.BLACK)
    assert len(drawn) == 52
    assert Counter(drawn) == Counter(new_deck_cards(1))


def test_draw_takes_front_card(stack):
    shoe = stack('r', 'b', 'b')
    assert shoe.draw().color is Color.RED
    assert shoe.remaining_red == 0
    assert shoe.remaining_black == 2
    assert shoe.is_depleted()


def test_draw_empty_raises():
    shoe = Shoe.from_cards([])
    with pytest.raises(EmptyShoe):
        shoe.draw()


def test_build_resets_after_draws():
    shoe = Shoe(1, rng=random.Random(5))
    for _ in range(10):
        shoe.draw()
    shoe.build(3)
    assert shoe.deck_count == 3
    assert shoe.remaining == 156
    assert shoe.penetration == 0.0


def test_penetration():
    shoe = Shoe(1, rng=random.Random(5))
    for _ in range(13):
        shoe.draw()
    assert shoe.penetration == pytest.approx(0.25)


@pytest.mark.parametrize("value,expected", [
    (1, 1), (3, 3), ('2', 2), ('single', 1), ('Double', 2), ('triple', 3),
])
def test_parse_deck_count(value, expected):
    assert parse_deck_count(value) == expected


@pytest.mark.parametrize("value", [0, 4, -1, True, 'four', None, 1.5])
def test_parse_deck_count_rejects(value):
    with pytest.raises(InvalidDeckCount):
        parse_deck_count(value)


def test_invalid_deck_count_is_value_error():
    with pytest.raises(ValueError):
        Shoe(5)


def test_color_parse_and_opposite():
    assert Color.parse('b') is Color.BLACK
    assert Color.parse('RED') is Color.RED
    assert Color.parse('紅') is Color.RED
    assert Color.BLACK.opposite() is Color.RED
    assert Color.RED.team == 'RED'
    with pytest.raises(ValueError):
        Color.parse('green')


def test_card_repr():
    assert repr(Card(Color.RED, '♥', 'Q')) == '♥Q'
