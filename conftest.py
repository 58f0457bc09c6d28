"""pytest 共用 fixture：固定牌序的牌靴"""
import os
import sys
import random

import pytest

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from card_engine import Card, Color, Shoe, SUITS_BY_COLOR


def stacked_shoe(*colors, deck_count=1, seed=0):
    """依 colors 順序排好的牌靴（'b' / 'r' 或 Color）"""
    cards = []
    for i, c in enumerate(colors):
        color = Color.parse(c)
        suit = SUITS_BY_COLOR[color][i % 2]
        cards.append(Card(color, suit, 'A'))
    return Shoe.from_cards(cards, deck_count, rng=random.Random(seed))


@pytest.fixture
def stack():
    return stacked_shoe
