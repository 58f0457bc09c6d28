"""
紅黑猜牌核心 — card_engine.py
==============================
牌靴與牌的基本定義：
- 1~3 副牌（52 / 104 / 156 張）建靴、洗牌
- 不放回抽牌，追蹤剩餘黑牌 / 紅牌數量
- 任一顏色抽完 → 需要重建牌靴
- 錯誤類別（下注無效、局數無效、牌靴已空 ...）
"""

import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)


class Color(Enum):
    BLACK = "black"
    RED = "red"

    def opposite(self) -> "Color":
        return Color.RED if self is Color.BLACK else Color.BLACK

    @property
    def team(self) -> str:
        return self.name

    @classmethod
    def parse(cls, value) -> "Color":
        """接受 Color / 'black' / 'RED' / 'b' / 'r'"""
        if isinstance(value, Color):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            aliases = {'b': 'black', 'r': 'red', '黑': 'black', '紅': 'red'}
            key = aliases.get(key, key)
            for c in cls:
                if c.value == key:
                    return c
        raise ValueError(f"無效的顏色: {value!r}")


COLOR_LABELS = {Color.BLACK: '黑', Color.RED: '紅'}

SUITS_BY_COLOR = {
    Color.BLACK: ('♠', '♣'),
    Color.RED: ('♥', '♦'),
}
RANKS = ('A', '2', '3', '4', '5', '6', '7', '8', '9', '10', 'J', 'Q', 'K')

CARDS_PER_COLOR = 26

# 1=單副, 2=雙副, 3=三副
DECK_SIZES = {'single': 1, 'double': 2, 'triple': 3}
VALID_DECK_COUNTS = (1, 2, 3)


# ====== 錯誤類別 ======

class GameError(Exception):
    """所有遊戲錯誤的基底"""


class InvalidBet(GameError, ValueError):
    """注碼 <= 0、超過餘額、未選顏色，或上一局尚未結算"""


class InvalidRounds(GameError, ValueError):
    """自動下注局數 <= 0"""


class InvalidDeckCount(GameError, ValueError):
    """牌副數不在 1~3"""


class RoundStateError(GameError, RuntimeError):
    """呼叫順序錯誤（例如未下注就抽牌）"""


class EmptyShoe(GameError, RuntimeError):
    """牌靴已空，重洗規則被破壞時才會發生"""


class DivideByZero(GameError, ZeroDivisionError):
    """剩餘牌數為 0 時計算機率"""


@dataclass(frozen=True)
class Card:
    color: Color
    suit: str   # '♠','♣','♥','♦'
    rank: str   # 'A','2',...,'10','J','Q','K'

    def __repr__(self):
        return f"{self.suit}{self.rank}"


def parse_deck_count(value) -> int:
    """接受 1/2/3 或 'single'/'double'/'triple'"""
    if isinstance(value, str):
        key = value.strip().lower()
        if key in DECK_SIZES:
            return DECK_SIZES[key]
        if key.isdigit():
            value = int(key)
    if isinstance(value, bool) or value not in VALID_DECK_COUNTS:
        raise InvalidDeckCount(f"牌副數必須是 1~3: {value!r}")
    return int(value)


def new_deck_cards(deck_count: int) -> List[Card]:
    """依序建立 deck_count 副牌（未洗）"""
    return [
        Card(color, suit, rank)
        for _ in range(deck_count)
        for color in (Color.BLACK, Color.RED)
        for suit in SUITS_BY_COLOR[color]
        for rank in RANKS
    ]


class Shoe:
    """牌靴：1~3 副牌洗牌、不放回抽牌"""

    def __init__(self, deck_count: int = 1, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.deck_count = parse_deck_count(deck_count)
        self.cards: List[Card] = []
        self.remaining_black = 0
        self.remaining_red = 0
        self.initial_count = 0
        self.build(self.deck_count)

    @classmethod
    def from_cards(cls, cards: Iterable[Card], deck_count: int = 1,
                   rng: Optional[random.Random] = None) -> "Shoe":
        """
        以指定順序建立牌靴（重播或測試用）
        之後的 build() 仍會正常建立並洗牌
        """
        shoe = cls(deck_count, rng=rng)
        shoe.cards = list(cards)
        shoe.initial_count = len(shoe.cards)
        shoe.remaining_black = sum(1 for c in shoe.cards if c.color is Color.BLACK)
        shoe.remaining_red = len(shoe.cards) - shoe.remaining_black
        return shoe

    def __repr__(self):
        return (f"<Shoe(decks={self.deck_count}, "
                f"cards_remaining={self.remaining}/{self.initial_count})>")

    def build(self, deck_count: Optional[int] = None):
        """建立 deck_count 副牌並洗牌（Fisher–Yates）"""
        if deck_count is not None:
            self.deck_count = parse_deck_count(deck_count)
        self.cards = new_deck_cards(self.deck_count)
        self.rng.shuffle(self.cards)
        self.initial_count = len(self.cards)
        self.remaining_black = CARDS_PER_COLOR * self.deck_count
        self.remaining_red = CARDS_PER_COLOR * self.deck_count
        logger.info("牌靴重建: %d 副 / %d 張", self.deck_count, self.initial_count)

    def draw(self) -> Card:
        """抽最前面一張牌"""
        if not self.cards:
            raise EmptyShoe("牌靴已空")
        card = self.cards.pop(0)
        if card.color is Color.BLACK:
            self.remaining_black -= 1
        else:
            self.remaining_red -= 1
        return card

    def is_depleted(self) -> bool:
        """任一顏色抽完 → 下一次抽牌前必須重建"""
        return self.remaining_black == 0 or self.remaining_red == 0

    def remaining_of(self, color: Color) -> int:
        return self.remaining_black if color is Color.BLACK else self.remaining_red

    @property
    def remaining(self) -> int:
        return len(self.cards)

    @property
    def penetration(self) -> float:
        """已發出比例 0.0 ~ 1.0"""
        if self.initial_count == 0:
            return 0.0
        return (self.initial_count - self.remaining) / self.initial_count
