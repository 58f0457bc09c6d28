"""
單局引擎 — round_engine.py
===========================
一局流程：下注（押金）→ 抽牌 → 翻牌 → 結算 → 閒置

  IDLE → BET_PLACED → DRAWING → REVEALING → SETTLED → IDLE

- 下注時先從餘額扣除注碼（押金）
- 贏：退回押金 + 一賠一；輸：押金沒收
- 玩家與莊家永遠押相反顏色
- 所有公開方法都持有同一把鎖，多執行緒宿主可直接呼叫
"""

import dataclasses
import logging
import numbers
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from card_engine import (
    Card, Color, Shoe, InvalidBet, RoundStateError, parse_deck_count,
)
from odds_calculator import OddsCalculator
from bet_ledger import Bet, BetLedger, Outcome, DEFAULT_LEDGER_LIMIT

logger = logging.getLogger(__name__)

# ─── 設定常數 ────────────────────────────────────────────────
DEFAULT_BALANCE = 10
HOUSE_BALANCE = 1_000_000
DEFAULT_DECKS = 1
LAST_RESULTS_WINDOW = 10


class RoundState(Enum):
    IDLE = "idle"
    BET_PLACED = "bet_placed"
    DRAWING = "drawing"
    REVEALING = "revealing"
    SETTLED = "settled"


def half_up_percent(part: int, total: int) -> int:
    """round(part/total*100)，.5 一律進位"""
    if total <= 0:
        return 0
    return (200 * part + total) // (2 * total)


@dataclass
class PlayerStats:
    name: str
    balance: float
    current_bet: float = 0
    wins: int = 0
    total_bets: int = 0
    streak: int = 0
    win_rate: int = 0
    selected_color: Optional[Color] = None
    team: Optional[str] = None

    def pick(self, color: Optional[Color]):
        self.selected_color = color
        self.team = color.team if color else None

    def record(self, won: bool):
        self.total_bets += 1
        if won:
            self.wins += 1
            self.streak += 1
        else:
            self.streak = 0
        self.win_rate = half_up_percent(self.wins, self.total_bets)

    def to_dict(self) -> Dict:
        d = dataclasses.asdict(self)
        d['selected_color'] = self.selected_color.value if self.selected_color else None
        return d


@dataclass(frozen=True)
class RoundResult:
    winner: str             # 'player' / 'house'
    staked_amount: float
    result_color: Color
    new_balance: float
    round_no: int = 0
    card: Optional[Card] = None

    def to_dict(self) -> Dict:
        return {
            'winner': self.winner,
            'staked_amount': self.staked_amount,
            'result_color': self.result_color.value,
            'new_balance': self.new_balance,
            'round_no': self.round_no,
            'card': repr(self.card) if self.card else None,
        }


class RoundEngine:
    """紅黑猜牌單局引擎"""

    def __init__(self, balance: float = DEFAULT_BALANCE, deck_count: int = DEFAULT_DECKS,
                 shoe: Optional[Shoe] = None, ledger: Optional[BetLedger] = None,
                 house_balance: float = HOUSE_BALANCE):
        self._lock = threading.RLock()
        self.starting_balance = balance
        self.house_starting_balance = house_balance
        self.shoe = shoe or Shoe(deck_count)
        self.odds = OddsCalculator(self.shoe)
        self.ledger = ledger if ledger is not None else BetLedger(DEFAULT_LEDGER_LIMIT)
        self.player = PlayerStats('Player', balance)
        self.house = PlayerStats('House', house_balance)
        self.state = RoundState.IDLE
        self.round_no = 0
        self.pending_stake: float = 0
        self._drawn: Optional[Card] = None
        self._escrow_base: float = 0   # 下注前餘額，結算時以此為準
        self._listeners: List[Callable[[str, object], None]] = []

    # ================================================================
    #  訂閱
    # ================================================================

    def subscribe(self, listener: Callable[[str, object], None]) -> Callable[[], None]:
        """
        listener(event, payload)
        event: 'state'（payload=RoundState）或 'round'（payload=RoundResult）
        回傳取消訂閱函式
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)
        return unsubscribe

    def _emit(self, event: str, payload):
        for listener in list(self._listeners):
            listener(event, payload)

    def _transition(self, state: RoundState):
        self.state = state
        self._emit('state', state)

    # ================================================================
    #  玩家操作
    # ================================================================

    def select_color(self, color):
        """玩家選色，莊家自動拿另一色"""
        color = Color.parse(color)
        with self._lock:
            if self.state is not RoundState.IDLE:
                raise InvalidBet("本局尚未結算，不能換色")
            self.player.pick(color)
            self.house.pick(color.opposite())

    def set_stake(self, amount: float):
        with self._lock:
            self.pending_stake = amount

    def set_deck_count(self, deck_count):
        """換牌副數 → 立即重建牌靴"""
        deck_count = parse_deck_count(deck_count)
        with self._lock:
            if self.state is not RoundState.IDLE:
                raise RoundStateError("本局進行中，不能換牌靴")
            self.shoe.build(deck_count)

    def place_bet(self, stake: float, color):
        """驗證並押注；失敗時狀態完全不變"""
        with self._lock:
            if self.state is not RoundState.IDLE:
                raise InvalidBet("上一局尚未結算")
            if color is None:
                raise InvalidBet("尚未選擇顏色")
            try:
                color = Color.parse(color)
            except ValueError as e:
                raise InvalidBet(str(e)) from e
            if isinstance(stake, bool) or not isinstance(stake, numbers.Real):
                raise InvalidBet(f"無效的注碼: {stake!r}")
            if not stake > 0:
                raise InvalidBet(f"注碼必須 > 0: {stake}")
            if stake > self.player.balance:
                raise InvalidBet(f"餘額不足: 注碼 {stake} > 餘額 {self.player.balance}")

            self.player.pick(color)
            self.house.pick(color.opposite())
            self._escrow_base = self.player.balance
            self.player.balance = self._escrow_base - stake
            self.player.current_bet = stake
            logger.debug("下注 %s 壓 %s，餘額 %s", stake, color.value, self.player.balance)
            self._transition(RoundState.BET_PLACED)

    def draw(self) -> Card:
        """抽牌；抽完後任一色歸零 → 立即重建，下一次抽牌一定是滿靴"""
        with self._lock:
            if self.state is not RoundState.BET_PLACED:
                raise RoundStateError(f"目前狀態 {self.state.value} 不能抽牌")
            self._transition(RoundState.DRAWING)
            if self.shoe.is_depleted():
                self.shoe.build()
            self._drawn = self.shoe.draw()
            if self.shoe.is_depleted():
                self.shoe.build()
            self._transition(RoundState.REVEALING)
            return self._drawn

    def settle(self) -> RoundResult:
        """結算：贏 = 下注前餘額 + 注碼，輸 = 下注前餘額 - 注碼"""
        with self._lock:
            if self.state is not RoundState.REVEALING:
                raise RoundStateError(f"目前狀態 {self.state.value} 不能結算")
            card = self._drawn
            stake = self.player.current_bet
            won = card.color is self.player.selected_color

            if won:
                self.player.balance = self._escrow_base + stake
                self.house.balance -= stake
            else:
                self.player.balance = self._escrow_base - stake
                self.house.balance += stake
            self.player.record(won)
            self.house.record(not won)
            self.player.current_bet = 0

            self.round_no += 1
            self.ledger.append(Bet(
                round_no=self.round_no,
                amount=stake,
                color=self.player.selected_color,
                result_color=card.color,
                outcome=Outcome.WIN if won else Outcome.LOSS,
                balance_after=self.player.balance,
            ))
            result = RoundResult(
                winner='player' if won else 'house',
                staked_amount=stake,
                result_color=card.color,
                new_balance=self.player.balance,
                round_no=self.round_no,
                card=card,
            )
            self._drawn = None
            self._escrow_base = 0
            logger.debug("第 %d 局 %r → %s，餘額 %s",
                         self.round_no, card, result.winner, result.new_balance)

            self._transition(RoundState.SETTLED)
            self._transition(RoundState.IDLE)
            self._emit('round', result)
            return result

    def play_round(self, stake: float, color,
                   reveal: Optional[Callable[[Card], None]] = None) -> RoundResult:
        """
        完整一局
        reveal: 抽牌後、結算前呼叫（翻牌動畫等待），None 表示不等
        """
        with self._lock:
            self.place_bet(stake, color)
            card = self.draw()
        if reveal is not None:
            reveal(card)
        with self._lock:
            return self.settle()

    def confirm_bet(self, multiplier: float = 1) -> RoundResult:
        """用 set_stake / select_color 的設定下注一局"""
        with self._lock:
            stake = self.pending_stake * multiplier
            return self.play_round(stake, self.player.selected_color)

    def reset(self, balance: Optional[float] = None):
        """新場次：統計、帳本、牌靴全部重來"""
        with self._lock:
            if self.state is not RoundState.IDLE:
                raise RoundStateError("本局進行中，不能重置")
            if balance is not None:
                self.starting_balance = balance
            start = self.starting_balance
            self.player = PlayerStats('Player', start)
            self.house = PlayerStats('House', self.house_starting_balance)
            self.ledger.clear()
            self.shoe.build()
            self.round_no = 0
            self.pending_stake = 0

    # ================================================================
    #  唯讀查詢
    # ================================================================

    def current_odds(self, color) -> float:
        with self._lock:
            return self.odds.odds_for(color)

    def remaining_counts(self) -> Dict[str, int]:
        with self._lock:
            return {
                'black': self.shoe.remaining_black,
                'red': self.shoe.remaining_red,
                'total': self.shoe.remaining,
            }

    def player_stats(self) -> PlayerStats:
        with self._lock:
            return dataclasses.replace(self.player)

    def house_stats(self) -> PlayerStats:
        with self._lock:
            return dataclasses.replace(self.house)

    def ledger_snapshot(self):
        with self._lock:
            return self.ledger.snapshot()

    def last_results(self, n: int = LAST_RESULTS_WINDOW) -> List[Color]:
        with self._lock:
            return self.ledger.last_results(n)
