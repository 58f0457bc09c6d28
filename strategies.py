"""
紅黑猜色策略集合 — strategies.py
=================================
選色策略 + 注碼管理系統，供模擬器與終端機提示使用。

選色策略：
  1. 隨機選色（基準線）
  2. 跟前局 (Follow Last)
  3. 反前局 (Opposite Last)
  4. 跟連勝 (Streak Follower)
  5. 反連勝 (Streak Breaker)
  6. 頻率統計 (Frequency)
  7. Markov Chain
  8. 算牌（壓剩餘較多的顏色）

注碼管理：
  1. 平注法
  2. Martingale 倍投
  3. Paroli 正注
  4. D'Alembert
"""

import random
from collections import Counter, defaultdict
from typing import Dict, List, Optional

from card_engine import Color


def _current_streak(history: List[Color]):
    """回傳 (最後一局顏色, 連續次數)"""
    if not history:
        return None, 0
    last = history[-1]
    streak = 0
    for h in reversed(history):
        if h is last:
            streak += 1
        else:
            break
    return last, streak


# ============================================================
#  基底類別
# ============================================================

class BaseStrategy:
    """策略基底類別"""
    name: str = "基底策略"
    description: str = ""

    def __init__(self, seed: Optional[int] = None):
        self.rng = random.Random(seed)

    def predict(self, history: List[Color], counts: Optional[Dict[str, int]] = None) -> Color:
        """
        根據歷史結果預測下一張牌的顏色
        history: 開牌顏色序列（最舊在前）
        counts: 牌靴剩餘 {'black': n, 'red': m}，部分策略會用到
        """
        raise NotImplementedError

    def reset(self):
        """重置策略內部狀態"""
        pass


class RandomStrategy(BaseStrategy):
    name = "隨機選色"
    description = "隨機選黑或紅，作為所有策略的基準對照線"

    def predict(self, history, counts=None):
        return self.rng.choice([Color.BLACK, Color.RED])


class FollowLastStrategy(BaseStrategy):
    name = "跟前局"
    description = "壓上一張開出的顏色"

    def predict(self, history, counts=None):
        if not history:
            return Color.BLACK
        return history[-1]


class OppositeLastStrategy(BaseStrategy):
    name = "反前局"
    description = "壓上一張顏色的相反色"

    def predict(self, history, counts=None):
        if not history:
            return Color.RED
        return history[-1].opposite()


class StreakFollowerStrategy(BaseStrategy):
    name = "跟連勝"
    description = "同色連開 2 張以上就跟，否則壓黑"

    def __init__(self, min_streak: int = 2, **kwargs):
        super().__init__(**kwargs)
        self.min_streak = min_streak

    def predict(self, history, counts=None):
        last, streak = _current_streak(history)
        if last is not None and streak >= self.min_streak:
            return last
        return Color.BLACK


class StreakBreakerStrategy(BaseStrategy):
    name = "反連勝"
    description = "同色連開 3 張以上就反壓"

    def __init__(self, min_streak: int = 3, **kwargs):
        super().__init__(**kwargs)
        self.min_streak = min_streak

    def predict(self, history, counts=None):
        last, streak = _current_streak(history)
        if last is not None and streak >= self.min_streak:
            return last.opposite()
        return Color.BLACK


class FrequencyStrategy(BaseStrategy):
    name = "頻率統計"
    description = "壓目前出現次數較多的顏色"

    def predict(self, history, counts=None):
        counter = Counter(history)
        if counter[Color.RED] > counter[Color.BLACK]:
            return Color.RED
        return Color.BLACK


class MarkovStrategy(BaseStrategy):
    name = "Markov Chain"
    description = "1 階 Markov 鏈轉移次數，用條件頻率預測下一張"

    def __init__(self, order: int = 1, **kwargs):
        super().__init__(**kwargs)
        self.order = order

    def predict(self, history, counts=None):
        if len(history) <= self.order:
            return Color.BLACK

        transitions = defaultdict(Counter)
        for i in range(len(history) - self.order):
            state = tuple(history[i:i + self.order])
            transitions[state][history[i + self.order]] += 1

        current_state = tuple(history[-self.order:])
        if current_state in transitions:
            nxt = transitions[current_state]
            if nxt[Color.RED] > nxt[Color.BLACK]:
                return Color.RED
        return Color.BLACK


class CardCountStrategy(BaseStrategy):
    name = "算牌"
    description = "壓牌靴中剩餘較多的顏色（不放回抽牌的真實優勢）"

    def predict(self, history, counts=None):
        if not counts:
            return Color.BLACK
        if counts.get('red', 0) > counts.get('black', 0):
            return Color.RED
        return Color.BLACK


# ============================================================
#  注碼管理
# ============================================================

class BettingSystem:
    """注碼管理基底"""
    name: str = "基底"

    def __init__(self, base_unit: float = 1):
        self.base_unit = base_unit
        self.current_bet = base_unit

    def next_bet(self) -> float:
        return self.current_bet

    def update(self, won: bool):
        raise NotImplementedError

    def reset(self):
        self.current_bet = self.base_unit


class FlatBetting(BettingSystem):
    name = "平注法"

    def update(self, won: bool):
        self.current_bet = self.base_unit


class MartingaleBetting(BettingSystem):
    name = "Martingale 倍投"

    def __init__(self, base_unit: float = 1, max_bet: float = 1000):
        super().__init__(base_unit)
        self.max_bet = max_bet

    def update(self, won: bool):
        if won:
            self.current_bet = self.base_unit
        else:
            self.current_bet = min(self.current_bet * 2, self.max_bet)


class ParoliBetting(BettingSystem):
    name = "Paroli 正注"

    def __init__(self, base_unit: float = 1, max_wins: int = 3):
        super().__init__(base_unit)
        self.max_wins = max_wins
        self.consecutive_wins = 0

    def update(self, won: bool):
        if won:
            self.consecutive_wins += 1
            if self.consecutive_wins >= self.max_wins:
                self.current_bet = self.base_unit
                self.consecutive_wins = 0
            else:
                self.current_bet *= 2
        else:
            self.current_bet = self.base_unit
            self.consecutive_wins = 0

    def reset(self):
        super().reset()
        self.consecutive_wins = 0


class DAlembertBetting(BettingSystem):
    name = "D'Alembert"

    def __init__(self, base_unit: float = 1):
        super().__init__(base_unit)
        self.level = 1

    def next_bet(self) -> float:
        return self.base_unit * self.level

    def update(self, won: bool):
        if won:
            self.level = max(1, self.level - 1)
        else:
            self.level += 1
        self.current_bet = self.base_unit * self.level

    def reset(self):
        super().reset()
        self.level = 1


# ============================================================
#  策略工廠
# ============================================================

def get_all_strategies(seed: Optional[int] = None) -> List[BaseStrategy]:
    """回傳所有選色策略的實例"""
    return [
        RandomStrategy(seed=seed),
        FollowLastStrategy(seed=seed),
        OppositeLastStrategy(seed=seed),
        StreakFollowerStrategy(seed=seed),
        StreakBreakerStrategy(seed=seed),
        FrequencyStrategy(seed=seed),
        MarkovStrategy(seed=seed),
        CardCountStrategy(seed=seed),
    ]


def get_all_betting_systems(base_unit: float = 1) -> List[BettingSystem]:
    """回傳所有注碼管理系統"""
    return [
        FlatBetting(base_unit),
        MartingaleBetting(base_unit),
        ParoliBetting(base_unit),
        DAlembertBetting(base_unit),
    ]


def get_strategy(name: str, seed: Optional[int] = None) -> BaseStrategy:
    """依名稱取得策略"""
    for s in get_all_strategies(seed=seed):
        if s.name == name:
            return s
    raise KeyError(f"沒有這個策略: {name}")
