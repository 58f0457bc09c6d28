"""
下注紀錄 — bet_ledger.py
=========================
已結算注單的有上限歷史紀錄（最新在前）。
提供統計、pandas 匯出、CSV 存檔。
"""

import os
import time
from collections import deque
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

import pandas as pd

from card_engine import Color

DEFAULT_LEDGER_LIMIT = 500


class Outcome(Enum):
    WIN = "win"
    LOSS = "loss"


@dataclass(frozen=True)
class Bet:
    """單筆已結算注單（不可變）"""
    round_no: int
    amount: float
    color: Color            # 玩家壓的顏色
    result_color: Color     # 實際開出的顏色
    outcome: Outcome
    balance_after: float
    timestamp: float = field(default_factory=time.time)

    @property
    def profit(self) -> float:
        return self.amount if self.outcome is Outcome.WIN else -self.amount

    def to_dict(self) -> Dict:
        d = asdict(self)
        d['color'] = self.color.value
        d['result_color'] = self.result_color.value
        d['outcome'] = self.outcome.value
        d['profit'] = self.profit
        return d


class BetLedger:
    """
    注單帳本
    - append: O(1) 加在最前面
    - 超過 max_entries 時最舊的紀錄會被丟掉
    """

    def __init__(self, max_entries: Optional[int] = DEFAULT_LEDGER_LIMIT):
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries 必須 > 0")
        self.max_entries = max_entries
        self._entries = deque(maxlen=max_entries)

    def __len__(self):
        return len(self._entries)

    def append(self, bet: Bet):
        self._entries.appendleft(bet)

    def snapshot(self) -> Tuple[Bet, ...]:
        """唯讀快照，最新在前"""
        return tuple(self._entries)

    def last_results(self, n: int = 10) -> List[Color]:
        """最近 n 局開出的顏色"""
        return [b.result_color for b in list(self._entries)[:max(n, 0)]]

    def clear(self):
        self._entries.clear()

    def summary(self) -> Dict:
        """帳本統計（依時間順序計算連勝 / 連敗）"""
        entries = list(reversed(self._entries))
        wins = sum(1 for b in entries if b.outcome is Outcome.WIN)
        losses = len(entries) - wins

        max_win = max_loss = 0
        current = 0   # 正=連贏, 負=連輸
        for b in entries:
            if b.outcome is Outcome.WIN:
                current = current + 1 if current > 0 else 1
                max_win = max(max_win, current)
            else:
                current = current - 1 if current < 0 else -1
                max_loss = max(max_loss, abs(current))

        return {
            'bets': len(entries),
            'wins': wins,
            'losses': losses,
            'wagered': sum(b.amount for b in entries),
            'net': sum(b.profit for b in entries),
            'max_win_streak': max_win,
            'max_loss_streak': max_loss,
        }

    def to_dataframe(self) -> pd.DataFrame:
        """轉成 DataFrame（時間順序，最舊在前）"""
        columns = ['round_no', 'amount', 'color', 'result_color', 'outcome',
                   'balance_after', 'timestamp', 'profit']
        rows = [b.to_dict() for b in reversed(self._entries)]
        return pd.DataFrame(rows, columns=columns)

    def save_csv(self, path: str) -> str:
        """匯出目前場次的注單"""
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self.to_dataframe().to_csv(path, index=False, encoding="utf-8-sig")
        return path
