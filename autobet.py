"""
自動下注 — autobet.py
======================
以相同注碼連續下注 N 局：
- 每局之間固定間隔（預設 3 秒），間隔可被 stop() 立即打斷
- stop() 為協作式：正在進行的那一局會正常結算，下一局不再開始
- 任一局失敗（例如餘額不足）→ 立即停止並把錯誤交給呼叫端，不重試
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from card_engine import Card, Color, InvalidRounds, RoundStateError
from round_engine import RoundEngine, RoundResult

logger = logging.getLogger(__name__)

AUTO_BET_INTERVAL = 3.0   # 局與局之間（秒）
REVEAL_DELAY = 1.0        # 抽牌到結算（秒），伺服器端可設 0


class AutoBetState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"


@dataclass
class AutoBetSession:
    stake_per_round: float
    rounds_remaining: int
    color: Optional[Color] = None
    rounds_played: int = 0
    active: bool = True
    results: List[RoundResult] = field(default_factory=list)


class AutoBetController:
    """
    自動下注控制器
    run() 在目前執行緒跑完；start() 開背景執行緒，join() 取回結果
    """

    def __init__(self, engine: RoundEngine, interval: float = AUTO_BET_INTERVAL,
                 reveal_delay: float = REVEAL_DELAY):
        self.engine = engine
        self.interval = interval
        self.reveal_delay = reveal_delay
        self.session: Optional[AutoBetSession] = None
        self.last_error: Optional[BaseException] = None
        self.last_results: List[RoundResult] = []
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> AutoBetState:
        session = self.session
        return AutoBetState.RUNNING if session and session.active else AutoBetState.STOPPED

    @property
    def running(self) -> bool:
        return self.state is AutoBetState.RUNNING

    @property
    def rounds_remaining(self) -> int:
        session = self.session
        return session.rounds_remaining if session else 0

    def _open_session(self, stake_per_round: float, rounds: int,
                      color=None) -> AutoBetSession:
        if isinstance(rounds, bool) or not isinstance(rounds, int) or rounds <= 0:
            raise InvalidRounds(f"自動下注局數必須 > 0: {rounds!r}")
        with self._lock:
            if self.running:
                raise RoundStateError("自動下注進行中")
            previous = self._thread
        # 已停止但仍在結算最後一局的舊執行緒
        if previous is not None and previous is not threading.current_thread():
            previous.join()
        with self._lock:
            if self.running:
                raise RoundStateError("自動下注進行中")
            if color is not None:
                color = Color.parse(color)
            self._stop_event.clear()
            self.last_error = None
            self.last_results = []
            self.session = AutoBetSession(stake_per_round, rounds, color)
            logger.info("自動下注開始: %s × %d 局", stake_per_round, rounds)
            return self.session

    def run(self, stake_per_round: float, rounds: int, color=None) -> List[RoundResult]:
        """同步跑完自動下注，回傳各局結果；失敗時拋出該局錯誤"""
        session = self._open_session(stake_per_round, rounds, color)
        self._loop(session)
        if self.last_error is not None:
            raise self.last_error
        return list(self.last_results)

    def start(self, stake_per_round: float, rounds: int, color=None) -> AutoBetSession:
        """背景執行緒自動下注；局數無效時直接拋出 InvalidRounds"""
        session = self._open_session(stake_per_round, rounds, color)
        self._thread = threading.Thread(target=self._loop, args=(session,),
                                        name="auto-bet", daemon=True)
        self._thread.start()
        return session

    def join(self, timeout: Optional[float] = None) -> List[RoundResult]:
        """等待背景自動下注結束；該次失敗時重新拋出錯誤"""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)
            if thread.is_alive():
                raise TimeoutError("自動下注尚未結束")
        if self.last_error is not None:
            raise self.last_error
        return list(self.last_results)

    def stop(self):
        """協作式停止：下一局開始前生效"""
        self._stop_event.set()
        session = self.session
        if session is not None:
            session.active = False
            session.rounds_remaining = 0
        logger.info("自動下注停止")

    def _reveal_pause(self, card: Card):
        if self.reveal_delay > 0:
            self._stop_event.wait(self.reveal_delay)

    def _loop(self, session: AutoBetSession):
        error: Optional[BaseException] = None
        try:
            while session.rounds_remaining > 0:
                if self._stop_event.is_set():
                    break
                color = session.color or self.engine.player.selected_color
                result = self.engine.play_round(session.stake_per_round, color,
                                                reveal=self._reveal_pause)
                session.results.append(result)
                session.rounds_played += 1
                if session.rounds_remaining > 0:
                    session.rounds_remaining -= 1
                if session.rounds_remaining > 0 and self.interval > 0:
                    if self._stop_event.wait(self.interval):
                        break
        except Exception as e:
            logger.warning("自動下注第 %d 局失敗: %s", session.rounds_played + 1, e)
            error = e
        finally:
            session.active = False
            session.rounds_remaining = 0
            with self._lock:
                if self.session is session:
                    self.last_error = error
                    self.last_results = list(session.results)
                    self.session = None
            logger.info("自動下注結束: 共 %d 局", session.rounds_played)
