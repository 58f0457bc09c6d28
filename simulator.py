"""
Monte Carlo 批量模擬器 — simulator.py
======================================
用 RoundEngine（零翻牌延遲）讓每個選色策略跑相同的牌序，
收集準確率、損益、ROI、資金曲線、連勝連敗；另提供洗牌均勻度檢定。
"""

import random
from dataclasses import dataclass, field
from math import comb
from typing import Dict, List, Optional

import numpy as np
import pandas as pd

from card_engine import Color, Shoe, new_deck_cards
from round_engine import RoundEngine
from strategies import (
    BaseStrategy, BettingSystem, FlatBetting, get_all_strategies,
)

DEFAULT_SIM_BALANCE = 1000


@dataclass
class StrategyResult:
    """單一策略的模擬結果"""
    strategy_name: str
    total_rounds: int = 0
    correct: int = 0
    wrong: int = 0
    accuracy: float = 0.0
    profit: float = 0.0
    wagered: float = 0.0
    roi: float = 0.0
    max_consecutive_wins: int = 0
    max_consecutive_losses: int = 0
    busted: bool = False
    balance_history: List[float] = field(default_factory=list)
    odds_history: List[float] = field(default_factory=list)
    prediction_detail: List[dict] = field(default_factory=list)


def simulate_strategy(
    strategy: BaseStrategy,
    engine: RoundEngine,
    n_rounds: int,
    betting_system: Optional[BettingSystem] = None,
    record_detail: bool = False,
) -> StrategyResult:
    """
    用 engine 跑 n_rounds 局
    餘額不足以支付下一注時提前結束（busted）
    """
    if betting_system is None:
        betting_system = FlatBetting(1)

    result = StrategyResult(strategy_name=strategy.name)
    start_balance = engine.player.balance
    history: List[Color] = []
    current_streak = 0   # 正=連贏, 負=連輸

    for i in range(n_rounds):
        counts = engine.remaining_counts()
        prediction = strategy.predict(history, counts)
        odds = engine.current_odds(prediction)
        stake = betting_system.next_bet()

        if stake > engine.player.balance:
            result.busted = True
            break

        hand = engine.play_round(stake, prediction)
        won = hand.winner == 'player'
        history.append(hand.result_color)
        betting_system.update(won)

        result.total_rounds += 1
        result.wagered += stake
        if won:
            result.correct += 1
            current_streak = current_streak + 1 if current_streak > 0 else 1
            result.max_consecutive_wins = max(result.max_consecutive_wins, current_streak)
        else:
            result.wrong += 1
            current_streak = current_streak - 1 if current_streak < 0 else -1
            result.max_consecutive_losses = max(result.max_consecutive_losses,
                                                abs(current_streak))

        result.balance_history.append(hand.new_balance - start_balance)
        result.odds_history.append(odds)

        if record_detail:
            result.prediction_detail.append({
                'round': i + 1,
                'prediction': prediction.value,
                'odds': odds,
                'actual': hand.result_color.value,
                'result': '贏' if won else '輸',
                'bet': stake,
                'profit': stake if won else -stake,
                'balance': hand.new_balance,
            })

    result.accuracy = result.correct / max(result.total_rounds, 1) * 100
    result.profit = engine.player.balance - start_balance
    result.roi = result.profit / max(result.wagered, 1) * 100
    return result


def _new_engine(seed: Optional[int], deck_count: int, balance: float) -> RoundEngine:
    shoe = Shoe(deck_count, rng=random.Random(seed))
    return RoundEngine(balance=balance, shoe=shoe, ledger=None)


def run_monte_carlo(
    n_simulations: int = 100,
    n_rounds: int = 200,
    deck_count: int = 1,
    base_unit: float = 1,
    balance: float = DEFAULT_SIM_BALANCE,
    seed_base: int = 42,
    progress_callback=None,
) -> Dict[str, List[StrategyResult]]:
    """
    執行 Monte Carlo 模擬
    同一次模擬中，每個策略都從相同種子的牌靴開始
    回傳 {策略名: [StrategyResult, ...]}
    """
    all_results: Dict[str, List[StrategyResult]] = {}

    for sim_idx in range(n_simulations):
        seed = seed_base + sim_idx
        for strat in get_all_strategies(seed=seed):
            strat.reset()
            engine = _new_engine(seed, deck_count, balance)
            result = simulate_strategy(strat, engine, n_rounds, FlatBetting(base_unit))
            all_results.setdefault(strat.name, []).append(result)

        if progress_callback:
            progress_callback(sim_idx + 1, n_simulations)

    return all_results


def run_single_simulation(
    n_rounds: int = 200,
    deck_count: int = 1,
    base_unit: float = 1,
    balance: float = DEFAULT_SIM_BALANCE,
    seed: int = 42,
) -> List[StrategyResult]:
    """單次詳細模擬（含每局明細）"""
    results = []
    for strat in get_all_strategies(seed=seed):
        strat.reset()
        engine = _new_engine(seed, deck_count, balance)
        results.append(simulate_strategy(
            strat, engine, n_rounds, FlatBetting(base_unit), record_detail=True))
    return results


def aggregate_results(all_results: Dict[str, List[StrategyResult]]) -> pd.DataFrame:
    """彙整 Monte Carlo 結果為 DataFrame"""
    rows = []
    for name, results in all_results.items():
        accuracies = [r.accuracy for r in results]
        profits = [r.profit for r in results]
        rois = [r.roi for r in results]

        rows.append({
            '策略': name,
            '模擬次數': len(results),
            '平均準確率%': np.mean(accuracies),
            '準確率標準差': np.std(accuracies),
            '最高準確率%': np.max(accuracies),
            '最低準確率%': np.min(accuracies),
            '平均損益': np.mean(profits),
            '損益標準差': np.std(profits),
            '平均ROI%': np.mean(rois),
            '平均最大連贏': np.mean([r.max_consecutive_wins for r in results]),
            '平均最大連輸': np.mean([r.max_consecutive_losses for r in results]),
            '勝率>50%比例': sum(1 for a in accuracies if a > 50) / len(accuracies) * 100,
            '平均下注機率%': np.mean([np.mean(r.odds_history) if r.odds_history else 50.0
                                   for r in results]),
            '爆倉比例%': sum(1 for r in results if r.busted) / len(results) * 100,
        })

    df = pd.DataFrame(rows)
    df = df.sort_values('平均準確率%', ascending=False).reset_index(drop=True)
    return df


def shuffle_uniformity(trials: int = 2000, deck_count: int = 1,
                       seed: Optional[int] = None) -> Dict[str, float]:
    """
    洗牌均勻度：統計「原始第 0 張牌」洗牌後落在每個位置的次數，
    對均勻分佈做卡方檢定。自由度 = 牌數 - 1，統計量期望值約等於自由度。
    """
    rng = random.Random(seed)
    marker = new_deck_cards(deck_count)[0]
    n_cards = len(new_deck_cards(deck_count))
    positions = np.zeros(n_cards, dtype=np.int64)

    shoe = Shoe(deck_count, rng=rng)
    for _ in range(trials):
        shoe.build()
        # 多副牌時同一張牌有好幾張，只記第一個出現的位置
        positions[shoe.cards.index(marker)] += 1

    if deck_count == 1:
        expected = np.full(n_cards, trials / n_cards)
    else:
        # 第一個出現位置 k 的機率：C(n-1-k, d-1) / C(n, d)
        probs = np.array([comb(n_cards - 1 - k, deck_count - 1) for k in range(n_cards)],
                         dtype=float) / comb(n_cards, deck_count)
        expected = probs * trials

    mask = expected > 0
    chi2 = float(np.sum((positions[mask] - expected[mask]) ** 2 / expected[mask]))
    dof = int(mask.sum()) - 1
    return {'chi2': chi2, 'dof': dof, 'trials': trials}
