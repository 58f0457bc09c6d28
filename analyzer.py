"""
分析報告與視覺化 — analyzer.py
================================
紅黑猜色模擬的圖表、文字報告與 CSV：
- 準確率 vs 下注當下的剩餘牌組機率（算牌優勢是否真的存在）
- ROI 與爆倉比例
- 資金曲線、機率變化、準確率分佈、單一場次餘額
"""

import os
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
import matplotlib
matplotlib.use('Agg')  # 無 GUI 模式
import matplotlib.pyplot as plt
import matplotlib.font_manager as fm
import seaborn as sns

from bet_ledger import BetLedger
from simulator import StrategyResult

CJK_FONTS = ('Microsoft JhengHei', 'Noto Sans CJK TC', 'PingFang TC',
             'Microsoft YaHei', 'SimHei', 'Arial Unicode MS')

RED = '#c0392b'
BLACK = '#2c3e50'


def setup_chinese_font() -> Optional[str]:
    """從已安裝字型挑第一個 CJK 字型放到 sans-serif 最前面；找不到回傳 None"""
    installed = {f.name for f in fm.fontManager.ttflist}
    found = next((name for name in CJK_FONTS if name in installed), None)
    plt.rcParams['font.sans-serif'] = ([found] if found else []) + list(CJK_FONTS) + ['DejaVu Sans']
    plt.rcParams['font.family'] = 'sans-serif'
    plt.rcParams['axes.unicode_minus'] = False
    return found


def ensure_output_dir(output_dir: str = "output"):
    """確保輸出目錄存在"""
    os.makedirs(output_dir, exist_ok=True)
    return output_dir


def _save(fig, output_dir: str, filename: str) -> str:
    fig.tight_layout()
    path = os.path.join(output_dir, filename)
    fig.savefig(path, dpi=150, bbox_inches='tight')
    plt.close(fig)
    return path


# ====== 圖表生成 ======

def plot_accuracy_vs_odds(df: pd.DataFrame, output_dir: str = "output"):
    """
    每個策略兩個點：平均準確率（含標準差）與下注當下所押顏色的平均機率
    兩者都落在 50% 附近 → 策略只是在猜；機率 > 50% → 有利用牌靴組成
    """
    setup_chinese_font()
    order = df.sort_values('平均下注機率%')
    y = np.arange(len(order))
    fig, ax = plt.subplots(figsize=(11, 0.6 * len(order) + 2))

    ax.errorbar(order['平均準確率%'], y, xerr=order['準確率標準差'], fmt='o',
                color=BLACK, capsize=3, label='平均準確率 ± 1σ')
    ax.scatter(order['平均下注機率%'], y, marker='D', color=RED, zorder=3,
               label='下注時所押顏色機率')
    ax.axvline(50, color='grey', linestyle='--', linewidth=1)

    ax.set_yticks(y)
    ax.set_yticklabels(order['策略'])
    ax.set_xlabel('%')
    ax.set_title('準確率與剩餘牌組機率', fontweight='bold')
    ax.legend(loc='lower right', fontsize=9)
    ax.grid(True, axis='x', alpha=0.3)
    return _save(fig, output_dir, 'accuracy_vs_odds.png')


def plot_roi_and_bust(df: pd.DataFrame, output_dir: str = "output"):
    """左：平均 ROI；右：爆倉比例（餘額付不出下一注）"""
    setup_chinese_font()
    order = df.sort_values('平均ROI%')
    fig, (ax_roi, ax_bust) = plt.subplots(1, 2, figsize=(13, 0.5 * len(order) + 2),
                                          sharey=True)

    roi_colors = [RED if v < 0 else BLACK for v in order['平均ROI%']]
    ax_roi.barh(order['策略'], order['平均ROI%'], color=roi_colors)
    ax_roi.axvline(0, color='grey', linewidth=1)
    ax_roi.set_xlabel('平均 ROI (%)')
    ax_roi.set_title('投報率', fontweight='bold')

    ax_bust.barh(order['策略'], order['爆倉比例%'], color=RED, alpha=0.7)
    ax_bust.set_xlim(0, 100)
    ax_bust.set_xlabel('爆倉比例 (%)')
    ax_bust.set_title('爆倉', fontweight='bold')
    for ax in (ax_roi, ax_bust):
        ax.grid(True, axis='x', alpha=0.3)
    return _save(fig, output_dir, 'roi_and_bust.png')


def plot_balance_curves(strategy_results: List[StrategyResult], output_dir: str = "output"):
    """單次模擬各策略累計損益；爆倉的策略在最後一局標 ×"""
    setup_chinese_font()
    fig, ax = plt.subplots(figsize=(14, 7))

    for sr in strategy_results:
        if not sr.balance_history:
            continue
        line, = ax.plot(sr.balance_history, linewidth=1.1, alpha=0.85,
                        label=f'{sr.strategy_name} ({sr.accuracy:.1f}%)')
        if sr.busted:
            ax.plot(len(sr.balance_history) - 1, sr.balance_history[-1], 'x',
                    color=line.get_color(), markersize=10)

    ax.axhline(0, color='grey', linewidth=1)
    ax.set_xlabel('局數')
    ax.set_ylabel('累計損益')
    ax.set_title('資金曲線（單次模擬，同一牌序）', fontweight='bold')
    ax.legend(loc='best', fontsize=8, ncol=2)
    ax.grid(True, alpha=0.3)
    return _save(fig, output_dir, 'balance_curves.png')


def plot_odds_drift(strategy_results: List[StrategyResult], output_dir: str = "output"):
    """各策略下注當下所押顏色的即時機率（牌靴組成的變化）"""
    setup_chinese_font()
    fig, ax = plt.subplots(figsize=(14, 6))

    for sr in strategy_results:
        if sr.odds_history:
            rolling = pd.Series(sr.odds_history).rolling(10, min_periods=1).mean()
            ax.plot(rolling, label=sr.strategy_name, linewidth=1.2, alpha=0.8)

    ax.axhline(y=50, color='red', linestyle='--', linewidth=1.5, label='50%')
    ax.set_xlabel('局數', fontsize=12)
    ax.set_ylabel('所押顏色機率 (%)，10 局移動平均', fontsize=12)
    ax.set_title('下注時的剩餘牌組機率', fontsize=14, fontweight='bold')
    ax.legend(loc='best', fontsize=8, ncol=2)
    ax.grid(True, alpha=0.3)
    return _save(fig, output_dir, 'odds_drift.png')


def plot_accuracy_distribution(all_results: Dict[str, List[StrategyResult]],
                               output_dir: str = "output"):
    """各策略準確率分佈 (箱形圖)"""
    setup_chinese_font()
    fig, ax = plt.subplots(figsize=(14, 7))

    rows = [{'策略': name, '準確率': r.accuracy}
            for name, results in all_results.items() for r in results]
    sns.boxplot(data=pd.DataFrame(rows), x='策略', y='準確率',
                hue='策略', palette='husl', legend=False, ax=ax)

    ax.axhline(y=50, color='red', linestyle='--', linewidth=1.5, label='50%')
    ax.set_ylabel('準確率 (%)', fontsize=12)
    ax.set_title('各策略準確率分佈（Monte Carlo）', fontsize=14, fontweight='bold')
    ax.legend()
    plt.xticks(rotation=30, ha='right')
    ax.grid(True, alpha=0.3, axis='y')
    return _save(fig, output_dir, 'accuracy_distribution.png')


def plot_session_balance(ledger: BetLedger, output_dir: str = "output"):
    """單一場次（帳本）餘額走勢，贏=綠點、輸=紅點"""
    setup_chinese_font()
    df = ledger.to_dataframe()
    fig, ax = plt.subplots(figsize=(12, 5))

    if not df.empty:
        ax.plot(df['round_no'], df['balance_after'], color='#34495e', linewidth=1.2)
        wins = df[df['outcome'] == 'win']
        losses = df[df['outcome'] == 'loss']
        ax.scatter(wins['round_no'], wins['balance_after'], color='#2ecc71', s=18, label='贏')
        ax.scatter(losses['round_no'], losses['balance_after'], color='#e74c3c', s=18, label='輸')
        ax.legend()

    ax.set_xlabel('局數', fontsize=12)
    ax.set_ylabel('餘額', fontsize=12)
    ax.set_title('本場資金曲線', fontsize=14, fontweight='bold')
    ax.grid(True, alpha=0.3)
    return _save(fig, output_dir, 'session_balance.png')


# ====== 報告生成 ======

def _heading(lines: List[str], title: str):
    lines.extend(["", f"■ {title}", "-" * 60])


def generate_report(
    strategy_results: List[StrategyResult],
    df_summary: pd.DataFrame,
    n_simulations: int,
    n_rounds: int,
    deck_count: int,
    uniformity: Dict[str, float] = None,
    output_dir: str = "output",
) -> str:
    """
    文字報告，依序：
    牌靴與洗牌 → 下注時機率 → 爆倉 → ROI 排名 → 單次模擬 → 研究結論
    """
    lines = [
        f"紅黑猜色模擬報告  {deck_count} 副牌 / {n_simulations} 次 × {n_rounds} 局"
        f"（共 {n_simulations * n_rounds:,} 局）",
        "=" * 60,
    ]

    _heading(lines, "牌靴與洗牌")
    lines.append(f"  每副 26 黑 26 紅，任一色抽完即重洗；靴內 {52 * deck_count} 張")
    if uniformity:
        lines.append(f"  第一張牌位置卡方 χ² = {uniformity['chi2']:.2f}，"
                     f"自由度 {uniformity['dof']}，{uniformity['trials']} 次洗牌")

    by_odds = df_summary.sort_values('平均下注機率%', ascending=False)
    _heading(lines, "下注時所押顏色的平均機率")
    for _, row in by_odds.iterrows():
        edge = row['平均下注機率%'] - 50
        lines.append(f"  {row['策略']:<12} {row['平均下注機率%']:6.2f}%  ({edge:+.2f})")

    _heading(lines, "爆倉比例")
    busted = df_summary[df_summary['爆倉比例%'] > 0]
    if busted.empty:
        lines.append("  沒有策略爆倉")
    for _, row in busted.sort_values('爆倉比例%', ascending=False).iterrows():
        lines.append(f"  {row['策略']:<12} {row['爆倉比例%']:5.1f}%")

    by_roi = df_summary.sort_values('平均ROI%', ascending=False).reset_index(drop=True)
    _heading(lines, "ROI 排名（平注）")
    for rank, row in by_roi.iterrows():
        lines.append(f"  {rank + 1:>2}. {row['策略']:<12} ROI {row['平均ROI%']:+7.2f}%  "
                     f"準確率 {row['平均準確率%']:6.2f}% ± {row['準確率標準差']:.2f}")

    _heading(lines, "單次模擬")
    for sr in sorted(strategy_results, key=lambda r: r.profit, reverse=True):
        tag = "  爆倉" if sr.busted else ""
        lines.append(f"  {sr.strategy_name:<12} {sr.correct}/{sr.total_rounds} 局  "
                     f"損益 {sr.profit:+,.1f}  連贏 {sr.max_consecutive_wins} "
                     f"連輸 {sr.max_consecutive_losses}{tag}")

    best = by_odds.iloc[0]
    _heading(lines, "研究結論")
    lines.append(f"  下注機率最高: {best['策略']} ({best['平均下注機率%']:.2f}%)")
    lines.append(f"  準確率全距: {np.ptp(df_summary['平均準確率%'].to_numpy()):.2f} 個百分點")
    lines.append("  只看開牌歷史的策略無法改變下一張的機率；")
    lines.append("  不放回抽牌時，壓剩餘較多的顏色才有真實優勢。")

    report_text = "\n".join(lines)
    with open(os.path.join(output_dir, "report.txt"), "w", encoding="utf-8") as f:
        f.write(report_text)
    return report_text


def save_results_csv(
    df_summary: pd.DataFrame,
    strategy_results: List[StrategyResult],
    output_dir: str = "output",
):
    """summary.csv（Monte Carlo 彙整）與 details.csv（單次模擬每局明細，含策略欄）"""
    ensure_output_dir(output_dir)
    df_summary.to_csv(os.path.join(output_dir, "summary.csv"),
                      index=False, encoding="utf-8-sig")

    frames = [pd.DataFrame(sr.prediction_detail).assign(strategy=sr.strategy_name)
              for sr in strategy_results if sr.prediction_detail]
    if frames:
        pd.concat(frames, ignore_index=True).to_csv(
            os.path.join(output_dir, "details.csv"), index=False, encoding="utf-8-sig")
