"""圖表與報告輸出測試"""
import os
import random

import pandas as pd

from card_engine import Shoe
from round_engine import RoundEngine
from simulator import run_monte_carlo, run_single_simulation, aggregate_results
from analyzer import (
    plot_accuracy_vs_odds, plot_roi_and_bust, plot_balance_curves,
    plot_odds_drift, plot_accuracy_distribution, plot_session_balance,
    generate_report, save_results_csv,
)


def test_charts_and_report(tmp_path):
    out = str(tmp_path)
    singles = run_single_simulation(n_rounds=30, seed=1)
    all_results = run_monte_carlo(n_simulations=2, n_rounds=30)
    df = aggregate_results(all_results)

    paths = [
        plot_accuracy_vs_odds(df, out),
        plot_roi_and_bust(df, out),
        plot_balance_curves(singles, out),
        plot_odds_drift(singles, out),
        plot_accuracy_distribution(all_results, out),
    ]
    for p in paths:
        assert os.path.getsize(p) > 0

    report = generate_report(singles, df, n_simulations=2, n_rounds=30, deck_count=1,
                             uniformity={'chi2': 50.0, 'dof': 51, 'trials': 100},
                             output_dir=out)
    assert '研究結論' in report
    assert '爆倉比例' in report
    assert report.index('下注時所押顏色') < report.index('ROI 排名')
    assert 'χ²' in report
    assert os.path.exists(os.path.join(out, 'report.txt'))

    save_results_csv(df, singles, out)
    assert os.path.exists(os.path.join(out, 'summary.csv'))
    details = pd.read_csv(os.path.join(out, 'details.csv'), encoding='utf-8-sig')
    assert set(details['strategy']) == {sr.strategy_name for sr in singles}
    assert len(details) == sum(sr.total_rounds for sr in singles)


def test_session_balance_chart(tmp_path):
    engine = RoundEngine(balance=50, shoe=Shoe(1, rng=random.Random(3)))
    for _ in range(10):
        engine.play_round(1, 'black')
    path = plot_session_balance(engine.ledger, str(tmp_path))
    assert os.path.getsize(path) > 0

    empty = plot_session_balance(RoundEngine().ledger, str(tmp_path))
    assert os.path.exists(empty)
