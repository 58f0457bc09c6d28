"""
紅黑猜牌 — 主程式入口
======================
預設啟動 Web 介面

執行方式:
  python main.py              → 啟動 Web 介面（預設）
  python main.py --play       → 終端機版
  python main.py --sim        → Monte Carlo 模擬模式
  python main.py --sim --quick→ 快速模擬模式
"""

import sys
import os
import logging

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def build_parser():
    import argparse
    parser = argparse.ArgumentParser(description='紅黑猜牌')
    parser.add_argument('--web', action='store_true', help='Web 介面')
    parser.add_argument('--play', action='store_true', help='終端機版')
    parser.add_argument('--sim', action='store_true', help='Monte Carlo 模擬模式')
    parser.add_argument('--port', type=int, default=8888, help='Web 埠號')
    parser.add_argument('--decks', type=int, default=1, choices=(1, 2, 3), help='牌副數')
    parser.add_argument('--balance', type=float, default=None, help='起始餘額')
    parser.add_argument('--rounds', type=int, default=200, help='每次模擬局數')
    parser.add_argument('--sims', type=int, default=100, help='模擬次數')
    parser.add_argument('--seed', type=int, default=42, help='隨機種子')
    parser.add_argument('--unit', type=float, default=1, help='基本注碼')
    parser.add_argument('--output', type=str, default='output', help='輸出目錄')
    parser.add_argument('--quick', action='store_true', help='快速模式 (10次×100局)')
    parser.add_argument('--verbose', action='store_true', help='顯示 DEBUG 紀錄')
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if args.play:
        from play import interactive_mode
        from round_engine import DEFAULT_BALANCE
        interactive_mode(DEFAULT_BALANCE if args.balance is None else args.balance, args.decks)
        return

    if args.sim:
        _run_simulation(args)
        return

    from web_app import start_server
    from round_engine import DEFAULT_BALANCE
    start_server(args.port, DEFAULT_BALANCE if args.balance is None else args.balance, args.decks)


def _run_simulation(args):
    """Monte Carlo 模擬（僅在 --sim 時才載入重量級依賴）"""
    import time
    from simulator import (
        run_monte_carlo, run_single_simulation, aggregate_results,
        shuffle_uniformity, DEFAULT_SIM_BALANCE,
    )
    from analyzer import (
        ensure_output_dir,
        plot_accuracy_vs_odds, plot_roi_and_bust,
        plot_balance_curves, plot_odds_drift, plot_accuracy_distribution,
        generate_report, save_results_csv,
    )

    if args.quick:
        args.sims = 10
        args.rounds = 100
    balance = DEFAULT_SIM_BALANCE if args.balance is None else args.balance

    print()
    print("╔══════════════════════════════════════════════════════════╗")
    print("║            紅黑猜色策略研究 — 模擬模式                   ║")
    print("╚══════════════════════════════════════════════════════════╝")
    print()
    print(f"  模式: {'快速' if args.quick else '標準'}")
    print(f"  牌副數: {args.decks}")
    print(f"  模擬次數: {args.sims}")
    print(f"  每次局數: {args.rounds}")
    print(f"  總模擬局數: {args.sims * args.rounds:,}")
    print(f"  基本注碼: {args.unit}  起始餘額: {balance}")
    print(f"  隨機種子: {args.seed}")
    print(f"  輸出目錄: {args.output}")
    print()

    def progress_bar(current, total, prefix='進度', length=40):
        pct = current / total * 100
        filled = int(length * current // total)
        bar = '█' * filled + '░' * (length - filled)
        print(f'\r  {prefix}: |{bar}| {pct:.1f}% ({current}/{total})', end='', flush=True)
        if current == total:
            print()

    output_dir = ensure_output_dir(args.output)

    print("─" * 50)
    print("📊 步驟 1/4: 執行單次詳細模擬...")
    t0 = time.time()
    strategy_results = run_single_simulation(
        n_rounds=args.rounds, deck_count=args.decks, base_unit=args.unit,
        balance=balance, seed=args.seed)
    uniformity = shuffle_uniformity(trials=2000, deck_count=1, seed=args.seed)
    print(f"  ✅ 完成 ({time.time() - t0:.2f}s)")
    print(f"  洗牌卡方: χ²={uniformity['chi2']:.1f} (自由度 {uniformity['dof']})")
    print()

    print("─" * 50)
    print(f"📊 步驟 2/4: 執行 Monte Carlo 模擬 ({args.sims}×{args.rounds})...")
    t0 = time.time()
    all_results = run_monte_carlo(
        n_simulations=args.sims, n_rounds=args.rounds, deck_count=args.decks,
        base_unit=args.unit, balance=balance, seed_base=args.seed,
        progress_callback=progress_bar)
    print(f"  ✅ 完成 ({time.time() - t0:.2f}s)\n")

    df_summary = aggregate_results(all_results)
    print("  Monte Carlo 策略排名:")
    for idx, row in df_summary.iterrows():
        marker = "🏆" if idx == 0 else "  "
        print(f"  {marker} #{idx+1:>2} {row['策略']:<12} "
              f"準確率: {row['平均準確率%']:>6.2f}% ± {row['準確率標準差']:.2f}%  "
              f"ROI: {row['平均ROI%']:>+7.2f}%  "
              f"下注機率: {row['平均下注機率%']:.2f}%")
    print()

    print("─" * 50)
    print("📊 步驟 3/4: 生成分析圖表...")
    charts = [
        ("準確率與機率", plot_accuracy_vs_odds(df_summary, output_dir)),
        ("ROI 與爆倉", plot_roi_and_bust(df_summary, output_dir)),
        ("資金曲線", plot_balance_curves(strategy_results, output_dir)),
        ("機率變化", plot_odds_drift(strategy_results, output_dir)),
        ("準確率分佈", plot_accuracy_distribution(all_results, output_dir)),
    ]
    for name, path in charts:
        print(f"    📈 {name}: {path}")
    print()

    print("─" * 50)
    print("📊 步驟 4/4: 生成分析報告...")
    report = generate_report(
        strategy_results=strategy_results, df_summary=df_summary,
        n_simulations=args.sims, n_rounds=args.rounds, deck_count=args.decks,
        uniformity=uniformity, output_dir=output_dir)
    save_results_csv(df_summary, strategy_results, output_dir)
    print(f"  ✅ 報告已儲存: {os.path.join(output_dir, 'report.txt')}")
    print(f"  ✅ CSV 已儲存: {os.path.join(output_dir, 'summary.csv')}")
    print()
    print(report)


if __name__ == "__main__":
    main()
