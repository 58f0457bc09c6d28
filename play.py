"""
紅黑猜牌終端機版 — play.py
===========================
單鍵快速操作：
  b / r        選黑 / 選紅
  數字         設定注碼並下注一局（例如 2）
  x2 / x0.5    以目前注碼的倍數下注
  a 5          以目前注碼自動下注 5 局（Ctrl+C 停止）
  d 2          換成 2 副牌
  h            策略建議（算牌）
  s            匯出本場注單 CSV 與資金曲線到 output/
  q            結束
"""

import os
import sys
import time
from typing import Optional

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from card_engine import Color, COLOR_LABELS, Card, GameError
from round_engine import RoundEngine, RoundResult, DEFAULT_BALANCE, DEFAULT_DECKS
from autobet import AutoBetController, AUTO_BET_INTERVAL, REVEAL_DELAY
from strategies import get_strategy


def clear_screen():
    os.system('cls' if os.name == 'nt' else 'clear')


def _dot(color: Color) -> str:
    return '🔴' if color is Color.RED else '⚫'


def print_dashboard(engine: RoundEngine, message: Optional[str] = None):
    player = engine.player_stats()
    house = engine.house_stats()
    counts = engine.remaining_counts()

    print()
    print("╔══════════════════════════════════════════════════════════╗")
    print("║                    紅黑猜牌 — 終端機版                   ║")
    print("╚══════════════════════════════════════════════════════════╝")
    print(f"\n  🃏 {engine.shoe.deck_count} 副牌  "
          f"| 黑 {counts['black']} ({engine.current_odds(Color.BLACK):.1f}%)  "
          f"| 紅 {counts['red']} ({engine.current_odds(Color.RED):.1f}%)")

    pick = COLOR_LABELS[player.selected_color] if player.selected_color else '未選'
    print(f"\n  👤 玩家  餘額 {player.balance:,.2f}  注碼 {engine.pending_stake}  押 {pick}")
    print(f"     勝 {player.wins}/{player.total_bets} ({player.win_rate}%)  連勝 {player.streak}")
    print(f"  🏦 莊家  餘額 {house.balance:,.2f}  勝 {house.wins}/{house.total_bets} "
          f"({house.win_rate}%)")

    last = engine.last_results(10)
    if last:
        print(f"\n  最近: {' '.join(_dot(c) for c in last)}")

    history = engine.ledger_snapshot()[:5]
    if history:
        print(f"\n  {'局':>4} {'注碼':>6} {'開出':>4} {'結果':>4} {'餘額':>10}")
        print(f"  {'─' * 34}")
        for b in history:
            outcome = '贏' if b.profit > 0 else '輸'
            print(f"  {b.round_no:>4} {b.amount:>6} {COLOR_LABELS[b.result_color]:>4} "
                  f"{outcome:>4} {b.balance_after:>10,.2f}")

    if message:
        print(f"\n  {message}")
    print(f"\n  {'─' * 56}")


def format_result(result: RoundResult) -> str:
    if result.winner == 'player':
        return f"🎉 開出 {result.card!r} — 贏 +{result.staked_amount}"
    return f"😤 開出 {result.card!r} — 輸 -{result.staked_amount}"


def _reveal(card: Card):
    print("  翻牌中 ...", flush=True)
    time.sleep(REVEAL_DELAY)


def run_autobet(engine: RoundEngine, rounds: int) -> str:
    controller = AutoBetController(engine, interval=AUTO_BET_INTERVAL, reveal_delay=REVEAL_DELAY)

    def on_event(event, payload):
        if event == 'round':
            print(f"  [{payload.round_no}] {format_result(payload)}  餘額 {payload.new_balance}",
                  flush=True)

    unsubscribe = engine.subscribe(on_event)
    try:
        controller.start(engine.pending_stake, rounds)
        print(f"  🔁 自動下注 {rounds} 局（Ctrl+C 停止）", flush=True)
        try:
            results = controller.join()
        except KeyboardInterrupt:
            controller.stop()
            results = controller.join()
        return f"🔁 自動下注結束，共 {len(results)} 局"
    except GameError as e:
        return f"⛔ 自動下注中止: {e}"
    finally:
        unsubscribe()


def export_session(engine: RoundEngine, output_dir: str = "output") -> str:
    from analyzer import ensure_output_dir, plot_session_balance
    ensure_output_dir(output_dir)
    csv_path = engine.ledger.save_csv(os.path.join(output_dir, "session_bets.csv"))
    chart_path = plot_session_balance(engine.ledger, output_dir)
    return f"💾 已匯出 {csv_path}、{chart_path}"


def handle_command(engine: RoundEngine, line: str) -> Optional[str]:
    """處理一行指令，回傳要顯示的訊息"""
    parts = line.strip().lower().split()
    if not parts:
        return None
    cmd = parts[0]

    if cmd in ('b', 'r', 'black', 'red', '黑', '紅'):
        engine.select_color(cmd)
        return f"已選 {COLOR_LABELS[engine.player.selected_color]}"

    if cmd == 'd' and len(parts) > 1:
        engine.set_deck_count(parts[1])
        return f"已換成 {engine.shoe.deck_count} 副牌"

    if cmd == 'h':
        counts = engine.remaining_counts()
        pick = get_strategy("算牌").predict([], counts)
        return (f"💡 剩餘較多: {COLOR_LABELS[pick]} ({engine.current_odds(pick):.1f}%)\n\n"
                f"{engine.odds.status_display()}")

    if cmd == 's':
        return export_session(engine)

    if cmd == 'a' and len(parts) > 1:
        return run_autobet(engine, int(parts[1]))

    if cmd.startswith('x'):
        stake = engine.pending_stake * float(cmd[1:])
    else:
        stake = float(cmd)
        engine.set_stake(int(stake) if stake.is_integer() else stake)
        stake = engine.pending_stake
    result = engine.play_round(stake, engine.player.selected_color, reveal=_reveal)
    return format_result(result)


def interactive_mode(balance: float = DEFAULT_BALANCE, deck_count=DEFAULT_DECKS):
    """互動模式主迴圈"""
    engine = RoundEngine(balance=balance, deck_count=deck_count)
    clear_screen()
    print(__doc__)
    print_dashboard(engine)

    while True:
        try:
            line = input("\n  ▶ 輸入: ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if line.lower() in ('q', 'quit', 'exit'):
            break

        try:
            message = handle_command(engine, line)
        except GameError as e:
            message = f"⛔ {e}"
        except ValueError:
            message = f"⛔ 看不懂的指令: {line}"

        clear_screen()
        print_dashboard(engine, message)

    summary = engine.ledger.summary()
    print(f"\n  本場共 {summary['bets']} 局，贏 {summary['wins']} 輸 {summary['losses']}，"
          f"淨損益 {summary['net']:+,.2f}")


if __name__ == "__main__":
    interactive_mode()
