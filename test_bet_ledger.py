"""注單帳本測試"""
import dataclasses

import pytest

from card_engine import Color
from bet_ledger import Bet, BetLedger, Outcome


def _bet(n, outcome=Outcome.WIN, amount=1, balance=10):
    result = Color.BLACK if outcome is Outcome.WIN else Color.RED
    return Bet(round_no=n, amount=amount, color=Color.BLACK, result_color=result,
               outcome=outcome, balance_after=balance, timestamp=1000.0 + n)


def test_newest_first():
    ledger = BetLedger()
    for n in range(1, 4):
        ledger.append(_bet(n))
    assert [b.round_no for b in ledger.snapshot()] == [3, 2, 1]
    assert len(ledger) == 3


def test_bounded_drops_oldest():
    ledger = BetLedger(max_entries=3)
    for n in range(1, 6):
        ledger.append(_bet(n))
    assert [b.round_no for b in ledger.snapshot()] == [5, 4, 3]


def test_invalid_limit():
    with pytest.raises(ValueError):
        BetLedger(max_entries=0)


def test_snapshot_is_immutable():
    ledger = BetLedger()
    ledger.append(_bet(1))
    snap = ledger.snapshot()
    assert isinstance(snap, tuple)
    with pytest.raises(dataclasses.FrozenInstanceError):
        snap[0].amount = 99
    ledger.append(_bet(2))
    assert len(snap) == 1


def test_last_results():
    ledger = BetLedger()
    ledger.append(_bet(1, Outcome.WIN))
    ledger.append(_bet(2, Outcome.LOSS))
    assert ledger.last_results(10) == [Color.RED, Color.BLACK]
    assert ledger.last_results(1) == [Color.RED]
    assert ledger.last_results(0) == []


def test_profit():
    assert _bet(1, Outcome.WIN, amount=3).profit == 3
    assert _bet(1, Outcome.LOSS, amount=3).profit == -3


def test_summary_streaks_in_time_order():
    ledger = BetLedger()
    outcomes = [Outcome.WIN, Outcome.WIN, Outcome.LOSS, Outcome.LOSS,
                Outcome.LOSS, Outcome.WIN]
    for n, o in enumerate(outcomes, 1):
        ledger.append(_bet(n, o, amount=2))
    s = ledger.summary()
    assert s['bets'] == 6
    assert s['wins'] == 3
    assert s['losses'] == 3
    assert s['wagered'] == 12
    assert s['net'] == 0
    assert s['max_win_streak'] == 2
    assert s['max_loss_streak'] == 3


def test_to_dataframe_chronological():
    ledger = BetLedger()
    ledger.append(_bet(1, Outcome.WIN))
    ledger.append(_bet(2, Outcome.LOSS))
    df = ledger.to_dataframe()
    assert list(df['round_no']) == [1, 2]
    assert list(df['outcome']) == ['win', 'loss']
    assert list(df['profit']) == [1, -1]
    assert df.loc[0, 'color'] == 'black'


def test_empty_dataframe_has_columns():
    df = BetLedger().to_dataframe()
    assert df.empty
    assert 'balance_after' in df.columns


def test_save_csv(tmp_path):
    ledger = BetLedger()
    ledger.append(_bet(1))
    path = ledger.save_csv(str(tmp_path / 'out' / 'bets.csv'))
    with open(path, encoding='utf-8-sig') as f:
        text = f.read()
    assert text.splitlines()[0].startswith('round_no,amount,color')
    assert len(text.splitlines()) == 2


def test_clear():
    ledger = BetLedger()
    ledger.append(_bet(1))
    ledger.clear()
    assert len(ledger) == 0
    assert ledger.summary()['bets'] == 0
