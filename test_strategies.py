"""選色策略與注碼管理測試"""
import pytest

from card_engine import Color
from strategies import (
    RandomStrategy, FollowLastStrategy, OppositeLastStrategy,
    StreakFollowerStrategy, StreakBreakerStrategy, FrequencyStrategy,
    MarkovStrategy, CardCountStrategy,
    FlatBetting, MartingaleBetting, ParoliBetting, DAlembertBetting,
    get_all_strategies, get_all_betting_systems, get_strategy,
)

B, R = Color.BLACK, Color.RED


def test_every_strategy_returns_a_color():
    history = [B, R, R, B, B, B, R]
    for s in get_all_strategies(seed=1):
        assert s.predict([], None) in (B, R)
        assert s.predict(history, {'black': 3, 'red': 5}) in (B, R)


def test_random_is_seeded():
    a = RandomStrategy(seed=3)
    b = RandomStrategy(seed=3)
    assert [a.predict([]) for _ in range(20)] == [b.predict([]) for _ in range(20)]


def test_follow_and_opposite_last():
    assert FollowLastStrategy().predict([B, R]) is R
    assert OppositeLastStrategy().predict([B, R]) is B


def test_streak_strategies():
    assert StreakFollowerStrategy().predict([B, R, R]) is R
    assert StreakFollowerStrategy().predict([R, B]) is B
    assert StreakBreakerStrategy().predict([R, R, R]) is B
    assert StreakBreakerStrategy().predict([B, R, R]) is B
    assert StreakBreakerStrategy().predict([B, B, B, B]) is R


def test_frequency():
    assert FrequencyStrategy().predict([R, R, B]) is R
    assert FrequencyStrategy().predict([R, B]) is B


def test_markov():
    # R 之後總是接 B
    history = [R, B, R, B, R, B, R]
    assert MarkovStrategy().predict(history) is B
    # B 之後多半接 R
    assert MarkovStrategy().predict([B, R, B, R, B]) is R


def test_card_count_prefers_richer_color():
    s = CardCountStrategy()
    assert s.predict([], {'black': 10, 'red': 12}) is R
    assert s.predict([], {'black': 12, 'red': 10}) is B
    assert s.predict([], {'black': 5, 'red': 5}) is B


def test_get_strategy():
    assert isinstance(get_strategy("算牌"), CardCountStrategy)
    with pytest.raises(KeyError):
        get_strategy("不存在")


def test_strategy_names_unique():
    names = [s.name for s in get_all_strategies()]
    assert len(names) == len(set(names)) == 8


def test_martingale_doubles_until_cap():
    m = MartingaleBetting(1, max_bet=8)
    bets = []
    for _ in range(5):
        bets.append(m.next_bet())
        m.update(False)
    assert bets == [1, 2, 4, 8, 8]
    m.update(True)
    assert m.next_bet() == 1


def test_paroli_resets_after_three_wins():
    p = ParoliBetting(1)
    bets = []
    for _ in range(4):
        bets.append(p.next_bet())
        p.update(True)
    assert bets == [1, 2, 4, 1]
    p.update(False)
    assert p.next_bet() == 1


def test_dalembert_steps():
    d = DAlembertBetting(2)
    d.update(False)
    d.update(False)
    assert d.next_bet() == 6
    d.update(True)
    assert d.next_bet() == 4
    d.reset()
    assert d.next_bet() == 2


def test_flat_betting_constant():
    f = FlatBetting(5)
    f.update(False)
    f.update(True)
    assert f.next_bet() == 5
    assert len(get_all_betting_systems()) == 4
