"""Web API 測試（直接呼叫處理函式，不開埠）"""
import pytest

import web_app
from web_app import SESSION, init_session, handle_get, handle_post


@pytest.fixture(autouse=True)
def session():
    init_session(balance=10, deck_count=1, interval=0, reveal_delay=0)
    yield
    autobet = SESSION['autobet']
    autobet.stop()
    autobet.join(timeout=5)


def test_initial_state():
    code, state = handle_get('/api/state')
    assert code == 200
    assert state['state'] == 'idle'
    assert state['deck_count'] == 1
    assert state['remaining'] == {'black': 26, 'red': 26, 'total': 52}
    assert state['odds'] == {'black': 50.0, 'red': 50.0}
    assert state['player']['balance'] == 10
    assert state['player']['win_rate'] == 0
    assert state['house']['balance'] == 1_000_000
    assert state['history'] == []
    assert state['autobet']['state'] == 'stopped'


def test_bet_flow():
    assert handle_post('/api/select', {'color': 'black'}) == (200, {'ok': True})
    assert handle_post('/api/stake', {'amount': 2})[0] == 200
    code, body = handle_post('/api/bet', {})
    assert code == 200
    result = body['result']
    assert result['staked_amount'] == 2
    assert result['new_balance'] in (8, 12)

    _, state = handle_get('/api/state')
    assert len(state['history']) == 1
    assert state['remaining']['total'] == 51
    assert state['player']['total_bets'] == 1
    assert state['house']['selected_color'] == 'red'


def test_bet_with_multiplier():
    handle_post('/api/select', {'color': 'red'})
    handle_post('/api/stake', {'amount': 1})
    code, body = handle_post('/api/bet', {'multiplier': 3})
    assert code == 200
    assert body['result']['staked_amount'] == 3


@pytest.mark.parametrize("path,data", [
    ('/api/select', {'color': 'green'}),
    ('/api/stake', {'amount': 'abc'}),
    ('/api/stake', {}),
    ('/api/deck', {'decks': 5}),
    ('/api/autobet/start', {'stake': 1, 'rounds': 0}),
])
def test_bad_requests(path, data):
    code, body = handle_post(path, data)
    assert code == 400
    assert body['ok'] is False


def test_bet_without_color_or_funds():
    handle_post('/api/stake', {'amount': 1})
    assert handle_post('/api/bet', {})[0] == 400

    handle_post('/api/select', {'color': 'black'})
    handle_post('/api/stake', {'amount': 50})
    code, body = handle_post('/api/bet', {})
    assert code == 400
    _, state = handle_get('/api/state')
    assert state['player']['balance'] == 10
    assert state['history'] == []


def test_change_decks():
    assert handle_post('/api/deck', {'decks': 'triple'})[0] == 200
    _, state = handle_get('/api/state')
    assert state['deck_count'] == 3
    assert state['remaining']['total'] == 156


def test_autobet_runs_to_completion():
    handle_post('/api/select', {'color': 'black'})
    code, _ = handle_post('/api/autobet/start', {'stake': 1, 'rounds': 3})
    assert code == 200
    results = SESSION['autobet'].join(timeout=5)
    assert len(results) == 3
    _, state = handle_get('/api/state')
    assert state['player']['total_bets'] == 3
    assert state['autobet']['rounds_remaining'] == 0


def test_bet_rejected_while_autobet_running():
    init_session(balance=100, interval=30, reveal_delay=0)
    handle_post('/api/select', {'color': 'red'})
    handle_post('/api/autobet/start', {'stake': 1, 'rounds': 5})
    code, _ = handle_post('/api/bet', {})
    assert code == 409
    assert handle_post('/api/autobet/stop', {})[0] == 200
    SESSION['autobet'].join(timeout=5)
    _, state = handle_get('/api/state')
    assert state['autobet']['state'] == 'stopped'


def test_reset():
    handle_post('/api/select', {'color': 'black'})
    handle_post('/api/stake', {'amount': 1})
    handle_post('/api/bet', {})
    assert handle_post('/api/reset', {'balance': 25})[0] == 200
    _, state = handle_get('/api/state')
    assert state['player']['balance'] == 25
    assert state['history'] == []


def test_unknown_paths():
    assert handle_get('/api/nope')[0] == 404
    assert handle_post('/api/nope', {})[0] == 404


def test_html_page_served():
    assert '/api/state' in web_app.HTML_PAGE


def test_autobet_restart_after_stop():
    init_session(balance=100, interval=30, reveal_delay=30)
    handle_post('/api/select', {'color': 'black'})
    assert handle_post('/api/autobet/start', {'stake': 1, 'rounds': 5})[0] == 200
    assert handle_post('/api/autobet/stop', {})[0] == 200
    assert handle_post('/api/autobet/start', {'stake': 1, 'rounds': 4})[0] == 200

    _, state = handle_get('/api/state')
    assert state['autobet']['state'] == 'running'
    assert state['autobet']['rounds_remaining'] == 4
    assert handle_post('/api/bet', {})[0] == 409
    assert handle_post('/api/autobet/start', {'stake': 1, 'rounds': 2})[0] == 400
