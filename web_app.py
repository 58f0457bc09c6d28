"""
紅黑猜牌 Web 介面 — web_app.py
===============================
JSON API + 單頁介面：選色、下注、換牌靴、自動下注、即時機率
"""

import os
import sys
import json
import http.server
import socketserver
from typing import Dict, Optional, Tuple

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from card_engine import Color, GameError
from round_engine import RoundEngine, DEFAULT_BALANCE, DEFAULT_DECKS, LAST_RESULTS_WINDOW
from autobet import AutoBetController, AUTO_BET_INTERVAL, REVEAL_DELAY

HISTORY_DISPLAY = 20     # 介面顯示最近幾筆注單

# ─── 全域 session ────────────────────────────────────────────
SESSION: Dict = {
    'engine': None,
    'autobet': None,
}


def init_session(balance: float = DEFAULT_BALANCE, deck_count=DEFAULT_DECKS,
                 interval: float = AUTO_BET_INTERVAL, reveal_delay: float = REVEAL_DELAY):
    autobet = SESSION.get('autobet')
    if autobet is not None and autobet.running:
        autobet.stop()
        autobet.join()
    engine = RoundEngine(balance=balance, deck_count=deck_count)
    SESSION['engine'] = engine
    SESSION['autobet'] = AutoBetController(engine, interval=interval,
                                           reveal_delay=reveal_delay)


def get_state() -> Dict:
    engine: RoundEngine = SESSION['engine']
    autobet: AutoBetController = SESSION['autobet']

    error = autobet.last_error
    history = engine.ledger_snapshot()[:HISTORY_DISPLAY]
    return {
        'state': engine.state.value,
        'deck_count': engine.shoe.deck_count,
        'remaining': engine.remaining_counts(),
        'odds': {c.value: engine.current_odds(c) for c in Color},
        'edge': engine.odds.edge_indicator(),
        'player': engine.player_stats().to_dict(),
        'house': engine.house_stats().to_dict(),
        'stake': engine.pending_stake,
        'last_results': [c.value for c in engine.last_results(LAST_RESULTS_WINDOW)],
        'history': [b.to_dict() for b in history],
        'summary': engine.ledger.summary(),
        'autobet': {
            'state': autobet.state.value,
            'rounds_remaining': autobet.rounds_remaining,
            'error': str(error) if error else None,
        },
    }


def handle_get(path: str) -> Tuple[int, Dict]:
    if path == '/api/state':
        return 200, get_state()
    return 404, {'ok': False, 'error': 'not found'}


def handle_post(path: str, data: Dict) -> Tuple[int, Dict]:
    """處理 POST，回傳 (HTTP 狀態碼, JSON)；可恢復的錯誤 → 400"""
    engine: RoundEngine = SESSION['engine']
    autobet: AutoBetController = SESSION['autobet']

    try:
        if path == '/api/select':
            engine.select_color(data.get('color'))
            return 200, {'ok': True}

        elif path == '/api/stake':
            engine.set_stake(_number(data.get('amount')))
            return 200, {'ok': True}

        elif path == '/api/bet':
            if autobet.running:
                return 409, {'ok': False, 'error': '自動下注進行中'}
            result = engine.confirm_bet(_number(data.get('multiplier', 1)))
            return 200, {'ok': True, 'result': result.to_dict()}

        elif path == '/api/deck':
            engine.set_deck_count(data.get('decks'))
            return 200, {'ok': True}

        elif path == '/api/autobet/start':
            stake = data.get('stake')
            stake = engine.pending_stake if stake is None else _number(stake)
            rounds = data.get('rounds')
            if not isinstance(rounds, int):
                rounds = int(_number(rounds))
            autobet.start(stake, rounds)
            return 200, {'ok': True}

        elif path == '/api/autobet/stop':
            autobet.stop()
            return 200, {'ok': True}

        elif path == '/api/reset':
            balance = data.get('balance')
            init_session(engine.starting_balance if balance is None else _number(balance),
                         engine.shoe.deck_count, autobet.interval, autobet.reveal_delay)
            return 200, {'ok': True}

    except (GameError, ValueError, TypeError) as e:
        return 400, {'ok': False, 'error': str(e)}

    return 404, {'ok': False, 'error': 'not found'}


def _number(value) -> float:
    if isinstance(value, bool) or value is None:
        raise ValueError(f"需要數字: {value!r}")
    number = float(value)
    return int(number) if number.is_integer() else number


HTML_PAGE = r'''<!DOCTYPE html>
<html lang="zh-Hant">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>紅黑猜牌</title>
<style>
body { background:#111; color:#eee; font-family: system-ui, sans-serif; max-width: 720px; margin: 0 auto; padding: 16px; }
.row { display:flex; gap:8px; margin: 8px 0; align-items:center; flex-wrap: wrap; }
button { padding: 8px 14px; border-radius: 8px; border: 0; cursor: pointer; font-size: 15px; }
.black { background:#222; color:#fff; border:1px solid #555; }
.red { background:#c0392b; color:#fff; }
.sel { outline: 3px solid #f1c40f; }
.box { background:#1c1c1c; border-radius: 10px; padding: 10px 14px; margin: 10px 0; }
.dot { width:14px; height:14px; border-radius:50%; display:inline-block; margin-right:4px; }
#toast { position: fixed; bottom: 20px; left: 50%; transform: translateX(-50%); padding: 10px 18px; border-radius: 10px; display:none; }
table { width:100%; border-collapse: collapse; font-size: 13px; }
td, th { padding: 3px 6px; border-bottom: 1px solid #333; text-align: right; }
</style>
</head>
<body>
<h2>紅黑猜牌</h2>
<div class="box">
  <div class="row">牌靴:
    <button onclick="post('/api/deck',{decks:1})">單副</button>
    <button onclick="post('/api/deck',{decks:2})">雙副</button>
    <button onclick="post('/api/deck',{decks:3})">三副</button>
    <span id="shoe"></span>
  </div>
  <div class="row">
    <button id="bBlack" class="black" onclick="post('/api/select',{color:'black'})">黑 <span id="oBlack"></span>%</button>
    <button id="bRed" class="red" onclick="post('/api/select',{color:'red'})">紅 <span id="oRed"></span>%</button>
  </div>
  <div class="row">注碼: <input id="stake" type="number" min="0" step="any" style="width:90px">
    <button onclick="bet(1)">下注</button>
    <button onclick="bet(0.5)">½×</button>
    <button onclick="bet(2)">2×</button>
  </div>
  <div class="row">自動: <input id="rounds" type="number" min="1" value="5" style="width:60px"> 局
    <button onclick="autoStart()">開始</button>
    <button onclick="post('/api/autobet/stop',{})">停止</button>
    <span id="auto"></span>
  </div>
</div>
<div class="box" id="stats"></div>
<div class="box"><div id="last" class="row"></div></div>
<div class="box"><table id="hist"></table></div>
<div class="row"><button onclick="if(confirm('重置場次？')) post('/api/reset',{})">重置</button></div>
<div id="toast"></div>
<script>
const $ = id => document.getElementById(id);
let LAST_ROUND = 0;

function toast(msg, win) {
  const t = $('toast');
  t.textContent = msg;
  t.style.background = win ? '#27ae60' : '#7f1d1d';
  t.style.display = 'block';
  setTimeout(() => t.style.display = 'none', 3000);
}

async function post(path, body) {
  const r = await fetch(path, {method:'POST', headers:{'Content-Type':'application/json'}, body: JSON.stringify(body)});
  const d = await r.json();
  if (!d.ok) toast(d.error || '錯誤', false);
  await refresh();
  return d;
}

async function bet(mult) {
  const amt = parseFloat($('stake').value || '0');
  await fetch('/api/stake', {method:'POST', headers:{'Content-Type':'application/json'}, body: JSON.stringify({amount: amt})});
  await post('/api/bet', {multiplier: mult});
}

async function autoStart() {
  const amt = parseFloat($('stake').value || '0');
  await post('/api/autobet/start', {stake: amt, rounds: parseInt($('rounds').value || '0')});
}

async function refresh() {
  const s = await (await fetch('/api/state')).json();
  $('oBlack').textContent = s.odds.black;
  $('oRed').textContent = s.odds.red;
  $('bBlack').classList.toggle('sel', s.player.selected_color === 'black');
  $('bRed').classList.toggle('sel', s.player.selected_color === 'red');
  $('shoe').textContent = `${s.deck_count} 副｜黑 ${s.remaining.black} 紅 ${s.remaining.red}`;
  const p = s.player, h = s.house;
  $('stats').innerHTML =
    `玩家 餘額 <b>${p.balance}</b>｜勝 ${p.wins}/${p.total_bets}（${p.win_rate}%）｜連勝 ${p.streak}｜${p.team || '-'}<br>` +
    `莊家 餘額 ${h.balance}｜勝 ${h.wins}/${h.total_bets}（${h.win_rate}%）｜${h.team || '-'}`;
  $('last').innerHTML = '最近: ' + s.last_results.map(c => `<span class="dot" style="background:${c === 'red' ? '#c0392b' : '#444'}"></span>`).join('');
  $('auto').textContent = s.autobet.state === 'running' ? `剩 ${s.autobet.rounds_remaining} 局` : (s.autobet.error || '');
  $('hist').innerHTML = '<tr><th>局</th><th>注碼</th><th>開出</th><th>結果</th><th>餘額</th></tr>' +
    s.history.map(b => `<tr><td>${b.round_no}</td><td>${b.amount}</td><td>${b.result_color === 'red' ? '紅' : '黑'}</td><td>${b.outcome === 'win' ? '贏' : '輸'}</td><td>${b.balance_after}</td></tr>`).join('');
  if (s.history.length && s.history[0].round_no !== LAST_ROUND) {
    if (LAST_ROUND) toast(s.history[0].outcome === 'win' ? `贏了 +${s.history[0].amount}` : `輸了 -${s.history[0].amount}`, s.history[0].outcome === 'win');
    LAST_ROUND = s.history[0].round_no;
  }
}

refresh();
setInterval(refresh, 1000);
</script>
</body>
</html>'''


# ─── HTTP Handler ─────────────────────────────────────────────

class GameHandler(http.server.BaseHTTPRequestHandler):
    def log_message(self, format, *args):
        print(f"  [HTTP] {args[0] if args else ''}", flush=True)

    def do_GET(self):
        if self.path == '/' or self.path == '/index.html':
            self.send_response(200)
            self.send_header('Content-Type', 'text/html; charset=utf-8')
            self.end_headers()
            self.wfile.write(HTML_PAGE.encode('utf-8'))
            return
        code, payload = handle_get(self.path)
        self._json_response(payload, code)

    def do_POST(self):
        content_length = int(self.headers.get('Content-Length', 0))
        body = self.rfile.read(content_length).decode('utf-8') if content_length else '{}'

        try:
            data = json.loads(body) if body else {}
        except json.JSONDecodeError:
            self._json_response({'ok': False, 'error': 'invalid json'}, 400)
            return
        if not isinstance(data, dict):
            self._json_response({'ok': False, 'error': 'invalid json'}, 400)
            return

        code, payload = handle_post(self.path, data)
        self._json_response(payload, code)

    def do_OPTIONS(self):
        self.send_response(200)
        self.send_header('Access-Control-Allow-Origin', '*')
        self.send_header('Access-Control-Allow-Methods', 'GET, POST, OPTIONS')
        self.send_header('Access-Control-Allow-Headers', 'Content-Type')
        self.end_headers()

    def _json_response(self, data, code=200):
        self.send_response(code)
        self.send_header('Content-Type', 'application/json; charset=utf-8')
        self.send_header('Access-Control-Allow-Origin', '*')
        self.end_headers()
        self.wfile.write(json.dumps(data, ensure_ascii=False).encode('utf-8'))


def start_server(port: Optional[int] = None, balance: float = DEFAULT_BALANCE,
                 deck_count=DEFAULT_DECKS):
    port = port or 8888
    init_session(balance, deck_count)

    print()
    print("  ╔══════════════════════════════════════════════════════╗")
    print("  ║              紅黑猜牌 — Web 介面                     ║")
    print("  ╠══════════════════════════════════════════════════════╣")
    print(f"  ║  🌐  http://localhost:{port:<5}                          ║")
    print("  ║  🃏  1~3 副牌，即時剩餘牌組機率                      ║")
    print("  ║  🔁  自動下注可隨時停止                              ║")
    print("  ║  按 Ctrl+C 停止伺服器                                ║")
    print("  ╚══════════════════════════════════════════════════════╝")
    print()

    class ThreadedServer(socketserver.ThreadingMixIn, socketserver.TCPServer):
        allow_reuse_address = True
        daemon_threads = True

    with ThreadedServer(("", port), GameHandler) as httpd:
        try:
            httpd.serve_forever()
        except KeyboardInterrupt:
            autobet = SESSION.get('autobet')
            if autobet is not None:
                autobet.stop()
            print("\n  🛑 伺服器已停止")


if __name__ == "__main__":
    port = int(sys.argv[1]) if len(sys.argv) > 1 else 8888
    start_server(port)
