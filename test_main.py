"""命令列入口測試"""
import os

from main import build_parser, main


def test_parser_defaults():
    args = build_parser().parse_args([])
    assert args.port == 8888
    assert args.decks == 1
    assert args.balance is None
    assert not args.sim


def test_quick_simulation_writes_outputs(tmp_path, capsys):
    out = str(tmp_path / 'output')
    main(['--sim', '--quick', '--decks', '2', '--output', out])
    assert os.path.exists(os.path.join(out, 'report.txt'))
    assert os.path.exists(os.path.join(out, 'summary.csv'))
    assert '研究結論' in capsys.readouterr().out


def test_explicit_zero_balance_is_passed_through(monkeypatch):
    import web_app
    import play
    calls = []
    monkeypatch.setattr(web_app, 'start_server', lambda *a: calls.append(('web', a)))
    monkeypatch.setattr(play, 'interactive_mode', lambda *a: calls.append(('play', a)))

    main(['--balance', '0'])
    main(['--play', '--balance', '0', '--decks', '2'])
    main([])
    assert calls == [
        ('web', (8888, 0.0, 1)),
        ('play', (0.0, 2)),
        ('web', (8888, 10, 1)),
    ]
