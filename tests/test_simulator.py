"""Tests for the console simulator loop."""

import builtins

import simulator


def _run(monkeypatch, lines):
    feed = iter(lines)
    monkeypatch.setattr(builtins, "input", lambda prompt="": next(feed))
    simulator.main()


def test_unbalanced_quotes_reported_not_fatal(monkeypatch, capsys):
    _run(monkeypatch, ['send +1555 login name="Alex', "templates", "quit"])

    out = capsys.readouterr().out
    assert "Error: No closing quotation" in out
    assert "login" in out
    assert "Goodbye!" in out


def test_send_then_list(monkeypatch, capsys):
    _run(monkeypatch, ["send +1555 login name=Alex", "verify +1555 x", "list", "quit"])

    out = capsys.readouterr().out
    assert "Welcome, *Alex*!" in out
    assert "Invalid or expired OTP" in out
    assert "  +1555  " in out
