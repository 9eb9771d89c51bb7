"""Tests for the dashboard CLI."""

import logging

import pytest

import run_dashboard


@pytest.fixture(autouse=True)
def demo_pool(monkeypatch):
    """Run every command against the paper demo pool."""
    monkeypatch.delenv(run_dashboard.CONFIG_ENV_VAR, raising=False)
    yield
    logging.getLogger().handlers.clear()


def test_parse_args_requires_command():
    with pytest.raises(SystemExit):
        run_dashboard.parse_args([])


def test_quote(capsys):
    assert run_dashboard.main(["quote", "--amount", "100"]) == 0
    out = capsys.readouterr().out
    assert "97" in out
    assert "96 (100 bps)" in out
    assert "Excellent" in out


def test_quote_invalid_slippage(capsys):
    assert run_dashboard.main(["quote", "--amount", "100", "--slippage", "0"]) == 1
    assert "invalid_slippage" in capsys.readouterr().err


def test_reserves(capsys):
    assert run_dashboard.main(["reserves"]) == 0
    out = capsys.readouterr().out
    assert "101131" in out
    assert "99493" in out


def test_impact(capsys):
    assert run_dashboard.main(["impact", "--steps", "3"]) == 0
    out = capsys.readouterr().out
    assert "Trade size" in out
    assert out.count("%") == 3


def test_il_single(capsys):
    assert run_dashboard.main(["il", "--change", "50"]) == 0
    assert "-2.0204%" in capsys.readouterr().out


def test_il_curve(capsys):
    assert run_dashboard.main(["il"]) == 0
    out = capsys.readouterr().out
    assert "-50%" in out
    assert "+200%" in out


def test_il_bad_step(capsys):
    assert run_dashboard.main(["il", "--step", "0"]) == 1


def test_lp_empty_wallet(capsys):
    assert run_dashboard.main(["lp", "0x" + "ab" * 20]) == 0
    assert "LP balance" in capsys.readouterr().out


def test_swap_paper(capsys):
    assert run_dashboard.main(["swap", "--amount", "100"]) == 0
    out = capsys.readouterr().out
    assert "confirmed" in out
    assert "Swap confirmed" in out


def test_swap_dust_fails(capsys):
    assert run_dashboard.main(["swap", "--amount", "1"]) == 1
    assert "zero output" in capsys.readouterr().err


def test_missing_config(capsys):
    assert run_dashboard.main(["--config", "/nonexistent.yaml", "reserves"]) == 1
    assert "Config error" in capsys.readouterr().err
