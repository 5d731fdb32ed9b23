"""
Tests for the command-line entry point.
"""

from __future__ import annotations

import logging

import pytest

import main


@pytest.fixture
def calls(monkeypatch):
    seen = {}
    monkeypatch.setattr("cli.run_cli", lambda **kw: seen.update(cli=kw))
    monkeypatch.setattr("app.run_web", lambda **kw: seen.update(web=kw))
    return seen


class TestMain:

    def test_cli_mode(self, calls, tmp_path):
        report = str(tmp_path / "r.pdf")
        main.main(["--cli", "--tax-year", "2025-26", "--report", report])
        assert calls["cli"] == {"tax_year": "2025-26", "report_path": report}

    def test_cli_year_from_environment(self, calls, monkeypatch):
        monkeypatch.setenv("PAYE_TAX_YEAR", "2025-26")
        main.main(["--cli"])
        assert calls["cli"]["tax_year"] == "2025-26"

    def test_cli_prompts_when_no_year_chosen(self, calls, monkeypatch):
        monkeypatch.delenv("PAYE_TAX_YEAR", raising=False)
        main.main(["--cli"])
        assert calls["cli"]["tax_year"] is None

    def test_web_mode(self, calls, monkeypatch):
        monkeypatch.setenv("PAYE_TAX_YEAR", "2025-26")
        main.main(["--no-debug"])
        assert calls["web"]["debug"] is False
        assert calls["web"]["settings"].tax_year == "2025-26"

    def test_log_level(self, calls):
        main.main(["--cli", "--log-level", "debug"])
        assert logging.getLogger().level == logging.DEBUG

    def test_unknown_tax_year(self, calls):
        with pytest.raises(SystemExit):
            main.main(["--cli", "--tax-year", "1999-00"])
