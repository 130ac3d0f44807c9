"""Tests for the CLI output system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline and quiet rules
- score, report and table rendering in JSON and plain modes
- global instance management
"""

from __future__ import annotations

import json

import pytest

from linkshield.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


@pytest.fixture(autouse=True)
def _reset_global_output():
    reset_output()
    yield
    reset_output()


@pytest.fixture()
def non_tty(monkeypatch):
    monkeypatch.setattr("linkshield.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    monkeypatch.setattr("linkshield.output._is_tty", lambda: True)


class TestOutputFormatResolution:
    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        assert OutputManager(format=OutputFormat.AUTO).format == OutputFormat.RICH

    def test_auto_plain_when_tty_but_no_color(self, tty):
        assert OutputManager(format=OutputFormat.AUTO, no_color=True).format == OutputFormat.PLAIN


class TestColorDisabling:
    def test_no_color_env(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_default_enabled(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


class TestScores:
    def test_plain_score_is_bare_number(self, capsys):
        OutputManager(format=OutputFormat.PLAIN).print_score("https://a.example", 0.5, "nothing detected")
        assert capsys.readouterr().out == "0.5\n"

    def test_plain_integer_score(self, capsys):
        OutputManager(format=OutputFormat.PLAIN).print_score("https://a.example", 0.0, "safe")
        assert capsys.readouterr().out == "0\n"

    def test_json_score(self, capsys):
        OutputManager(format=OutputFormat.JSON).print_score("https://a.example", 1, "malicious")
        assert json.loads(capsys.readouterr().out) == {
            "target": "https://a.example",
            "score": 1,
            "verdict": "malicious",
        }


class TestReports:
    def test_json_report(self, capsys):
        OutputManager(format=OutputFormat.JSON).format_response({"result": "Safe", "tag": "ok"})
        assert json.loads(capsys.readouterr().out) == {"result": "Safe", "tag": "ok"}

    def test_plain_report(self, capsys):
        OutputManager(format=OutputFormat.PLAIN).format_response({"result": "Safe"})
        assert capsys.readouterr().out == "result\tSafe\n"

    def test_plain_table(self, capsys):
        OutputManager(format=OutputFormat.PLAIN).print_table(
            ["similar_to", "similarity_percent"], [["ex.com", "0.8"]]
        )
        assert capsys.readouterr().out == "similar_to\tsimilarity_percent\nex.com\t0.8\n"

    def test_json_table(self, capsys):
        OutputManager(format=OutputFormat.JSON).print_table(["a"], [["1"], ["2"]])
        assert json.loads(capsys.readouterr().out) == [{"a": "1"}, {"a": "2"}]


class TestDiagnostics:
    def test_info_goes_to_stderr(self, capsys):
        OutputManager(format=OutputFormat.PLAIN, no_color=True).info("hello")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "hello" in captured.err

    def test_quiet_suppresses_info_not_errors(self, capsys):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.info("hidden")
        mgr.success("hidden too")
        mgr.error("broken")
        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "Error: broken" in err


class TestGlobalInstance:
    def test_lazy_default(self):
        assert isinstance(get_output(), OutputManager)

    def test_set_and_reset(self):
        mgr = OutputManager(format=OutputFormat.JSON)
        set_output(mgr)
        assert get_output() is mgr
        reset_output()
        assert get_output() is not mgr
