"""Tests for console logging: markers, color switches and env flags."""

import pytest

from inxperiments.logging_utils import (
    LOG_TAG_ENGINE,
    LOG_TAG_ERROR,
    Color,
    colored,
    env_flag,
    log_debug,
    log_engine,
    log_error,
)


@pytest.fixture
def plain(monkeypatch):
    monkeypatch.setenv("INXPERIMENTS_NO_COLOR", "1")


@pytest.mark.parametrize("value", ["1", "true", "TRUE", "yes", " Yes "])
def test_env_flag_accepts_truthy_values(monkeypatch, value):
    monkeypatch.setenv("INXPERIMENTS_TEST_FLAG", value)
    assert env_flag("INXPERIMENTS_TEST_FLAG")


@pytest.mark.parametrize("value", ["0", "false", "no", "", "off"])
def test_env_flag_rejects_other_values(monkeypatch, value):
    monkeypatch.setenv("INXPERIMENTS_TEST_FLAG", value)
    assert not env_flag("INXPERIMENTS_TEST_FLAG")


def test_env_flag_unset_is_false(monkeypatch):
    monkeypatch.delenv("INXPERIMENTS_TEST_FLAG", raising=False)
    assert not env_flag("INXPERIMENTS_TEST_FLAG")


def test_colored_wraps_in_ansi_codes(monkeypatch):
    monkeypatch.delenv("INXPERIMENTS_NO_COLOR", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)

    text = colored("hello", Color.GREEN, bold=True)

    assert text == f"{Color.BOLD.value}{Color.GREEN.value}hello{Color.RESET.value}"


def test_no_color_disables_ansi_codes(monkeypatch):
    monkeypatch.delenv("INXPERIMENTS_NO_COLOR", raising=False)
    monkeypatch.setenv("NO_COLOR", "")

    assert colored("hello", Color.RED) == "hello"


def test_log_helpers_prefix_their_markers(plain, capsys):
    log_engine("Simulation reset")
    log_error("Director failed")

    lines = capsys.readouterr().out.splitlines()
    assert lines == [f"{LOG_TAG_ENGINE} Simulation reset", f"{LOG_TAG_ERROR} Director failed"]


def test_log_debug_is_silent_unless_flag_is_on(plain, monkeypatch, capsys):
    monkeypatch.setenv("DEBUG_DIRECTOR", "0")
    log_debug("DEBUG_DIRECTOR", "Request", "payload")
    assert capsys.readouterr().out == ""

    monkeypatch.setenv("DEBUG_DIRECTOR", "yes")
    log_debug("DEBUG_DIRECTOR", "Request", "payload")
    assert capsys.readouterr().out == "\n[DEBUG_DIRECTOR] Request\npayload\n"


def test_inxperiments_no_color_zero_keeps_colors(monkeypatch):
    monkeypatch.setenv("INXPERIMENTS_NO_COLOR", "0")
    monkeypatch.delenv("NO_COLOR", raising=False)

    assert colored("hello", Color.CYAN) != "hello"
