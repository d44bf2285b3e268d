"""Tests for the completion chime (countdownhour/platform/chime.py)."""

import pytest

from countdownhour.platform import chime as chime_mod
from countdownhour.platform.chime import Chime


@pytest.fixture
def rings(monkeypatch):
    calls = []
    monkeypatch.setattr(Chime, "_ring", lambda self: calls.append(1) or True)
    return calls


def test_disabled_chime_plays_nothing(rings):
    assert Chime(enabled=False).play_completion(is_break_ending=True) is False
    assert rings == []


def test_work_ending_rings_once(rings):
    c = Chime(double_gap_ms=1)
    assert c.play_completion(is_break_ending=False)
    assert c._pending is None
    assert rings == [1]


def test_break_ending_rings_twice(rings):
    c = Chime(double_gap_ms=10)
    c.play_completion(is_break_ending=True)
    c._pending.join(timeout=2.0)
    assert rings == [1, 1]


@pytest.mark.parametrize(
    "platform, program",
    [("win32", "powershell"), ("darwin", "afplay"), ("linux", "paplay")],
)
def test_command_per_platform(monkeypatch, platform, program):
    monkeypatch.setattr(chime_mod.sys, "platform", platform)
    assert Chime()._command()[0] == program


def test_missing_player_is_reported_not_raised(monkeypatch):
    def _boom(*args, **kwargs):
        raise FileNotFoundError("paplay")

    monkeypatch.setattr(chime_mod.subprocess, "Popen", _boom)
    assert Chime()._spawn(["paplay", "x.oga"]) is False


def test_spawn_launches_player(monkeypatch):
    launched = []
    monkeypatch.setattr(
        chime_mod.subprocess, "Popen", lambda cmd, **kw: launched.append(cmd)
    )
    assert Chime()._spawn(["afplay", "Glass.aiff"]) is True
    assert launched == [["afplay", "Glass.aiff"]]
