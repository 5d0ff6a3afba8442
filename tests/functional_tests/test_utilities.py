"""
Functional Test for the Print logger's DEBUG gating.
"""

import pytest

from utilities import Print, set_debug


@pytest.fixture(autouse=True)
def restore_debug():
    yield
    set_debug(False)


def test_debug_lines_hidden_by_default(capsys):
    set_debug(False)
    Print("DEBUG", "page 2 started")
    Print("INFO", "visible line")

    out = capsys.readouterr().out
    assert "page 2 started" not in out
    assert "visible line" in out


def test_set_debug_shows_debug_lines(capsys):
    set_debug(True)
    Print("DEBUG", "color [10, 10, 10]")

    assert "color [10, 10, 10]" in capsys.readouterr().out
