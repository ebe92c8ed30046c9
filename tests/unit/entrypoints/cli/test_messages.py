"""Unit tests for :mod:`agora.entrypoints.cli.helpers.messages`.

Glyphs fall back to ASCII when stderr cannot encode the emoji, and every
message is a styled line on stderr.
"""

import io
import sys

import click
import pytest

from agora.entrypoints.cli.helpers.messages import (
    _supports_character,
    caution_glyph,
    error,
    error_glyph,
    success,
    success_glyph,
    warn,
)

SET_YELLOW = "\x1b[33m"
SET_GREEN = "\x1b[32m"
SET_RED = "\x1b[31m"
SET_BOLD = "\x1b[1m"
RESET = "\x1b[0m"


class FakeTTY(io.StringIO):
    """A TTY-looking text stream with a chosen encoding."""

    def __init__(self, encoding: str):
        super().__init__()
        self._encoding = encoding

    @property
    def encoding(self) -> str:
        return self._encoding

    def isatty(self) -> bool:
        return True


@pytest.fixture
def fake_stderr(monkeypatch):
    """Route Click's stderr TTY check and ``sys.stderr`` to one FakeTTY."""

    def _install(encoding: str) -> FakeTTY:
        stream = FakeTTY(encoding)
        monkeypatch.setattr(click, "get_text_stream", lambda name: stream)
        monkeypatch.setattr(sys, "stderr", stream, raising=False)
        monkeypatch.delenv("NO_COLOR", raising=False)
        return stream

    return _install


@pytest.mark.parametrize(
    ("encoding", "glyphs"),
    [("ascii", ("[!]", "[OK]", "[X]")), ("utf-8", ("⚠️", "✅", "❌"))],
)
def test_glyphs_follow_stderr_encoding(fake_stderr, encoding, glyphs):
    fake_stderr(encoding)
    assert (caution_glyph(), success_glyph(), error_glyph()) == glyphs


def test_stream_is_checked_on_every_call(monkeypatch):
    encodings = iter(["ascii", "utf-8"])
    monkeypatch.setattr(click, "get_text_stream", lambda name: FakeTTY(next(encodings)))
    assert _supports_character("✅") is False
    assert _supports_character("✅") is True


@pytest.mark.parametrize(
    ("func", "color_code", "ascii_glyph"),
    [(warn, SET_YELLOW, "[!]"), (success, SET_GREEN, "[OK]"), (error, SET_RED, "[X]")],
)
def test_messages_are_styled(fake_stderr, func, color_code, ascii_glyph):
    stream = fake_stderr("ascii")
    func("database upgraded")
    out = stream.getvalue()
    assert f"{ascii_glyph}  database upgraded" in out
    assert color_code in out
    assert SET_BOLD in out
    assert out.rstrip("\n").endswith(RESET)


def test_messages_leave_stdout_alone(capsys):
    warn("careful")
    captured = capsys.readouterr()
    assert "careful" in captured.err
    assert captured.out == ""
