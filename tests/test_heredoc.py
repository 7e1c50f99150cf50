import os
import tempfile
from pathlib import Path

import pytest

from minishell.heredoc import HeredocInterrupted, read_heredoc


@pytest.fixture(autouse=True)
def _private_tempdir(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))


def _reader(lines):
    it = iter(lines)
    return lambda: next(it, None)


def test_writes_body_until_delimiter(tmp_path):
    path = read_heredoc("EOF", _reader(["hello", "world", "EOF", "ignored"]), {}, 0)
    assert Path(path).parent == tmp_path
    assert Path(path).read_text(encoding="utf-8") == "hello\nworld\n"


def test_expands_variables():
    env = {"USER": "alice"}
    path = read_heredoc("EOF", _reader(["hi $USER", "EOF"]), env, 0)
    assert Path(path).read_text(encoding="utf-8") == "hi alice\n"


def test_literal_keeps_variables():
    env = {"USER": "alice"}
    path = read_heredoc("EOF", _reader(["hi $USER", "EOF"]), env, 0, True, True)
    assert Path(path).read_text(encoding="utf-8") == "hi $USER\n"


def test_trailing_newline_stripped_from_input():
    path = read_heredoc("EOF", _reader(["line\n", "EOF\n"]), {}, 0)
    assert Path(path).read_text(encoding="utf-8") == "line\n"


def test_no_write_consumes_lines():
    lines = iter(["a", "b", "STOP", "after"])
    result = read_heredoc("STOP", lambda: next(lines, None), {}, 0, write=False)
    assert result is None
    assert next(lines) == "after"


def test_end_of_input_warns(capsys):
    path = read_heredoc("EOF", _reader(["only"]), {}, 0)
    err = capsys.readouterr().err
    assert "here-document delimited by end-of-file (wanted 'EOF')" in err
    assert Path(path).read_text(encoding="utf-8") == "only\n"


def test_interrupt_removes_file(tmp_path):
    calls = iter(["first"])

    def read_line():
        try:
            return next(calls)
        except StopIteration:
            raise KeyboardInterrupt from None

    with pytest.raises(HeredocInterrupted) as info:
        read_heredoc("EOF", read_line, {}, 0)
    assert info.value.status == 130
    assert info.value.delimiter == "EOF"
    assert os.listdir(tmp_path) == []


def test_each_call_gets_its_own_file():
    first = read_heredoc("EOF", _reader(["x", "EOF"]), {}, 0)
    second = read_heredoc("EOF", _reader(["x", "EOF"]), {}, 0)
    assert first != second
    assert Path(first).read_text(encoding="utf-8") == Path(second).read_text(
        encoding="utf-8"
    )