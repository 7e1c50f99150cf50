import io
import os
import sys

import pytest

from minishell.shell import Shell, logo, main, prompt_text


def _env(**extra):
    env = {"PATH": os.environ.get("PATH", os.defpath)}
    env.update(extra)
    return env


def _shell(stdin_text="", interactive=True, **extra):
    return Shell(
        env=_env(**extra),
        stdin=io.StringIO(stdin_text),
        stderr=io.StringIO(),
        interactive=interactive,
    )


def test_prompt_without_directory():
    assert prompt_text(None) == "\001\033[36;1m\002minishell\001\033[0m\002"


def test_prompt_shows_last_directory_component():
    text = prompt_text("/home/someone/project")
    assert "\001\033[32;1m\002/project\001\033[36;1m\002) " in text
    assert "someone" not in text
    assert text.startswith("\001\033[36;1m\002minishell (")


def test_prompt_for_root():
    assert "(\001\033[32;1m\002/\001\033[36;1m\002) " in prompt_text("/")


def test_logo_frame():
    banner = logo()
    assert banner.startswith("\033[32;1m -")
    assert banner.endswith("\n\n\033[0m")
    assert "\\__/" in banner


def test_read_line_non_interactive():
    sh = _shell("first\nsecond", interactive=False)
    assert sh.read_line() == "first"
    assert sh.read_line() == "second"
    assert sh.read_line() is None


def test_execute_exit_status():
    sh = _shell()
    assert sh.execute("true") == 0
    assert sh.execute("false") == 1
    assert sh.last_status == 1


def test_empty_line_resets_status():
    sh = _shell()
    sh.execute("false")
    assert sh.execute("") == 0
    assert sh.last_status == 0


def test_redirect_output(tmp_path):
    out = tmp_path / "out.txt"
    sh = _shell()
    assert sh.execute(f"echo hi > {out}") == 0
    assert out.read_text() == "hi\n"


def test_pipeline(tmp_path):
    out = tmp_path / "out.txt"
    sh = _shell()
    assert sh.execute(f"echo hello | tr a-z A-Z > {out}") == 0
    assert out.read_text() == "HELLO\n"


def test_last_status_is_expanded(tmp_path):
    out = tmp_path / "status.txt"
    sh = _shell()
    sh.execute("false")
    sh.execute(f"echo $? > {out}")
    assert out.read_text() == "1\n"


def test_heredoc_reads_from_input(tmp_path):
    out = tmp_path / "hd.txt"
    sh = _shell("hello $NAME\nEOF\n", NAME="world")
    sh.interactive = False
    assert sh.execute(f"cat << EOF > {out}") == 0
    assert out.read_text() == "hello world\n"


def test_heredoc_end_of_input_warns(tmp_path, capsys):
    out = tmp_path / "hd.txt"
    sh = _shell("only\n", interactive=False)
    sh.execute(f"cat << END > {out}")
    assert out.read_text() == "only\n"
    assert "wanted 'END'" in capsys.readouterr().err


def test_syntax_error_interactive():
    sh = _shell()
    assert sh.execute("echo a && echo b") == 2
    assert "error: unexpected `&'" in sh.stderr.getvalue()


def test_syntax_error_non_interactive_exits():
    sh = _shell(interactive=False)
    with pytest.raises(SystemExit) as info:
        sh.execute("ls |")
    assert info.value.code == 2
    assert "ls |" in sh.stderr.getvalue()


def test_command_not_found(capsys):
    sh = _shell()
    assert sh.execute("no-such-command-here-xyz") == 127
    assert "Command not found" in capsys.readouterr().err


def test_run_returns_last_status():
    sh = _shell("true\nfalse\n", interactive=False)
    assert sh.run() == 1


def test_run_stops_on_parse_error():
    sh = _shell("ls |\ntrue\n", interactive=False)
    assert sh.run() == 2


def test_main_uses_standard_input(monkeypatch):
    monkeypatch.setattr(sys, "stdin", io.StringIO("false\n"))
    assert main([]) == 1