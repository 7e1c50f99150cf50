import pytest

from minishell.splitting import (
    split_keep,
    split_leave,
    split_quoted,
    split_quoted_keep,
)

PLAIN_LINES = [
    "ls -la",
    "  cat   file  ",
    "a",
    "echo one two three",
    "   ",
]


def test_split_keep_separators_are_single_items():
    assert split_keep("a||b", "|") == ["a", "|", "|", "b"]


@pytest.mark.parametrize("line", ["a|b|c", "|x||y|", "no separators", "||"])
def test_split_keep_joins_back_to_input(line):
    assert "".join(split_keep(line, "|")) == line


@pytest.mark.parametrize("line", ["a|b|c", "|x||y|", "abc"])
def test_split_keep_words_never_contain_separator_unless_single(line):
    for piece in split_keep(line, "|"):
        assert piece == "|" or "|" not in piece


def test_split_keep_empty_string():
    assert split_keep("", "|") == []


def test_split_leave_drops_runs_of_separators():
    assert split_leave("  ls   -la ", " ") == ["ls", "-la"]


def test_split_leave_multiple_separator_characters():
    assert split_leave("a,b;c", ",;") == ["a", "b", "c"]


def test_split_leave_only_separators():
    assert split_leave("|||", "|") == []


@pytest.mark.parametrize("line", ["a|b|c", "|x||y|", "plain"])
def test_split_leave_matches_words_of_split_keep(line):
    assert split_leave(line, "|") == [p for p in split_keep(line, "|") if p != "|"]


def test_split_quoted_keeps_double_quoted_spaces():
    assert split_quoted('echo "a b" c', " ") == ["echo", '"a b"', "c"]


def test_split_quoted_single_quotes_hide_double_quote():
    assert split_quoted("x 'a \" b' y", " ") == ["x", "'a \" b'", "y"]


def test_split_quoted_adjacent_quotes_form_one_word():
    line = 'a"b c"d'
    assert split_quoted(line, " ") == [line]


def test_split_quoted_unclosed_quote_runs_to_end():
    assert split_quoted('a "b c', " ") == ["a", '"b c']


@pytest.mark.parametrize("line", PLAIN_LINES)
def test_split_quoted_without_quotes_matches_split_leave(line):
    assert split_quoted(line, " ") == split_leave(line, " ")


def test_split_quoted_empty_string():
    assert split_quoted("", " ") == []


def test_split_quoted_keep_pipeline():
    assert split_quoted_keep("ls | wc", "|") == ["ls ", "|", " wc"]


def test_split_quoted_keep_ignores_quoted_pipe():
    assert split_quoted_keep('echo "a|b" | cat', "|") == ['echo "a|b" ', "|", " cat"]


@pytest.mark.parametrize(
    "line", ["ls|wc", "a | 'b|c' | d", '"|"|x', "no pipe here", "|"]
)
def test_split_quoted_keep_joins_back_to_input(line):
    assert "".join(split_quoted_keep(line, "|")) == line


@pytest.mark.parametrize("line", ["ls|wc|cat", "a | 'b|c' | d"])
def test_split_quoted_keep_words_match_split_quoted(line):
    kept = [p for p in split_quoted_keep(line, "|") if p != "|"]
    assert kept == split_quoted(line, "|")


def test_split_quoted_keep_emits_whole_multichar_separator():
    assert split_quoted_keep("a|b", "|&") == ["a", "|&"]


def test_split_quoted_keep_empty_string():
    assert split_quoted_keep("", "|") == []