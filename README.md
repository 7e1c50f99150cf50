# minishell

A small command interpreter. It reads command lines and expands variables. It
checks the syntax and splits each line into commands joined by pipes. It sets
up input and output redirections and here-documents, then runs the commands
as child processes found on `PATH`.

## Installing

```
pip install .
```

## Running

```
minishell
```

When both standard input and standard error are terminals, the shell is
interactive. It shows a prompt with the name of the current directory and
reads lines with line editing where `readline` is available. Ctrl-C abandons
the current line and sets `$?` to 130. Ctrl-D leaves the shell and prints
`exit`.

When input comes from a file or a pipe, lines are read one by one with no
prompt. The shell stops at the first line that cannot be parsed, or that
leaves nothing to run. It echoes that line to standard error and exits with
the line's status.

The exit status of the shell is that of the last command run.

## What it understands

- Pipelines: `ls -l | grep py | wc -l`
- Redirections: `< infile`, `> outfile`, `>> outfile`. When a command has
  several redirections of one direction, only the last one is used. The
  files named by the earlier ones are still opened, and created where
  needed.
- Here-documents: `cat << END`. Variables in the body are expanded unless the
  delimiter is quoted, as in `cat << 'END'`. Each body is written to a
  temporary file, and the file is removed once the pipeline has run.
- Variables: `$NAME` and `$?` for the last exit status. Variables are not
  expanded inside single quotes. An unset variable expands to nothing. An
  unset variable used as a redirection target is reported as
  `ambiguous redirect`, and its command is dropped.
- Single and double quotes. The quote characters are removed from words.

Syntax errors give status 2. These include `&`, `||`, a pipe with nothing
before or after it, a redirection with no file name, two `<` in a row, and
an unclosed quote. A command that cannot be found gives status 127. A file
that is not executable gives status 126. A command killed by a signal gives
128 plus the signal number, and `Quit (core dumped)` is printed for SIGQUIT.
Lines holding characters beyond 7-bit ASCII are rejected with
`ASCII over 127`.

## What it does not do

The shell has no built-in commands: `cd`, `export`, `unset`, `env`, `pwd`,
`exit` and `echo` are not handled by the shell itself. A name is only ever
looked up as a program on `PATH` or as a path to a file. So the working
directory cannot be changed, and variables cannot be set or removed, from
within a session. The environment is the one the shell was started with.
There is no `&&`, `||`, `;`, background jobs, globbing or subshells.

## Using it from Python

```python
from minishell.shell import Shell

shell = Shell(env={"PATH": "/usr/bin:/bin"}, interactive=True)
status = shell.execute("echo hello | tr a-z A-Z")
```

`Shell(env=None, stdin=None, stderr=None, interactive=None)` defaults to the
process environment and standard streams. `Shell.execute(line)` runs one line
and returns its status. `Shell.run()` reads and runs lines until end of input.
`minishell.shell.logo()` returns the coloured banner as a string, and
`prompt_text(cwd)` returns the prompt for a directory.

The pieces behind `Shell` can be used on their own.

These turn a line into tokens:

- `minishell.syntax.parse_line(line, env, last_status)` expands, checks and
  splits a line into command segments and `"|"` items. It raises
  `ShellSyntaxError`, which carries a `status`.
- `minishell.tokens.tokenize(segments)` turns those segments into `Token`
  objects.
- `minishell.tokens.mark_shadowed_redirections(tokens)` marks redirections
  overridden by a later one.

These read here-documents:

- `minishell.tokens.collect_heredocs(tokens, read_line, env, last_status)`
  reads every here-document.
- `minishell.heredoc.read_heredoc(...)` reads a single one. It raises
  `HeredocInterrupted` when `read_line` raises `KeyboardInterrupt`.

These run the pipeline:

- `minishell.executor.run_pipeline(tokens, env)` runs the pipeline and
  returns the last status.
- `minishell.executor.remove_heredoc_files(tokens)` deletes the temporary
  files.
- `minishell.executor.resolve_command(name, env)` finds the program for a
  name. It raises `CommandError` when there is none.

```python
from minishell.executor import remove_heredoc_files, run_pipeline
from minishell.syntax import parse_line
from minishell.tokens import collect_heredocs, mark_shadowed_redirections, tokenize

env = {"PATH": "/usr/bin:/bin", "NAME": "world"}
segments = parse_line("echo hello $NAME | tr a-z A-Z", env, 0)
# ['echo hello world', '|', 'tr a-z A-Z']
tokens = collect_heredocs(mark_shadowed_redirections(tokenize(segments)), lambda: None, env)
try:
    status = run_pipeline(tokens, env)
finally:
    remove_heredoc_files(tokens)
```

## Tests

```
pip install .[test]
pytest
```