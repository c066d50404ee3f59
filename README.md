# minish

`minish` provides the pieces of a small POSIX-style shell as a Python
library: an environment store, `$` expansion, quote-aware splitting of
command lines, a parser that builds pipelines of commands, and the
built-in commands `echo`, `cd`, `pwd`, `export`, `unset`, `env` and `exit`.

## Installing

```
pip install .
```

## Modules

- `minish.env` — `Environment`, an ordered list of `EnvEntry` variables.
  `Environment.from_environ(os.environ)` copies a process environment.
  `get`, `set`, `append`, `remove`, `lookup` (where `lookup("?")` gives the
  last exit status), `save_exit_status`, `cleanup` (drops temporary and
  value-less entries) and `to_list`.
- `minish.expand` — `expand_argument` expands `$NAME` and `$?` outside
  single quotes and keeps quote characters; `expand_heredoc_line` expands
  `$NAME` in a here-document line; `needs_expansion` tells whether a word
  holds a reference.
- `minish.lexer` — `pipe_split` splits a line on unquoted pipes and raises
  `ShellSyntaxError` for a pipe at either end or two pipes in a row;
  `split_words` splits on an unquoted delimiter and removes quotes;
  `redirect_split` separates `<`, `>`, `<<` and `>>` from the text around them.
- `minish.parser` — `parse_line` turns a line into a list of `Command`
  objects, each with `args`, `input_files`, `output_files`, `append_files`
  and `heredocs`. A redirection with no target, or followed by another
  operator, raises `ParseError`.
- `minish.builtins` — `run_builtin(command)` runs the built-in named by
  `command.args[0]` and returns its status. `exit` raises `ShellExit`
  carrying the status.

## Example

```python
import os

from minish.builtins import run_builtin
from minish.env import Environment
from minish.parser import parse_line

env = Environment.from_environ(os.environ)
env.set("NAME", "world")
[command] = parse_line('echo "hello $NAME" > greeting.txt', env)
print(command.args)          # ['echo', 'hello world']
print(command.output_files)  # ['greeting.txt']

[echo] = parse_line("echo -n hi", env)
status = run_builtin(echo)   # prints "hi" to standard output
```

## What it does not do

The package has no interactive prompt and no command to start. It does not
open redirection files, read here-documents from the terminal, look up
programs on `PATH` or start child processes: a parsed `Command` records its
redirections, and only the built-ins can be run.

## Running the tests

```
pip install ".[test]"
pytest
```