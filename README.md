# tinyshell

A small interactive shell for POSIX systems. It reads command lines, runs
programs found on `PATH`, connects them with pipes and keeps track of
background and stopped jobs.

## Installing

```
pip install .
```

## Running

```
tinyshell
```

The shell prints a `> ` prompt and reads one line at a time. End of input
(Ctrl-D) leaves the shell, as do the `exit` and `quit` built-ins.

## What it understands

- **Programs**: `ls -al` runs `ls` with its arguments, looked up on `PATH`.
- **Quoting**: when the quotes on a line pair up, a word that starts with a
  double or single quote runs to the matching quote and may hold spaces:
  `echo "hello world"`. Quotes are not otherwise interpreted.
- **Pipelines**: `ls -l | grep py | wc -l`, with any number of stages.
- **Background jobs**: a last word starting with `&`, or a `&` stuck to the
  end of the last word, runs the command in the background. The shell
  prints the process id and the command line.
- **Built-ins**
  - `exit`, `quit`: leave the shell.
  - `cd [dir ...]`: change directory; with no argument, go to `$HOME`.
    Several arguments are entered one after another. If one fails, the
    shell goes back to where it started and prints
    `cd: no such file or directory:` followed by the path it tried.
  - `jobs`: list jobs, background ones as `running` and stopped ones as
    `suspended`.
  - `bg [%N]`: resume a stopped job in the background; without an argument,
    the most recently started stopped job.
  - `fg %N`: bring job `N` to the foreground, resuming it if it was stopped,
    and wait for it. A job number is required.
  - `kill %N`: send SIGKILL to job `N` and remove it from the list.
- **Signals**: Ctrl-C interrupts the foreground job, Ctrl-Z suspends it and
  keeps it in the job list as stopped; background jobs that finish are
  reported as `done`.

## What it does not do

There is no input or output redirection (`<`, `>`), no filename globbing, no
variables or environment expansion, no escapes with backslashes, and no
scripting constructs such as `;`, `&&`, `if` or loops. Each line is one
command or one pipeline.

## Using it from Python

```python
import io
from tinyshell.shell import Shell

out = io.StringIO()
shell = Shell(out)
shell.eval("jobs\n")
```

`Shell.eval` runs one line; `Shell.repl(stream)` prompts and reads lines
from a text stream until end of input or `exit`. The `exit` and `quit`
built-ins raise `ShellExit` from `eval`. `Shell.install_signal_handlers()`
installs the SIGCHLD, SIGTSTP and SIGINT handlers used by the command.

The pieces can also be used on their own:

- `tinyshell.parser`: `parse_line` returns a `ParsedLine` with `argv` and
  `background`; `split_pipe`, `split_pipeline` and `quotes_balanced` handle
  pipes and quotes.
- `tinyshell.jobs`: `JobTable`, `Job`, `JobStatus` and `parse_job_spec`
  (which turns `%N` into `N`) keep the job list.
- `tinyshell.rio`: `RioReader`, `readn` and `writen` give buffered reads and
  complete writes on file descriptors, retrying calls that a signal
  interrupts.
- `tinyshell.unixio`: `sio_puts`, `sio_putl` and `ltoa` write straight to
  standard output without buffering; `open_clientfd` and `open_listenfd`
  open connected and listening TCP sockets for a numeric port.

## Tests

```
pip install .[test]
pytest
```