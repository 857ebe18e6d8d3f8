"""Interactive shell with job control: built-ins, pipelines and signal-driven reaping."""

from __future__ import annotations

import argparse
import os
import signal
import sys
from typing import IO, NoReturn, Sequence

from .jobs import Job, JobStatus, JobTable, parse_job_spec
from .parser import parse_line, split_pipeline

_JOB_SIGNALS = {signal.SIGCHLD, signal.SIGINT, signal.SIGTSTP}


class ShellExit(Exception):
    """Raised by the ``exit`` and ``quit`` built-ins."""

    def __init__(self, code: int = 0) -> None:
        super().__init__(code)
        self.code = code


def _signal_group(pgid: int, signum: int) -> None:
    """Send ``signum`` to a process group, ignoring groups that are gone."""
    try:
        os.killpg(pgid, signum)
    except OSError:
        pass


def _exec(argv: Sequence[str]) -> NoReturn:
    """Replace the current process with ``argv``; exit quietly if that fails."""
    try:
        os.execvp(argv[0], list(argv))
    except (OSError, IndexError, ValueError) as exc:
        reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
        sys.stderr.write(f"Execvp error: {reason}\n")
        sys.stderr.flush()
    finally:
        os._exit(0)


class Shell:
    """A small job-control shell writing its own messages to ``out``."""

    def __init__(self, out: IO[str] | None = None) -> None:
        self.out = out if out is not None else sys.stdout
        self.table = JobTable()
        self._waiting = True

    def _write(self, text: str) -> None:
        self.out.write(text)
        self.out.flush()

    def _flush_all(self) -> None:
        for stream in (self.out, sys.stdout, sys.stderr):
            try:
                stream.flush()
            except (OSError, ValueError):
                pass

    # ------------------------------------------------------------------
    # Command evaluation

    def eval(self, cmdline: str) -> None:
        """Evaluate one command line: run a built-in or start a job."""
        parsed = parse_line(cmdline)
        argv = parsed.argv
        if not argv:
            return
        if self.run_builtin(argv):
            return

        self._flush_all()
        old_mask = signal.pthread_sigmask(signal.SIG_BLOCK, _JOB_SIGNALS)
        try:
            pid = os.fork()
        except OSError:
            signal.pthread_sigmask(signal.SIG_SETMASK, old_mask)
            raise
        if pid == 0:
            self._run_child(argv, "|" in cmdline, old_mask)

        try:
            os.setpgid(pid, pid)
        except OSError:
            pass
        status = JobStatus.BACKGROUND if parsed.background else JobStatus.FOREGROUND
        try:
            job = self.table.add(pid, status, cmdline)
        finally:
            signal.pthread_sigmask(signal.SIG_SETMASK, old_mask)

        if parsed.background:
            self._write(f"{pid} {cmdline}\n")
        else:
            self._wait_foreground(job)

    def _run_child(self, argv: list[str], piped: bool, old_mask) -> NoReturn:
        """Body of a forked job: own process group, then the pipeline."""
        try:
            for signum in _JOB_SIGNALS:
                signal.signal(signum, signal.SIG_DFL)
            signal.pthread_sigmask(signal.SIG_SETMASK, old_mask)
            try:
                os.setpgid(0, 0)
            except OSError:
                pass
            stages = split_pipeline(argv) if piped else [argv]
            for stage in stages[:-1]:
                read_fd, write_fd = os.pipe()
                child = os.fork()
                if child == 0:
                    try:
                        os.close(read_fd)
                        os.dup2(write_fd, 1)
                        os.close(write_fd)
                        _exec(stage)
                    finally:
                        os._exit(0)
                os.close(write_fd)
                os.dup2(read_fd, 0)
                os.close(read_fd)
                try:
                    os.waitpid(child, 0)
                except ChildProcessError:
                    pass
            _exec(stages[-1])
        finally:
            os._exit(0)

    def _wait_foreground(self, job: Job) -> None:
        """Block until the foreground job ends, stops or is taken over."""
        self._waiting = True
        while self._waiting:
            try:
                pid, status = os.waitpid(job.pid, os.WUNTRACED)
            except ChildProcessError:
                break
            if pid == 0:
                continue
            if os.WIFSTOPPED(status):
                if job.status is JobStatus.FOREGROUND:
                    job.status = JobStatus.STOPPED
                break
            self._child_done(pid)
        self._waiting = True

    def _child_done(self, pid: int) -> None:
        job = self.table.by_pid(pid)
        if job is not None:
            if job.status is JobStatus.FOREGROUND:
                self._waiting = False
            elif job.status is JobStatus.BACKGROUND:
                self._write(f"[{job.entry}]   done   {job.command}>")
        self.table.remove(pid)

    # ------------------------------------------------------------------
    # Built-ins

    def run_builtin(self, argv: list[str]) -> bool:
        """Run ``argv`` if it names a built-in; True when it did."""
        name = argv[0]
        if name in ("exit", "quit"):
            raise ShellExit(0)
        if name == "&":
            return True
        handlers = {
            "cd": lambda: self.cd(argv),
            "jobs": self.jobs,
            "bg": lambda: self.bg(argv),
            "fg": lambda: self.fg(argv),
            "kill": lambda: self.kill(argv),
        }
        handler = handlers.get(name)
        if handler is None:
            return False
        handler()
        return True

    def cd(self, argv: list[str]) -> None:
        """Change into each argument in turn; undo everything on failure."""
        if len(argv) < 2:
            home = os.environ.get("HOME")
            if home:
                try:
                    os.chdir(home)
                except OSError:
                    pass
            return
        origin = os.getcwd()
        for depth, path in enumerate(argv[1:], start=1):
            try:
                os.chdir(path)
            except OSError:
                trail = "".join(f"{part}/" for part in argv[1:depth + 1])
                self._write(f"cd: no such file or directory: {trail}\n")
                try:
                    os.chdir(origin)
                except OSError:
                    pass
                return

    def jobs(self) -> None:
        """Print the background and stopped jobs."""
        self._write(self.table.listing())

    @staticmethod
    def _malformed_spec(arg: str) -> bool:
        return not arg.startswith("%") or arg == "%"

    def bg(self, argv: list[str]) -> None:
        """Resume a stopped job in the background."""
        if len(self.table) == 0:
            self._write("bg: no current job\n")
            return
        arg = argv[1] if len(argv) > 1 else None
        entry = -1
        if arg is not None:
            try:
                entry = parse_job_spec(arg)
            except ValueError:
                self._write(f"bg: job not found: {arg}\n")
                return
        stopped = self.table.last_stopped()
        if stopped is None:
            self._write("bg: job already in background\n")
            return
        if arg is None:
            entry = stopped.entry
        job = self.table.by_entry(entry)
        if job is None:
            self._write(f"bg: %{entry} : no such job\n")
            return
        _signal_group(job.pid, signal.SIGCONT)
        job.status = JobStatus.BACKGROUND
        self._write(f"[{entry}]   continued   {job.command}")

    def fg(self, argv: list[str]) -> None:
        """Bring a background or stopped job to the foreground and wait for it."""
        if len(self.table) == 0:
            self._write("fg: no current job\n")
            return
        arg = argv[1] if len(argv) > 1 else None
        entry = -1
        if arg is not None:
            try:
                entry = parse_job_spec(arg)
            except ValueError:
                self._write(f"fg: job not found: {arg}\n")
                return
        job = self.table.by_entry(entry)
        if job is None:
            self._write(f"bg: %{entry} : no such job\n")
            return
        if job.status is JobStatus.STOPPED:
            _signal_group(job.pid, signal.SIGCONT)
            self._write(f"[{entry}]   continued   {job.command}")
        elif job.status is JobStatus.BACKGROUND:
            self._write(f"[{entry}]   running   {job.command}")
        job.status = JobStatus.FOREGROUND
        self._wait_foreground(job)

    def kill(self, argv: list[str]) -> None:
        """Terminate a job with SIGKILL and forget it."""
        if len(argv) < 2 or self._malformed_spec(argv[1]):
            self._write("kill: not enough arguments\n")
            return
        arg = argv[1]
        try:
            entry = parse_job_spec(arg)
        except ValueError:
            self._write(f"fg: job not found: {arg}\n")
            return
        job = self.table.by_entry(entry)
        if job is None:
            self._write(f"kill: %{entry} : no such job\n")
            return
        _signal_group(job.pid, signal.SIGKILL)
        self._write(f"[{entry}]   terminated   {job.command}")
        self.table.remove(job.pid)

    # ------------------------------------------------------------------
    # Signals

    def reap_children(self) -> None:
        """Collect every child that has finished, without blocking."""
        while True:
            try:
                pid, _status = os.waitpid(-1, os.WNOHANG)
            except ChildProcessError:
                return
            if pid <= 0:
                return
            self._child_done(pid)

    def handle_sigchld(self, signum, frame) -> None:
        self.reap_children()

    def handle_sigtstp(self, signum, frame) -> None:
        """Stop the foreground job and keep it as a stopped job."""
        job = self.table.foreground()
        if job is None:
            return
        self._write(f"suspended   {job.command}")
        self._waiting = False
        _signal_group(job.pid, signal.SIGTSTP)
        job.status = JobStatus.STOPPED

    def handle_sigint(self, signum, frame) -> None:
        """Interrupt the foreground job and forget it."""
        job = self.table.foreground()
        if job is None:
            return
        self._waiting = False
        _signal_group(job.pid, signal.SIGINT)
        self.table.remove(job.pid)

    def install_signal_handlers(self) -> None:
        signal.signal(signal.SIGCHLD, self.handle_sigchld)
        signal.signal(signal.SIGTSTP, self.handle_sigtstp)
        signal.signal(signal.SIGINT, self.handle_sigint)

    # ------------------------------------------------------------------
    # Main loop

    def repl(self, stream: IO[str]) -> None:
        """Prompt, read and evaluate lines until end of input or ``exit``."""
        while True:
            self._write("> ")
            line = stream.readline()
            if not line.endswith("\n"):
                return
            try:
                self.eval(line)
            except ShellExit:
                return


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="tinyshell", description="A small interactive shell with job control."
    )
    parser.parse_args(argv)
    shell = Shell()
    shell.install_signal_handlers()
    shell.repl(sys.stdin)
    return 0


if __name__ == "__main__":
    sys.exit(main())