"""Job bookkeeping for the shell: a table of foreground, background and stopped jobs."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Iterator

MAXJOBS = 300


class JobStatus(enum.Enum):
    """State of a job as the shell sees it."""

    FOREGROUND = "f"
    BACKGROUND = "b"
    STOPPED = "s"


@dataclass
class Job:
    """One job: its entry number, state, command line and process id."""

    entry: int
    status: JobStatus
    command: str
    pid: int


class JobTable:
    """Jobs in the order they were started, with small reusable entry numbers."""

    def __init__(self, capacity: int = MAXJOBS) -> None:
        self.capacity = capacity
        self._jobs: list[Job] = []

    def __len__(self) -> int:
        return len(self._jobs)

    def __iter__(self) -> Iterator[Job]:
        return iter(list(self._jobs))

    def add(self, pid: int, status: JobStatus | str, command: str) -> Job:
        """Record a new job under the smallest free entry number (from 1)."""
        status = JobStatus(status)
        used = {job.entry for job in self._jobs}
        entry = next((i for i in range(1, self.capacity) if i not in used), None)
        if entry is None:
            raise RuntimeError("job table is full")
        job = Job(entry=entry, status=status, command=command, pid=pid)
        self._jobs.append(job)
        return job

    def remove(self, pid: int) -> bool:
        """Drop the job with ``pid``; False if there was none."""
        for index, job in enumerate(self._jobs):
            if job.pid == pid:
                del self._jobs[index]
                return True
        return False

    def by_pid(self, pid: int) -> Job | None:
        return next((job for job in self._jobs if job.pid == pid), None)

    def by_entry(self, entry: int) -> Job | None:
        return next((job for job in self._jobs if job.entry == entry), None)

    def foreground(self) -> Job | None:
        """The first job running in the foreground, if any."""
        return next(
            (job for job in self._jobs if job.status is JobStatus.FOREGROUND), None
        )

    def last_stopped(self) -> Job | None:
        """The most recently started job that is stopped, if any."""
        return next(
            (job for job in reversed(self._jobs) if job.status is JobStatus.STOPPED),
            None,
        )

    def listing(self) -> str:
        """Text printed by the ``jobs`` built-in."""
        parts = []
        for job in self._jobs:
            line = f"[{job.entry}]   "
            if job.status is JobStatus.BACKGROUND:
                line += f"running   {job.command}"
            elif job.status is JobStatus.STOPPED:
                line += f"suspended   {job.command}"
            parts.append(line)
        return "".join(parts)


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def parse_job_spec(arg: str) -> int:
    """Turn a ``%N`` job spec into its entry number.

    Digits are read as far as they go, so ``%4x`` names job 4. A spec
    without the ``%``, with nothing after it, or naming job 0 raises
    ValueError.
    """
    if not arg.startswith("%") or len(arg) < 2:
        raise ValueError(f"job not found: {arg}")
    match = _LEADING_INT.match(arg[1:])
    entry = int(match.group(1)) if match else 0
    if entry == 0:
        raise ValueError(f"job not found: {arg}")
    return entry