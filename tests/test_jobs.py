import pytest

from tinyshell.jobs import Job, JobStatus, JobTable, parse_job_spec


@pytest.fixture
def table():
    return JobTable()


def test_entries_start_at_one_and_increase(table):
    first = table.add(100, JobStatus.BACKGROUND, "sleep 5\n")
    second = table.add(101, "b", "sleep 6\n")
    assert first.entry == 1
    assert second.entry == first.entry + 1
    assert len(table) == 2


def test_add_accepts_status_letters(table):
    job = table.add(7, "s", "vi\n")
    assert job.status is JobStatus.STOPPED
    assert table.by_pid(7) == Job(entry=job.entry, status=JobStatus.STOPPED,
                                  command="vi\n", pid=7)


def test_freed_entry_is_reused(table):
    a = table.add(1, "b", "a\n")
    table.add(2, "b", "b\n")
    assert table.remove(1) is True
    again = table.add(3, "b", "c\n")
    assert again.entry == a.entry


def test_entries_are_unique(table):
    for pid in range(10, 30):
        table.add(pid, "b", "x\n")
    for pid in range(10, 30, 3):
        table.remove(pid)
    for pid in range(40, 45):
        table.add(pid, "b", "y\n")
    entries = [job.entry for job in table]
    assert len(entries) == len(set(entries))
    assert min(entries) >= 1


def test_remove_unknown_pid_returns_false(table):
    table.add(5, "b", "x\n")
    assert table.remove(999) is False
    assert len(table) == 1


def test_remove_keeps_order(table):
    for pid in (1, 2, 3, 4):
        table.add(pid, "b", f"cmd{pid}\n")
    table.remove(2)
    assert [job.pid for job in table] == [1, 3, 4]


def test_lookup_by_entry_and_pid(table):
    job = table.add(42, "f", "cat\n")
    assert table.by_entry(job.entry) is job
    assert table.by_pid(42) is job
    assert table.by_pid(43) is None
    assert table.by_entry(job.entry + 50) is None


def test_foreground_finds_first_foreground(table):
    table.add(1, "b", "a\n")
    fg = table.add(2, "f", "b\n")
    table.add(3, "f", "c\n")
    assert table.foreground() is fg


def test_foreground_none_when_absent(table):
    table.add(1, "b", "a\n")
    assert table.foreground() is None


def test_last_stopped_is_most_recent(table):
    table.add(1, "s", "a\n")
    table.add(2, "b", "b\n")
    latest = table.add(3, "s", "c\n")
    table.add(4, "b", "d\n")
    assert table.last_stopped() is latest


def test_last_stopped_none(table):
    table.add(1, "b", "a\n")
    assert table.last_stopped() is None


def test_status_can_be_changed_in_place(table):
    job = table.add(9, "f", "top\n")
    job.status = JobStatus.STOPPED
    assert table.last_stopped() is job
    assert table.foreground() is None


def test_listing_format(table):
    running = table.add(1, "b", "sleep 10\n")
    stopped = table.add(2, "s", "vim\n")
    assert table.listing() == (
        f"[{running.entry}]   running   sleep 10\n"
        f"[{stopped.entry}]   suspended   vim\n"
    )


def test_listing_foreground_shows_entry_only(table):
    job = table.add(1, "f", "cat\n")
    assert table.listing() == f"[{job.entry}]   "


def test_table_full_raises():
    small = JobTable(capacity=3)
    small.add(1, "b", "a\n")
    small.add(2, "b", "b\n")
    with pytest.raises(RuntimeError):
        small.add(3, "b", "c\n")
    assert len(small) == 2


def test_iteration_is_a_snapshot(table):
    table.add(1, "b", "a\n")
    table.add(2, "b", "b\n")
    seen = []
    for job in table:
        seen.append(job.pid)
        table.remove(job.pid)
    assert seen == [1, 2]
    assert len(table) == 0


@pytest.mark.parametrize("spec, entry", [("%3", 3), ("%12", 12), ("%4x", 4)])
def test_parse_job_spec_valid(spec, entry):
    assert parse_job_spec(spec) == entry


@pytest.mark.parametrize("spec", ["%", "3", "%0", "%abc", "", "x%1"])
def test_parse_job_spec_invalid(spec):
    with pytest.raises(ValueError):
        parse_job_spec(spec)


def test_parse_job_spec_negative_is_accepted():
    assert parse_job_spec("%-2") == -2