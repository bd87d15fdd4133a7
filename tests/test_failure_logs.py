from ciwatch.core.errors import FormatError, QueryError
from ciwatch.services.failure_logs import (
    NO_FAILED_JOBS,
    RUN_FAILED_FOOTER,
    FailureLogAggregator,
)
from tests.helpers import FakeCIClient, make_job, make_run


def failed(run_id, name="CI"):
    return make_run(run_id, conclusion="failure", name=name)


def test_only_failed_runs_are_processed():
    client = FakeCIClient([[]], jobs={2: [make_job(20)]}, logs={20: "boom"})
    runs = [make_run(1), failed(2), make_run(3, conclusion="cancelled")]
    reports = FailureLogAggregator(client).aggregate("o/r", runs)
    assert [r.run.id for r in reports] == [2]
    assert ("jobs", 1) not in client.calls
    assert ("jobs", 3) not in client.calls


def test_runs_and_jobs_fetched_sequentially_in_order():
    client = FakeCIClient(
        [[]],
        jobs={1: [make_job(10), make_job(11)], 2: [make_job(20)]},
        logs={10: "a", 11: "b", 20: "c"},
    )
    FailureLogAggregator(client).aggregate("o/r", [failed(1), failed(2)])
    assert client.calls == [
        ("jobs", 1), ("log", 10), ("log", 11),
        ("jobs", 2), ("log", 20),
    ]


def test_missing_log_does_not_stop_later_jobs_or_runs(console, buffer):
    client = FakeCIClient(
        [[]],
        jobs={1: [make_job(10, "unit"), make_job(11, "lint")], 2: [make_job(20, "e2e")]},
        logs={11: "lint log", 20: "e2e log"},
    )
    reports = FailureLogAggregator(client, console).aggregate("o/r", [failed(1), failed(2)])

    assert reports[0].jobs[0].log is None
    assert reports[0].jobs[0].warning == "Could not fetch logs for job 10"
    assert reports[0].jobs[1].log == "lint log"
    assert reports[1].jobs[0].log == "e2e log"

    out = buffer.getvalue()
    assert "Could not fetch logs for job 10" in out
    assert out.index("Could not fetch logs for job 10") < out.index("lint log") < out.index("e2e log")


def test_empty_log_is_not_treated_as_missing(console, buffer):
    client = FakeCIClient([[]], jobs={1: [make_job(10)]}, logs={10: ""})
    reports = FailureLogAggregator(client, console).aggregate("o/r", [failed(1)])
    assert reports[0].jobs[0].log == ""
    assert "Could not fetch logs" not in buffer.getvalue()


def test_no_failed_jobs_warns_and_continues(console, buffer):
    client = FakeCIClient([[]], jobs={1: [], 2: [make_job(20)]}, logs={20: "later"})
    reports = FailureLogAggregator(client, console).aggregate("o/r", [failed(1), failed(2)])
    assert reports[0].warning == NO_FAILED_JOBS
    assert reports[0].jobs == []
    assert reports[1].jobs[0].log == "later"
    assert buffer.getvalue().count(NO_FAILED_JOBS) == 1


def test_job_query_errors_are_warnings(console, buffer):
    client = FakeCIClient(
        [[]],
        jobs={1: QueryError("HTTP 500", status_code=500), 2: FormatError("bad"), 3: [make_job(30)]},
        logs={30: "third"},
    )
    reports = FailureLogAggregator(client, console).aggregate("o/r", [failed(1), failed(2), failed(3)])
    assert [r.warning for r in reports] == [NO_FAILED_JOBS, NO_FAILED_JOBS, ""]
    assert reports[2].jobs[0].log == "third"


def test_rendered_block_layout(console, buffer):
    client = FakeCIClient([[]], jobs={5: [make_job(50, "build")]}, logs={50: "line 1\nline 2"})
    FailureLogAggregator(client, console).aggregate("o/r", [make_run(5, conclusion="failure", name="CI", event="push")])
    assert buffer.getvalue() == (
        "## Failed run for workflow 'CI' on push (run ID: 5)\n\n"
        "### Failed Job: build (id: 50)\n\n"
        "`````\n"
        "line 1\nline 2\n"
        "\n"
        "`````\n"
        "\n"
        f"{RUN_FAILED_FOOTER}\n"
        "\n"
    )


def test_silent_without_console():
    client = FakeCIClient([[]], jobs={1: [make_job(10)]}, logs={10: "x"})
    reports = FailureLogAggregator(client).aggregate("o/r", [failed(1)])
    assert reports[0].jobs[0].log == "x"
