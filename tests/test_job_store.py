"""Tests for the in-memory job registry."""

import pytest

from site_backlog.core.types import Job, JobOptions, JobOutputs, JobStatus
from site_backlog.jobs import JobStore, summarize_job

from tests.helpers import make_finished_job


@pytest.mark.unit
class TestJobStore:
    """Test suite for JobStore."""

    @pytest.fixture
    def store(self):
        return JobStore()

    def test_create_job(self, store):
        job = store.create_job("https://example.com", JobOptions(max_depth=2))

        assert store.get_job(job.id) is job
        assert job.status == JobStatus.QUEUED
        assert job.options.max_depth == 2
        assert len(job.id) == 32

    def test_ids_unique(self, store):
        ids = {store.create_job("https://example.com").id for _ in range(20)}
        assert len(ids) == 20

    def test_unknown_job(self, store):
        assert store.get_job("missing") is None
        assert store.update_job("missing", progress=10) is None

    def test_progress_never_decreases(self, store):
        job = store.create_job("https://example.com")

        store.update_job(job.id, progress=45)
        store.update_job(job.id, progress=25)

        assert job.progress == 45

    def test_terminal_status_is_final(self, store):
        job = store.create_job("https://example.com")
        store.update_job(job.id, status=JobStatus.ERROR, error="boom")

        store.update_job(job.id, status=JobStatus.RUNNING, stage="perf")

        assert job.status == JobStatus.ERROR
        assert job.stage == "perf"

    def test_updated_at_refreshed(self, store):
        job = store.create_job("https://example.com")
        before = job.updated_at

        store.update_job(job.id, stage="crawl")

        assert job.updated_at >= before

    def test_listeners_notified(self, store):
        seen = []
        store.add_listener(lambda job: seen.append((job.stage, job.progress)))
        job = store.create_job("https://example.com")

        store.update_job(job.id, stage="crawl", progress=1)
        store.update_job(job.id, stage="perf", progress=25)

        assert seen == [("crawl", 1), ("perf", 25)]

    def test_listener_failure_does_not_break_updates(self, store):
        def broken(job):
            raise RuntimeError("listener down")

        store.add_listener(broken)
        job = store.create_job("https://example.com")

        assert store.update_job(job.id, progress=10) is job
        assert job.progress == 10

    def test_list_jobs(self, store):
        first = store.create_job("https://a.example")
        second = store.create_job("https://b.example")

        assert {j.id for j in store.list_jobs()} == {first.id, second.id}


@pytest.mark.unit
class TestSummarizeJob:
    """Test suite for job summaries."""

    def test_done(self):
        job = make_finished_job("run-1")
        job.outputs = JobOutputs()

        assert summarize_job(job) == "0 issues across 0 pages; 0 journeys analyzed."

    def test_error_is_not_reported_as_empty(self):
        job = Job(
            id="run-1",
            url="https://example.com",
            status=JobStatus.ERROR,
            stage="crawl",
            error="connection refused",
            outputs=JobOutputs(),
        )

        summary = summarize_job(job)

        assert summary == "Analysis failed during crawl: connection refused"
        assert "0 issues" not in summary

    def test_running(self):
        job = Job(
            id="run-1",
            url="https://example.com",
            status=JobStatus.RUNNING,
            stage="a11y",
            progress=45,
        )

        assert summarize_job(job) == "Analysis running (a11y, 45%)"
