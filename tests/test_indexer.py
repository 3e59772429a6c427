"""
Tests for the indexing pipeline, directory mode and concurrent sampled mode.
"""

import io
import logging

import pytest
from PIL import Image

from conftest import StubFetcher
from imgsearch.database import Database, DatabaseWriter
from imgsearch.exceptions import DatabaseIOError, HashError
from imgsearch.fingerprint import FingerprintProvider
from imgsearch.indexer import (
    ConcurrentIndexer,
    InFlightCounter,
    build_database,
    find_files,
    index_directory,
    load_or_build,
    run_task,
    sample_indices,
)
from imgsearch.models import Dropped, Indexed, IndexTask, TaskStage


class BrokenStream(io.StringIO):
    def write(self, s):
        raise OSError("disk full")


class FailingProvider(FingerprintProvider):
    def hash(self, image):
        raise HashError("unsupported image")


@pytest.fixture
def provider():
    return FingerprintProvider()


class TestFindFiles:
    """Test directory discovery."""

    def test_every_regular_file_sorted(self, image_dir):
        identifiers = [identifier for _, identifier in find_files(image_dir)]
        assert identifiers == ["a.png", "b.jpg", "corrupt.jpg", "nested/c.png"]

    def test_whitespace_in_names(self, temp_dir):
        (temp_dir / "my photos").mkdir()
        (temp_dir / "my photos" / "beach 1.png").write_bytes(b"x")
        assert [i for _, i in find_files(temp_dir)] == ["my%20photos/beach%201.png"]

    def test_missing_root(self, temp_dir):
        with pytest.raises(FileNotFoundError):
            find_files(temp_dir / "nope")


class TestRunTask:
    """Test the single-task pipeline."""

    def test_indexed(self, sample_png, provider):
        out = io.StringIO()
        task = IndexTask(reference="http://example.com/ok.png", position=0, total=1)
        outcome = run_task(task, StubFetcher(sample_png), provider, DatabaseWriter(out))

        assert isinstance(outcome, Indexed)
        assert task.stage is TaskStage.DONE
        assert out.getvalue() == f"http://example.com/ok.png {outcome.entry.fingerprint}\n"

    @pytest.mark.parametrize("reference,stage", [
        ("http://example.com/missing.png", TaskStage.FETCHING),
        ("http://example.com/garbage.png", TaskStage.DECODING),
    ])
    def test_dropped(self, sample_png, provider, reference, stage):
        out = io.StringIO()
        task = IndexTask(reference=reference)
        outcome = run_task(task, StubFetcher(sample_png), provider, DatabaseWriter(out))

        assert isinstance(outcome, Dropped)
        assert outcome.stage is stage
        assert task.stage is TaskStage.DROPPED_ON_ERROR
        assert out.getvalue() == ""

    def test_dropped_while_hashing(self, sample_png):
        out = io.StringIO()
        outcome = run_task(
            IndexTask(reference="ok.png"), StubFetcher(sample_png), FailingProvider(), DatabaseWriter(out)
        )
        assert isinstance(outcome, Dropped)
        assert outcome.stage is TaskStage.HASHING
        assert out.getvalue() == ""

    def test_write_failure_propagates(self, sample_png, provider):
        with pytest.raises(DatabaseIOError):
            run_task(IndexTask(reference="ok.png"), StubFetcher(sample_png), provider,
                     DatabaseWriter(BrokenStream()))


class TestIndexDirectory:
    """End-to-end directory indexing."""

    def test_three_images_one_corrupt(self, image_dir, database_path, provider, caplog):
        with caplog.at_level(logging.WARNING):
            report = build_database(image_dir, database_path, provider)

        db = Database.load_file(database_path)
        assert len(db) == 3
        assert db.identifiers() == ["a.png", "b.jpg", "nested/c.png"]
        assert report.indexed == 3
        assert report.dropped == 1
        assert "corrupt.jpg" in caplog.text
        assert "corrupt.jpg" not in database_path.read_text()

    def test_fingerprints_match_provider(self, image_dir, provider):
        out = io.StringIO()
        report = index_directory(image_dir, DatabaseWriter(out), provider)
        with Image.open(image_dir / "a.png") as img:
            expected = provider.hash(img)
        assert report.entries[0].fingerprint == expected

    def test_empty_directory(self, temp_dir):
        out = io.StringIO()
        report = index_directory(temp_dir, DatabaseWriter(out))
        assert report.dispatched == 0
        assert out.getvalue() == ""

    def test_load_or_build_indexes_when_missing(self, image_dir, database_path, provider):
        db = load_or_build(database_path, image_dir, provider)
        assert len(db) == 3
        assert database_path.exists()

    def test_load_or_build_uses_existing(self, image_dir, database_path):
        database_path.write_text("existing.png 1\n")
        db = load_or_build(database_path, image_dir)
        assert db.identifiers() == ["existing.png"]


class TestInFlightCounter:

    def test_tracks_peak(self):
        counter = InFlightCounter()
        counter.increment()
        counter.increment()
        counter.decrement()
        counter.increment()
        counter.decrement()
        assert counter.current == 1
        assert counter.peak == 2


class TestConcurrentIndexer:
    """Sampled-source mode with a stub fetcher."""

    def urls(self, n):
        return [f"http://example.com/img/{i}.png" for i in range(n)]

    def test_concurrency_is_bounded(self, sample_png, provider):
        fetcher = StubFetcher(sample_png, delay=0.01)
        out = io.StringIO()
        indexer = ConcurrentIndexer(provider, DatabaseWriter(out), fetcher=fetcher, max_in_flight=4)

        report = indexer.run(self.urls(40))

        assert fetcher.peak <= 4
        assert report.peak_in_flight <= 4
        assert report.dispatched == 40
        assert report.indexed == 40
        assert len(out.getvalue().splitlines()) == 40

    def test_samples_deterministically(self, sample_png, provider):
        urls = self.urls(100)
        out = io.StringIO()
        indexer = ConcurrentIndexer(provider, DatabaseWriter(out), fetcher=StubFetcher(sample_png))

        report = indexer.run(urls, sample_size=10)

        expected = [urls[i] for i in sample_indices(100, 10)]
        assert report.requested == 10
        assert [o.task.reference for o in report.outcomes] == expected
        written = {line.split()[0] for line in out.getvalue().splitlines()}
        assert written == set(expected)

    def test_oversized_sample_records_clamped_request(self, sample_png, provider):
        out = io.StringIO()
        indexer = ConcurrentIndexer(provider, DatabaseWriter(out), fetcher=StubFetcher(sample_png))

        report = indexer.run(self.urls(5), sample_size=10)

        assert report.requested == 5
        assert report.dispatched == 5
        assert report.indexed == report.requested

    def test_non_positive_sample_requests_nothing(self, sample_png, provider):
        indexer = ConcurrentIndexer(
            provider, DatabaseWriter(io.StringIO()), fetcher=StubFetcher(sample_png)
        )
        report = indexer.run(self.urls(5), sample_size=0)
        assert report.requested == 0
        assert report.dispatched == 0

    def test_failures_do_not_stop_run(self, sample_png, provider, caplog):
        urls = [
            "http://example.com/1.png",
            "http://example.com/missing.png",
            "http://example.com/2.png",
            "http://example.com/garbage.png",
            "",
        ]
        out = io.StringIO()
        fetcher = StubFetcher(sample_png)
        with caplog.at_level(logging.WARNING):
            report = ConcurrentIndexer(provider, DatabaseWriter(out), fetcher=fetcher,
                                       max_in_flight=2).run(urls)

        assert report.indexed == 2
        assert report.dropped == 3
        assert [type(o) for o in report.outcomes] == [Indexed, Dropped, Indexed, Dropped, Dropped]
        assert all(o.task.stage.is_terminal for o in report.outcomes)
        assert len(Database.load(io.StringIO(out.getvalue()))) == 2
        assert "missing.png" in caplog.text

    def test_write_failure_aborts_run(self, sample_png, provider):
        indexer = ConcurrentIndexer(provider, DatabaseWriter(BrokenStream()),
                                    fetcher=StubFetcher(sample_png), max_in_flight=2)
        with pytest.raises(DatabaseIOError):
            indexer.run(self.urls(50))

    def test_runs_are_independent(self, sample_png, provider):
        out = io.StringIO()
        indexer = ConcurrentIndexer(provider, DatabaseWriter(out), fetcher=StubFetcher(sample_png),
                                    max_in_flight=3)
        first = indexer.run(self.urls(5))
        second = indexer.run(self.urls(7))
        assert first.indexed == 5
        assert second.indexed == 7
        assert len(out.getvalue().splitlines()) == 12

    def test_invalid_cap(self, provider):
        with pytest.raises(ValueError):
            ConcurrentIndexer(provider, DatabaseWriter(io.StringIO()), fetcher=object(), max_in_flight=0)

    def test_empty_source(self, provider):
        report = ConcurrentIndexer(provider, DatabaseWriter(io.StringIO()),
                                   fetcher=StubFetcher(b"")).run([], sample_size=10)
        assert report.dispatched == 0
        assert report.outcomes == []
