"""
Unit tests for data models (Entry, IndexTask, IndexReport).
"""

import pytest

from imgsearch.models import (
    Dropped,
    Entry,
    IndexReport,
    IndexTask,
    Indexed,
    SearchResult,
    TaskStage,
    format_count,
)


class TestFormatCount:
    """Test the format_count utility function."""

    def test_small(self):
        assert format_count(7) == "7"

    def test_thousands(self):
        assert format_count(30000) == "30,000"

    def test_millions(self):
        assert format_count(1234567) == "1,234,567"


class TestSearchResult:

    def test_to_dict(self):
        assert SearchResult("a.png", 3.0).to_dict() == {'identifier': 'a.png', 'distance': 3.0}


class TestIndexTask:
    """Test IndexTask stage transitions."""

    def test_identifier_defaults_to_reference(self):
        task = IndexTask(reference="http://example.com/a.jpg")
        assert task.identifier == "http://example.com/a.jpg"
        assert task.stage is TaskStage.PENDING

    def test_happy_path(self):
        task = IndexTask(reference="a.png")
        for stage in (TaskStage.FETCHING, TaskStage.DECODING, TaskStage.HASHING,
                      TaskStage.WRITING, TaskStage.DONE):
            task.advance(stage)
        assert task.stage.is_terminal

    @pytest.mark.parametrize("failing_stage", [
        TaskStage.FETCHING, TaskStage.DECODING, TaskStage.HASHING,
    ])
    def test_drop_from_work_stages(self, failing_stage):
        task = IndexTask(reference="a.png")
        order = [TaskStage.FETCHING, TaskStage.DECODING, TaskStage.HASHING]
        for stage in order[:order.index(failing_stage) + 1]:
            task.advance(stage)
        task.advance(TaskStage.DROPPED_ON_ERROR)
        assert task.stage.is_terminal

    def test_cannot_drop_while_writing(self):
        task = IndexTask(reference="a.png")
        for stage in (TaskStage.FETCHING, TaskStage.DECODING, TaskStage.HASHING, TaskStage.WRITING):
            task.advance(stage)
        with pytest.raises(ValueError):
            task.advance(TaskStage.DROPPED_ON_ERROR)

    def test_cannot_skip_hashing(self):
        task = IndexTask(reference="a.png")
        task.advance(TaskStage.FETCHING)
        with pytest.raises(ValueError):
            task.advance(TaskStage.WRITING)

    def test_terminal_stages_are_final(self):
        task = IndexTask(reference="a.png")
        task.advance(TaskStage.FETCHING)
        task.advance(TaskStage.DROPPED_ON_ERROR)
        with pytest.raises(ValueError):
            task.advance(TaskStage.DECODING)

    def test_progress_label(self):
        assert IndexTask(reference="a.png", position=4, total=10).progress_label == "[5/10]"


class TestIndexReport:
    """Test IndexReport aggregates."""

    def make_report(self):
        ok = IndexTask(reference="a.png")
        bad = IndexTask(reference="b.png")
        return IndexReport(
            requested=3,
            dispatched=2,
            outcomes=[
                Indexed(task=ok, entry=Entry("a.png", 1)),
                Dropped(task=bad, stage=TaskStage.DECODING, reason="corrupt"),
            ],
        )

    def test_counts(self):
        report = self.make_report()
        assert report.indexed == 1
        assert report.dropped == 1
        assert report.entries == [Entry("a.png", 1)]

    def test_success_rate(self):
        assert self.make_report().success_rate == 50.0

    def test_success_rate_empty(self):
        assert IndexReport().success_rate == 0.0

    def test_summary(self):
        assert "indexed 1 of 2 images" in self.make_report().summary()
