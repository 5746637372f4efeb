# ==============================================
# Tests for SubmissionPipeline
# ==============================================
#
# End-to-end flow over the in-memory store: sink naming, schema
# growth, analysis sink rewrite, notification, retention and the
# retry behaviour around partial failures.
#
# ==============================================

import json
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from form_intake.analysis.classifier import ClassificationResult, SubmissionClassifier
from form_intake.config import AppConfig
from form_intake.errors import ExhaustedRetriesError, TransientIOError
from form_intake.normalization.record_builder import format_timestamp
from form_intake.pipeline import SubmissionPipeline


class _HighPriorityClassifier(SubmissionClassifier):
    def classify(self, record):
        return ClassificationResult(category="Sales", sentiment="Positive", priority="High")


class TestSubmissionFlow:
    def test_first_submission_creates_sink_and_analysis(self, pipeline, store, sample_submission):
        result = pipeline.handle(sample_submission)

        assert result.sink == "Contact"
        assert result.attempts == 1
        assert store.get_headers("Contact") == [
            "form_name", "name", "contact.email", "contact.phone", "rating", "topics",
            "timestamp", "processed_data",
        ]
        assert len(store.get_all_rows("Contact")) == 1
        assert store.get_all_rows("Contact_Analysis") == [
            ["Total Submissions", 1],
            ["Average rating", 4.0],
        ]

    def test_row_matches_the_record(self, pipeline, store, sample_submission, fixed_now):
        result = pipeline.handle(sample_submission)
        row = dict(zip(result.columns, store.get_all_rows("Contact")[0]))

        assert row["contact.email"] == "ada@example.com"
        assert row["topics"] == ["billing", "support"]
        assert row["timestamp"] == format_timestamp(fixed_now)
        assert json.loads(row["processed_data"]) == {
            "category": "General",
            "sentiment": "Neutral",
            "priority": "Medium",
        }

    def test_default_form_name(self, pipeline, store):
        result = pipeline.handle({"message": "hello"})

        assert result.sink == "Default_Form"
        assert store.sink_exists("Default_Form_Analysis")

    def test_schema_grows_across_submissions(self, pipeline, store):
        pipeline.handle({"form_name": "Survey", "q1": "yes"})
        pipeline.handle({"form_name": "Survey", "q2": "no"})

        headers = store.get_headers("Survey")
        assert headers == ["form_name", "q1", "timestamp", "processed_data", "q2"]

        first, second = store.get_all_rows("Survey")
        assert first[headers.index("q2")] == ""
        assert second[headers.index("q1")] == ""

    def test_quick_analysis_flags_latest_outlier(self, pipeline):
        for score in ["1", "1", "1", "1"]:
            pipeline.handle({"form_name": "Scores", "score": score})

        result = pipeline.handle({"form_name": "Scores", "score": "100"})

        assert result.quick_analysis.total_submissions == 5
        assert result.quick_analysis.submission_trend == "Stable"
        assert result.quick_analysis.anomalies == ["score (100)"]

    def test_analysis_sink_lists_anomalies(self, pipeline, store):
        for score in ["1", "1", "1", "1", "100"]:
            pipeline.handle({"form_name": "Scores", "score": score})

        assert store.get_all_rows("Scores_Analysis") == [
            ["Total Submissions", 5],
            ["Average score", 20.8],
            ["Anomaly in score #1", 100],
        ]

    def test_old_rows_are_pruned(self, pipeline, store, fixed_now):
        pipeline.handle({"form_name": "Contact", "name": "first"})
        stale = format_timestamp(fixed_now - timedelta(days=400))
        headers = store.get_headers("Contact")
        store.append_row("Contact", [stale if h == "timestamp" else "" for h in headers])

        result = pipeline.handle({"form_name": "Contact", "name": "second"})

        assert result.rows_pruned == 1
        names = [row[headers.index("name")] for row in store.get_all_rows("Contact")]
        assert names == ["first", "second"]

    def test_priority_cells_get_highlight_rules(self, pipeline, store):
        pipeline.handle({"form_name": "Tickets", "priority": "Low"})
        pipeline.handle({"form_name": "Tickets", "priority": "High"})

        rules = pipeline.writer.highlight_rules("Tickets")
        column = store.get_headers("Tickets").index("priority")
        assert [rule.column_index for rule in rules] == [column, column]

    def test_separate_forms_use_separate_sinks(self, pipeline, store):
        pipeline.handle({"form_name": "A", "x": 1})
        pipeline.handle({"form_name": "B", "y": 2})

        assert len(store.get_all_rows("A")) == 1
        assert len(store.get_all_rows("B")) == 1
        assert "y" not in store.get_headers("A")


class TestNotification:
    def test_notification_content(self, pipeline, notifier, sample_submission, fixed_now):
        pipeline.handle(sample_submission)

        assert len(notifier.sent) == 1
        message = notifier.sent[0]
        assert message["address"] == "ops@example.com"
        assert message["subject"] == "New Medium Priority Submission: Contact"
        assert "Form Name: Contact" in message["body"]
        assert f"Submission Time: {format_timestamp(fixed_now)}" in message["body"]
        assert "- Total Submissions: 1" in message["body"]
        assert "- Submission Trend: Stable" in message["body"]
        assert "Anomalies Detected" not in message["body"]
        assert "Sink URL: memory://form-intake/Contact" in message["body"]

    def test_anomalies_line(self, pipeline, notifier):
        for score in ["1", "1", "1", "1", "100"]:
            pipeline.handle({"form_name": "Scores", "score": score})

        assert "- Anomalies Detected: score (100)" in notifier.sent[-1]["body"]

    def test_subject_without_form_name(self, pipeline, notifier):
        pipeline.handle({"message": "hi"})

        assert notifier.sent[0]["subject"] == "New Medium Priority Submission: Form"
        assert "Form Name: N/A" in notifier.sent[0]["body"]

    def test_priority_from_classifier(self, config, store, notifier, clock):
        pipeline = SubmissionPipeline(
            config, store=store, notifier=notifier, classifier=_HighPriorityClassifier(), clock=clock
        )
        pipeline.handle({"form_name": "Leads", "budget": "high"})

        assert notifier.sent[0]["subject"] == "New High Priority Submission: Leads"

    def test_notifications_disabled(self, store, notifier, clock):
        config = AppConfig(email_notification=False, retry_delay_ms=0)
        pipeline = SubmissionPipeline(config, store=store, notifier=notifier, clock=clock)

        result = pipeline.handle({"form_name": "Quiet"})

        assert notifier.sent == []
        assert result.notified is False


class TestRetries:
    def test_transient_notifier_failure_does_not_duplicate_the_row(self, config, store, clock):
        notifier = MagicMock()
        notifier.send.side_effect = [TransientIOError("smtp down"), None]
        pipeline = SubmissionPipeline(config, store=store, notifier=notifier, clock=clock)

        result = pipeline.handle({"form_name": "Contact", "name": "Ada"})

        assert result.attempts == 2
        assert notifier.send.call_count == 2
        assert len(store.get_all_rows("Contact")) == 1
        assert store.get_all_rows("Contact_Analysis")[0] == ["Total Submissions", 1]

    def test_exhausted_retries(self, store, clock):
        config = AppConfig(max_retries=3, retry_delay_ms=0)
        notifier = MagicMock()
        notifier.send.side_effect = TransientIOError("smtp down")
        pipeline = SubmissionPipeline(config, store=store, notifier=notifier, clock=clock)

        with pytest.raises(ExhaustedRetriesError) as excinfo:
            pipeline.handle({"form_name": "Contact", "name": "Ada"})

        assert excinfo.value.attempts == 3
        assert isinstance(excinfo.value.last_error, TransientIOError)
        assert excinfo.value.__cause__ is excinfo.value.last_error
        assert notifier.send.call_count == 3
        assert len(store.get_all_rows("Contact")) == 1

    def test_failure_before_append_retries_the_append(self, config, notifier, clock, store):
        original = store.append_row
        calls = {"n": 0}

        def flaky_append(sink, values):
            calls["n"] += 1
            if calls["n"] == 1:
                raise TransientIOError("write timeout")
            return original(sink, values)

        store.append_row = flaky_append
        pipeline = SubmissionPipeline(config, store=store, notifier=notifier, clock=clock)

        result = pipeline.handle({"form_name": "Contact", "name": "Ada"})

        assert result.attempts == 2
        assert len(store.get_all_rows("Contact")) == 1

    def test_read_failure_after_append_does_not_duplicate_the_row(self, config, notifier, clock, store):
        original = store.get_all_rows
        calls = {"n": 0}

        def flaky_read(sink):
            calls["n"] += 1
            if calls["n"] == 1:
                raise TransientIOError("read timeout")
            return original(sink)

        store.get_all_rows = flaky_read
        pipeline = SubmissionPipeline(config, store=store, notifier=notifier, clock=clock)

        result = pipeline.handle({"form_name": "Contact", "priority": "High"})

        assert result.attempts == 2
        assert len(original("Contact")) == 1
        assert len(pipeline.writer.highlight_rules("Contact")) == 1

    def test_retry_delay_uses_configuration(self, store, notifier, clock, monkeypatch):
        config = AppConfig(max_retries=2, retry_delay_ms=250)
        sleeps = []
        monkeypatch.setattr("time.sleep", sleeps.append)
        failing = MagicMock()
        failing.send.side_effect = TransientIOError("down")
        pipeline = SubmissionPipeline(config, store=store, notifier=failing, clock=clock)

        with pytest.raises(ExhaustedRetriesError):
            pipeline.handle({"form_name": "Contact"})

        assert sleeps == [0.25]


class TestOperatorCommands:
    def test_analyze_rewrites_the_analysis_sink(self, pipeline, store):
        pipeline.handle({"form_name": "Scores", "score": "3"})
        store.clear_sink("Scores_Analysis")

        snapshot = pipeline.analyze("Scores")

        assert snapshot.total_submissions == 1
        assert store.get_all_rows("Scores_Analysis")[0] == ["Total Submissions", 1]

    def test_prune(self, pipeline, store, fixed_now):
        pipeline.handle({"form_name": "Contact", "name": "x"})
        headers = store.get_headers("Contact")
        stale = format_timestamp(fixed_now - timedelta(days=400))
        store.append_row("Contact", [stale if h == "timestamp" else "" for h in headers])

        assert pipeline.prune("Contact") == 1
        assert len(store.get_all_rows("Contact")) == 1

    def test_context_manager_closes_the_store(self, config, notifier, clock):
        store = MagicMock()
        with SubmissionPipeline(config, store=store, notifier=notifier, clock=clock):
            pass
        store.close.assert_called_once()
