# ==============================================
# SubmissionPipeline - Orchestrator
# ==============================================
#
# PURPOSE:
#   Ties the four topics together for one incoming submission.
#   The webhook and the CLI only ever talk to this class.
#
# HOW ONE SUBMISSION FLOWS:
#
#   ┌──────────────────────────────────────────────────────────┐
#   │                  SubmissionPipeline.handle               │
#   │                                                          │
#   │  TOPIC 1: NORMALIZATION                                  │
#   │    RecordBuilder: flatten → timestamp → classify         │
#   │                 │ SubmissionRecord (built once)          │
#   │                 ▼                                        │
#   │  ┌─── with_retry ─────────── sink lock held ──────────┐  │
#   │  │ TOPIC 3: STORAGE                                   │  │
#   │  │   get_or_create_sink → SchemaManager.reconcile     │  │
#   │  │   → RecordWriter.append (first attempt only)       │  │
#   │  │ TOPIC 2: ANALYSIS                                  │  │
#   │  │   full_analysis → "<sink>_Analysis" rewritten      │  │
#   │  │   quick_analysis                                   │  │
#   │  │ TOPIC 4: NOTIFICATION                              │  │
#   │  │   build_message → Notifier.send                    │  │
#   │  │ TOPIC 3: STORAGE                                   │  │
#   │  │   RetentionPruner.prune                            │  │
#   │  └────────────────────────────────────────────────────┘  │
#   │                 │                                        │
#   │                 ▼                                        │
#   │       SubmissionResult  |  ExhaustedRetriesError         │
#   └──────────────────────────────────────────────────────────┘
#
# RETRIES AND PARTIAL EFFECTS:
#   The whole chain is retried, but the record is built once (so the
#   receipt timestamp is stable) and the append is remembered per
#   request: a retry after a successful append goes straight on to
#   the analysis instead of writing the row a second time.
#
# ==============================================

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional

from form_intake.analysis.classifier import SubmissionClassifier, load_classifier
from form_intake.analysis.snapshot import AnalysisSnapshot, QuickAnalysis
from form_intake.analysis.statistics import StatisticsEngine
from form_intake.config import AppConfig, load_config
from form_intake.errors import ExhaustedRetriesError
from form_intake.normalization.record_builder import RecordBuilder, SubmissionRecord
from form_intake.notification.message import build_message
from form_intake.notification.notifier import Notifier, create_notifier
from form_intake.retry import with_retry
from form_intake.storage.factory import create_store
from form_intake.storage.record_writer import RecordWriter
from form_intake.storage.retention import RetentionPruner
from form_intake.storage.schema_manager import SchemaManager
from form_intake.storage.sink_locks import SinkLockRegistry
from form_intake.storage.tabular_store import TabularStore

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    """What happened to one submission."""
    sink: str
    columns: List[str]
    row: List[Any]
    quick_analysis: QuickAnalysis
    rows_pruned: int = 0
    attempts: int = 1
    notified: bool = False

    def to_dict(self) -> dict:
        return {
            "sink": self.sink,
            "columns": list(self.columns),
            "row": list(self.row),
            "quick_analysis": self.quick_analysis.to_dict(),
            "rows_pruned": self.rows_pruned,
            "attempts": self.attempts,
            "notified": self.notified,
        }


@dataclass
class _RequestState:
    attempts: int = 0
    row: Optional[List[Any]] = None


class SubmissionPipeline:
    """
    Per-submission orchestrator: normalization, storage, analysis,
    notification and retention, wrapped in the retry envelope.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        store: Optional[TabularStore] = None,
        notifier: Optional[Notifier] = None,
        classifier: Optional[SubmissionClassifier] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """
        Initialize the pipeline and its components.

        Args:
            config: Application configuration. If None, loads from environment.
            store: Tabular store. If None, built from config.storage.
            notifier: Notification backend. If None, built from config.notification.
            classifier: Submission classifier. If None, loaded from config.classifier_class.
            clock: Returns the current UTC time; replaceable in tests.
        """
        self.config = config or load_config()
        self.store = store or create_store(self.config.storage)
        self.notifier = notifier or create_notifier(self.config.notification)
        self.classifier = classifier or load_classifier(self.config.classifier_class)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

        self._builder = RecordBuilder(self.classifier, clock=self._clock)
        self._schema = SchemaManager(self.store)
        self._writer = RecordWriter(self.store)
        self._statistics = StatisticsEngine(self.config.anomaly_threshold)
        self._pruner = RetentionPruner(self.store, clock=self._clock)
        self._locks = SinkLockRegistry()

    # ------------------------------------------------------------------
    # Naming
    # ------------------------------------------------------------------

    def sink_name_for(self, record: SubmissionRecord) -> str:
        return record.form_name or self.config.default_form_name

    def analysis_sink_for(self, sink: str) -> str:
        return f"{sink}{self.config.analysis_suffix}"

    @property
    def writer(self) -> RecordWriter:
        return self._writer

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def handle(self, submission: Mapping[str, Any]) -> SubmissionResult:
        """
        Process one submission end to end.

        Args:
            submission: Raw nested key/value mapping from the transport

        Returns:
            SubmissionResult for the stored row

        Raises:
            ExhaustedRetriesError: If every attempt failed
        """
        record = self._builder.build(submission)
        sink = self.sink_name_for(record)
        state = _RequestState()

        def process_submission() -> SubmissionResult:
            state.attempts += 1
            with self._locks.hold(sink):
                return self._process(sink, record, state)

        try:
            result = with_retry(
                process_submission,
                max_attempts=self.config.max_retries,
                delay_seconds=self.config.retry_delay_seconds
            )
        except Exception as e:
            logger.exception("Submission to '%s' failed after %d attempt(s)", sink, state.attempts)
            raise ExhaustedRetriesError(
                f"Submission to '{sink}' failed after {state.attempts} attempt(s): {e}",
                attempts=state.attempts,
                last_error=e
            ) from e

        logger.info(
            "Stored submission in '%s' (%d column(s), attempt %d, %d row(s) pruned)",
            sink, len(result.columns), result.attempts, result.rows_pruned
        )
        return result

    def analyze(self, sink: str) -> AnalysisSnapshot:
        """Recompute and rewrite the analysis sink for `sink`."""
        with self._locks.hold(sink):
            snapshot = self._full_analysis(sink)
        return snapshot

    def prune(self, sink: str) -> int:
        """Apply the retention period to `sink`. Returns rows deleted."""
        with self._locks.hold(sink):
            return self._pruner.prune(sink, self.config.data_retention_days)

    def close(self) -> None:
        self.store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _process(self, sink: str, record: SubmissionRecord, state: _RequestState) -> SubmissionResult:
        if self.store.get_or_create_sink(sink):
            logger.info("Created sink '%s'", sink)

        columns = self._schema.reconcile(sink, record.keys())
        if state.row is None:
            state.row = self._writer.append(sink, columns, record.fields)
        else:
            logger.info("Row already appended to '%s' on an earlier attempt, not appending again", sink)

        headers = self.store.get_headers(sink)
        rows = self.store.get_all_rows(sink)
        snapshot = self._statistics.full_analysis(headers, rows)
        self._statistics.write_snapshot(self.store, self.analysis_sink_for(sink), snapshot)
        quick = self._statistics.quick_analysis(headers, rows)

        notified = False
        if self.config.email_notification:
            message = build_message(record, quick, self.store.get_sink_reference_url(sink))
            self.notifier.send(self.config.email_address, message.subject, message.body)
            notified = True

        pruned = self._pruner.prune(sink, self.config.data_retention_days)

        return SubmissionResult(
            sink=sink,
            columns=list(columns),
            row=list(state.row),
            quick_analysis=quick,
            rows_pruned=pruned,
            attempts=state.attempts,
            notified=notified,
        )

    def _full_analysis(self, sink: str) -> AnalysisSnapshot:
        headers = self.store.get_headers(sink)
        rows = self.store.get_all_rows(sink)
        snapshot = self._statistics.full_analysis(headers, rows)
        self._statistics.write_snapshot(self.store, self.analysis_sink_for(sink), snapshot)
        return snapshot
