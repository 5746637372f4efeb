# ==============================================
# StatisticsEngine
# ==============================================
#
# PURPOSE:
#   Derive averages, anomalies and the submission trend from the
#   full row history of a sink. Everything here is recomputed from
#   scratch on each submission: O(rows × columns), which is fine for
#   form traffic but would need incremental aggregates at scale.
#
# NUMERIC COLUMNS:
#   A column counts as numeric only if EVERY row's value parses as a
#   finite number (see ValueParser.parse_number). A single empty or
#   textual cell removes the whole column from aggregation.
#
# ANOMALIES:
#   Population mean and population standard deviation (divide by the
#   row count). A value is anomalous when its distance from the mean
#   reaches `threshold` standard deviations. The comparison is done on
#   exact fractions of the squared quantities so a value sitting right
#   on the boundary is classified the same way on every platform.
#
# TREND:
#   Count of the last 10 rows vs the 10 before them. With fewer than
#   20 rows the "previous" window is partial; with 10 or fewer it is
#   empty and the trend is Stable.
#
# CLASS: ColumnStats
# ------------------
#   - from_values(name, values) -> ColumnStats   (classmethod)
#   - mean / std (properties)
#   - is_anomalous(value, threshold) -> bool
#
# CLASS: StatisticsEngine
# -----------------------
#   - numeric_columns(headers, rows) -> dict[str, ColumnStats]
#   - averages(headers, rows) -> dict[str, float]
#   - identify_trends(headers, rows) -> dict
#   - detect_anomalies(headers, rows) -> dict[str, list]
#   - submission_trend(rows) -> str
#   - quick_anomalies(headers, rows) -> list[str]
#   - full_analysis(headers, rows) -> AnalysisSnapshot
#   - quick_analysis(headers, rows) -> QuickAnalysis
#   - write_snapshot(store, sink_name, snapshot) -> None
#
# ==============================================

import logging
import math
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any, Dict, List, Sequence

from form_intake.normalization.value_parser import Number, ValueParser
from .snapshot import (
    SNAPSHOT_HEADERS,
    TREND_DECREASING,
    TREND_INCREASING,
    TREND_STABLE,
    AnalysisSnapshot,
    QuickAnalysis,
)

logger = logging.getLogger(__name__)

TREND_WINDOW = 10
TREND_CHANGE_PERCENT = 10


@dataclass
class ColumnStats:
    """Population statistics for one numeric column."""

    name: str
    values: List[Number] = field(default_factory=list)
    _exact_mean: Fraction = Fraction(0)
    _exact_variance: Fraction = Fraction(0)

    @classmethod
    def from_values(cls, name: str, values: List[Number]) -> "ColumnStats":
        if not values:
            raise ValueError(f"Column '{name}' has no values")
        exact = [Fraction(v) for v in values]
        mean = sum(exact) / len(exact)
        variance = sum((x - mean) ** 2 for x in exact) / len(exact)
        return cls(name=name, values=list(values), _exact_mean=mean, _exact_variance=variance)

    @property
    def mean(self) -> float:
        return float(self._exact_mean)

    @property
    def std(self) -> float:
        return math.sqrt(self._exact_variance)

    def is_anomalous(self, value: Number, threshold: float) -> bool:
        """
        Check whether `value` lies `threshold` or more standard deviations from the mean.

        A column without spread has no anomalies.
        """
        if self._exact_variance == 0:
            return False
        deviation = Fraction(value) - self._exact_mean
        return deviation * deviation >= Fraction(threshold) ** 2 * self._exact_variance


def _cell(row: Sequence[Any], index: int) -> Any:
    return row[index] if index < len(row) else ""


def _format_number(value: Number) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class StatisticsEngine:
    """Computes the full and quick analyses for a sink's rows."""

    def __init__(self, anomaly_threshold: float = 2.0):
        if anomaly_threshold <= 0:
            raise ValueError(f"anomaly_threshold must be > 0, got {anomaly_threshold}")
        self.anomaly_threshold = anomaly_threshold

    def numeric_columns(self, headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> Dict[str, ColumnStats]:
        """
        Find the columns whose every value is numeric.

        Args:
            headers: Column list of the sink
            rows: All data rows (header excluded)

        Returns:
            Ordered mapping column name → ColumnStats, in header order
        """
        columns: Dict[str, ColumnStats] = {}
        if not rows:
            return columns

        for index, header in enumerate(headers):
            if header in columns:
                continue
            parsed = [ValueParser.parse_number(_cell(row, index)) for row in rows]
            if any(value is None for value in parsed):
                continue
            columns[header] = ColumnStats.from_values(header, parsed)
        return columns

    def averages(self, headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> Dict[str, float]:
        return {name: stats.mean for name, stats in self.numeric_columns(headers, rows).items()}

    def identify_trends(self, headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> Dict[str, Any]:
        """Per-column trends for the full analysis. None are computed yet."""
        return {}

    def detect_anomalies(self, headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> Dict[str, List[Number]]:
        """
        List every anomalous value of every numeric column, in row order.

        Columns without anomalies map to an empty list.
        """
        return {
            name: [v for v in stats.values if stats.is_anomalous(v, self.anomaly_threshold)]
            for name, stats in self.numeric_columns(headers, rows).items()
        }

    def submission_trend(self, rows: Sequence[Any]) -> str:
        """
        Compare the last TREND_WINDOW rows with the window before them.

        Args:
            rows: All data rows, oldest first

        Returns:
            "Increasing", "Decreasing" or "Stable"
        """
        recent = len(rows[-TREND_WINDOW:])
        previous = len(rows[-2 * TREND_WINDOW:-TREND_WINDOW])
        if previous == 0:
            return TREND_STABLE

        change = (recent - previous) / previous * 100
        if change > TREND_CHANGE_PERCENT:
            return TREND_INCREASING
        if change < -TREND_CHANGE_PERCENT:
            return TREND_DECREASING
        return TREND_STABLE

    def quick_anomalies(self, headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> List[str]:
        """
        Test only the latest row against each numeric column's statistics.

        Returns:
            "header (value)" for each numeric column whose latest value is anomalous
        """
        flagged = []
        for name, stats in self.numeric_columns(headers, rows).items():
            latest = stats.values[-1]
            if stats.is_anomalous(latest, self.anomaly_threshold):
                flagged.append(f"{name} ({_format_number(latest)})")
        return flagged

    def full_analysis(self, headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> AnalysisSnapshot:
        return AnalysisSnapshot(
            total_submissions=len(rows),
            averages=self.averages(headers, rows),
            trends=self.identify_trends(headers, rows),
            anomalies=self.detect_anomalies(headers, rows),
        )

    def quick_analysis(self, headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> QuickAnalysis:
        return QuickAnalysis(
            total_submissions=len(rows),
            submission_trend=self.submission_trend(rows),
            anomalies=self.quick_anomalies(headers, rows),
        )

    def write_snapshot(self, store, sink_name: str, snapshot: AnalysisSnapshot) -> None:
        """
        Replace the contents of the analysis sink with `snapshot`.

        Args:
            store: TabularStore holding the analysis sink
            sink_name: Name of the companion analysis sink
            snapshot: Result of full_analysis()
        """
        if not store.sink_exists(sink_name):
            store.create_sink(sink_name)
        store.clear_sink(sink_name)
        store.set_headers(sink_name, list(SNAPSHOT_HEADERS))
        rows = snapshot.to_rows()
        for row in rows:
            store.append_row(sink_name, row)
        logger.debug("Wrote %d analysis rows to '%s'", len(rows), sink_name)
