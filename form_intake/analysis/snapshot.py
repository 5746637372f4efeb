# ==============================================
# Snapshot (Data Classes)
# ==============================================
#
# PURPOSE:
#   Data classes that represent the OUTPUT of the statistics engine.
#   Kept apart from the engine so storage and notification code can
#   use them without importing the computation.
#
# CLASSES:
# --------
# - AnalysisSnapshot (dataclass)
#     Full analysis of a sink, rewritten into the companion
#     "<sink>_Analysis" sink on every submission.
#
#     Attributes:
#     -----------
#     - total_submissions: int
#     - averages: dict[str, float]          → numeric column → mean
#     - trends: dict[str, Any]              → always empty for now
#     - anomalies: dict[str, list[Number]]  → numeric column → outliers
#
#     Methods:
#     --------
#     - to_rows() -> list[list]  → ["Metric", "Value"] body rows
#     - to_dict() -> dict
#
# - QuickAnalysis (dataclass)
#     Short summary used only for the notification body.
#
#     Attributes:
#     -----------
#     - total_submissions: int
#     - submission_trend: str   → "Increasing" | "Decreasing" | "Stable"
#     - anomalies: list[str]    → "header (value)" for the latest row
#
# ==============================================

from dataclasses import dataclass, field
from typing import Any, Dict, List, Union

Number = Union[int, float]

SNAPSHOT_HEADERS = ["Metric", "Value"]

TREND_INCREASING = "Increasing"
TREND_DECREASING = "Decreasing"
TREND_STABLE = "Stable"


@dataclass
class AnalysisSnapshot:
    """Full, regenerable analysis of one sink."""

    total_submissions: int = 0
    averages: Dict[str, float] = field(default_factory=dict)
    trends: Dict[str, Any] = field(default_factory=dict)
    anomalies: Dict[str, List[Number]] = field(default_factory=dict)

    def to_rows(self) -> List[List[Any]]:
        """
        Lay the snapshot out as Metric/Value rows.

        Order: total, one row per average, one per trend entry, then one
        row per individual anomalous value numbered within its column.

        Returns:
            Rows to write below the ["Metric", "Value"] header
        """
        rows: List[List[Any]] = [["Total Submissions", self.total_submissions]]
        rows.extend([f"Average {name}", value] for name, value in self.averages.items())
        rows.extend([f"Trend: {name}", value] for name, value in self.trends.items())
        for name, values in self.anomalies.items():
            rows.extend(
                [f"Anomaly in {name} #{ordinal}", value]
                for ordinal, value in enumerate(values, start=1)
            )
        return rows

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_submissions": self.total_submissions,
            "averages": dict(self.averages),
            "trends": dict(self.trends),
            "anomalies": {name: list(values) for name, values in self.anomalies.items()},
        }


@dataclass
class QuickAnalysis:
    """Notification-sized summary of a sink after the latest append."""

    total_submissions: int = 0
    submission_trend: str = TREND_STABLE
    anomalies: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_submissions": self.total_submissions,
            "submission_trend": self.submission_trend,
            "anomalies": list(self.anomalies),
        }
