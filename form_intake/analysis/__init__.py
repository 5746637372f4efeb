# ==============================================
# TOPIC 2: ANALYSIS & CLASSIFICATION
# ==============================================
#
# This package labels each record and derives the statistics that
# are written to the analysis sink and quoted in notifications.
#
# Two-step process:
#   Step 1 (Classification): Record → category / sentiment / priority
#   Step 2 (Statistics):     Sink rows → averages, anomalies, trend
#
# Modules:
# --------
# - classifier.py  → Pluggable labelling strategy
# - snapshot.py    → AnalysisSnapshot and QuickAnalysis data classes
# - statistics.py  → StatisticsEngine (full + quick analysis)
#
# ==============================================

from .classifier import (
    ClassificationResult,
    DefaultClassifier,
    SubmissionClassifier,
    load_classifier,
)
from .snapshot import AnalysisSnapshot, QuickAnalysis
from .statistics import ColumnStats, StatisticsEngine

__all__ = [
    "ClassificationResult",
    "DefaultClassifier",
    "SubmissionClassifier",
    "load_classifier",
    "AnalysisSnapshot",
    "QuickAnalysis",
    "ColumnStats",
    "StatisticsEngine",
]
