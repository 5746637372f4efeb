# ==============================================
# Classifier
# ==============================================
#
# PURPOSE:
#   Attach category / sentiment / priority labels to a Record.
#   The priority feeds the notification subject and the High
#   priority highlight in the record writer.
#
# WHY THIS IS AN INTERFACE:
#   The labels are placeholders today. Anyone with a real rule set
#   or model implements SubmissionClassifier and points
#   CLASSIFIER_CLASS at it; the pipeline shape does not change.
#
# CLASSES:
# --------
# - ClassificationResult (dataclass)
#     category / sentiment / priority strings
#
# - SubmissionClassifier (ABC)
#     classify(record) -> ClassificationResult      (abstract)
#     safe_classify(record) -> ClassificationResult (never raises)
#
# - DefaultClassifier
#     Always "General" / "Neutral" / "Medium".
#
# FUNCTION:
# ---------
# - load_classifier(class_path: str) -> SubmissionClassifier
#     Import "package.module.ClassName", verify it subclasses
#     SubmissionClassifier, instantiate it with no arguments.
#
# ==============================================

import importlib
import logging
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from typing import Any, Dict

logger = logging.getLogger(__name__)

PRIORITY_LABELS = ("High", "Medium", "Low")


@dataclass(frozen=True)
class ClassificationResult:
    """Labels assigned to one submission."""
    category: str = "General"
    sentiment: str = "Neutral"
    priority: str = "Medium"

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


DEFAULT_CLASSIFICATION = ClassificationResult()


class SubmissionClassifier(ABC):
    """Strategy interface for labelling records."""

    @abstractmethod
    def classify(self, record: Dict[str, Any]) -> ClassificationResult:
        """
        Label a flattened record.

        Args:
            record: Flat record (dotted keys → values)

        Returns:
            ClassificationResult for the record
        """

    def safe_classify(self, record: Dict[str, Any]) -> ClassificationResult:
        """
        Run classify() but fall back to the default labels on failure.

        A broken classifier must never stop a submission from being stored.
        """
        try:
            result = self.classify(record)
        except Exception:
            logger.exception("%s failed, using default labels", type(self).__name__)
            return DEFAULT_CLASSIFICATION
        if not isinstance(result, ClassificationResult):
            logger.warning(
                "%s returned %r instead of a ClassificationResult, using default labels",
                type(self).__name__,
                result,
            )
            return DEFAULT_CLASSIFICATION
        return result


class DefaultClassifier(SubmissionClassifier):
    """Assigns the same labels to every record."""

    def classify(self, record: Dict[str, Any]) -> ClassificationResult:
        return DEFAULT_CLASSIFICATION


def load_classifier(class_path: str) -> SubmissionClassifier:
    """
    Dynamically import and instantiate a classifier.

    Args:
        class_path: Dotted path, e.g. "myproject.rules.KeywordClassifier".
                    Empty string selects DefaultClassifier.

    Returns:
        SubmissionClassifier instance

    Raises:
        ImportError: If the module or class cannot be imported
        TypeError: If the class does not subclass SubmissionClassifier
    """
    if not class_path:
        return DefaultClassifier()

    module_name, _, class_name = class_path.rpartition(".")
    if not module_name:
        raise ImportError(f"Classifier path '{class_path}' must be 'module.ClassName'")

    module = importlib.import_module(module_name)
    try:
        cls = getattr(module, class_name)
    except AttributeError:
        raise ImportError(f"Module '{module_name}' has no attribute '{class_name}'") from None

    if not (isinstance(cls, type) and issubclass(cls, SubmissionClassifier)):
        raise TypeError(f"{class_path} is not a SubmissionClassifier subclass")

    logger.info("Using classifier %s", class_path)
    return cls()
