import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from form_intake.analysis.classifier import (
    ClassificationResult,
    DefaultClassifier,
    SubmissionClassifier,
)
from .flattener import flatten

FORM_NAME_FIELD = "form_name"
TIMESTAMP_FIELD = "timestamp"
PROCESSED_DATA_FIELD = "processed_data"


@dataclass
class SubmissionRecord:
    """
    One flattened, classified submission.

    `fields` is what gets written to the sink: the dotted submission
    keys in arrival order, then `timestamp`, then `processed_data`.
    """
    fields: dict[str, Any]
    classification: ClassificationResult
    received_at: datetime
    form_name: Optional[str] = None

    @property
    def timestamp(self) -> str:
        return self.fields[TIMESTAMP_FIELD]

    def keys(self) -> list[str]:
        return list(self.fields.keys())


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a trailing Z."""
    utc = moment.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class RecordBuilder:
    """Flatten a submission, stamp it, and attach its classification."""

    def __init__(
        self,
        classifier: Optional[SubmissionClassifier] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        self.classifier = classifier or DefaultClassifier()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def build(self, submission: Mapping) -> SubmissionRecord:
        """
        Build the Record for one submission.

        Args:
            submission: Raw nested key/value mapping

        Returns:
            SubmissionRecord ready for the schema manager
        """
        fields = flatten(submission)
        received_at = self._clock()
        fields[TIMESTAMP_FIELD] = format_timestamp(received_at)

        classification = self.classifier.safe_classify(fields)
        fields[PROCESSED_DATA_FIELD] = json.dumps(classification.to_dict())

        form_name = fields.get(FORM_NAME_FIELD)
        return SubmissionRecord(
            fields=fields,
            classification=classification,
            received_at=received_at,
            form_name=str(form_name) if form_name not in (None, "") else None,
        )
