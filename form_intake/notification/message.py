from dataclasses import dataclass

from form_intake.analysis.snapshot import QuickAnalysis
from form_intake.normalization.record_builder import SubmissionRecord


@dataclass(frozen=True)
class NotificationMessage:
    subject: str
    body: str


def render_subject(record: SubmissionRecord) -> str:
    form = record.form_name or "Form"
    return f"New {record.classification.priority} Priority Submission: {form}"


def render_body(record: SubmissionRecord, analysis: QuickAnalysis, sink_url: str) -> str:
    """
    Render the plain-text notification body.

    The anomalies line is only present when the latest row was flagged.
    """
    classification = record.classification
    lines = [
        "A new submission has been received and recorded.",
        "",
        f"Form Name: {record.form_name or 'N/A'}",
        f"Submission Time: {record.timestamp}",
        f"Priority: {classification.priority}",
        f"Category: {classification.category}",
        f"Sentiment: {classification.sentiment}",
        "",
        "Quick Analysis:",
        f"- Total Submissions: {analysis.total_submissions}",
        f"- Submission Trend: {analysis.submission_trend}",
    ]
    if analysis.anomalies:
        lines.append(f"- Anomalies Detected: {', '.join(analysis.anomalies)}")
    lines.extend([
        "",
        f"Sink URL: {sink_url}",
        "",
        "This is an automated notification. Please review the submission and take appropriate action.",
    ])
    return "\n".join(lines)


def build_message(record: SubmissionRecord, analysis: QuickAnalysis, sink_url: str) -> NotificationMessage:
    return NotificationMessage(
        subject=render_subject(record),
        body=render_body(record, analysis, sink_url),
    )
