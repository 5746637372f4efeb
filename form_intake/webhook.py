# ==============================================
# Webhook - HTTP transport
# ==============================================
#
# PURPOSE:
#   Expose the pipeline to form builders that POST submissions.
#
# ROUTES:
# -------
#   GET  /   → liveness text
#   POST /   → one submission; query parameters, form fields and a
#              JSON object body are merged (JSON wins on conflicts)
#
# STATUS CODES:
# -------------
#   200  processed
#   400  body is JSON but not an object
#   500  ExhaustedRetriesError (every attempt failed)
#
# ==============================================

import logging
from typing import Any, Dict

from flask import Blueprint, Flask, Response, request

from form_intake.errors import ExhaustedRetriesError, ValidationError
from form_intake.pipeline import SubmissionPipeline

logger = logging.getLogger(__name__)

LIVENESS_TEXT = "Webhook URL is active and ready to receive requests."
SUCCESS_TEXT = "Form data received, processed, and analyzed successfully."
FAILURE_TEXT = "Form data could not be processed. Please try again later."


def _text(body: str, status: int = 200) -> Response:
    return Response(body, status=status, mimetype="text/plain")


def extract_submission() -> Dict[str, Any]:
    """
    Collect the submission from the current request.

    Raises:
        ValidationError: If the body is JSON but not a key/value object
    """
    submission: Dict[str, Any] = dict(request.args.items())
    submission.update(request.form.items())

    if request.is_json:
        payload = request.get_json(silent=True)
        if payload is None and request.get_data():
            raise ValidationError("Request body is not valid JSON")
        if payload is not None and not isinstance(payload, dict):
            raise ValidationError(f"Expected a JSON object, got {type(payload).__name__}")
        submission.update(payload or {})
    return submission


def create_blueprint(pipeline: SubmissionPipeline) -> Blueprint:
    bp = Blueprint("form_intake_webhook", __name__)

    @bp.route("/", methods=["GET"])
    def liveness():
        return _text(LIVENESS_TEXT)

    @bp.route("/", methods=["POST"])
    def receive_submission():
        try:
            submission = extract_submission()
        except ValidationError as e:
            logger.warning("Rejected submission: %s", e)
            return _text(str(e), 400)

        try:
            pipeline.handle(submission)
        except ExhaustedRetriesError as e:
            logger.error("Giving up on submission after %d attempt(s)", e.attempts)
            return _text(FAILURE_TEXT, 500)
        return _text(SUCCESS_TEXT)

    return bp


def create_app(pipeline: SubmissionPipeline) -> Flask:
    app = Flask(__name__)
    app.config["FORM_INTAKE_CONFIG"] = pipeline.config
    app.register_blueprint(create_blueprint(pipeline))
    return app
