# ==============================================
# CLI - Command Line Entry Point
# ==============================================
#
# PURPOSE:
#   Run the webhook server, or drive the pipeline by hand.
#
# COMMANDS:
# ---------
# 1. Serve the webhook:
#    form-intake serve --host 0.0.0.0 --port 8000
#
# 2. Push one JSON submission through the pipeline:
#    form-intake submit submission.json
#    echo '{"form_name": "Contact"}' | form-intake submit -
#
# 3. Rewrite the analysis sink of a form:
#    form-intake analyze Contact
#
# 4. Apply the retention period to a form:
#    form-intake prune Contact
#
# Every command reads its settings from the environment / .env
# (see form_intake/config.py). --env-file points at another .env.
#
# ==============================================

import argparse
import json
import logging
import sys
from typing import List, Optional

from form_intake.config import load_config
from form_intake.errors import ConfigError, ExhaustedRetriesError
from form_intake.pipeline import SubmissionPipeline

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Send every log record to stdout with one shared format."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stdout,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="form-intake",
        description="Form submission intake, analysis and notification pipeline"
    )
    parser.add_argument("--env-file", default=None, help="Path to a .env file")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the webhook server")
    serve.add_argument("--host", default=None, help="Bind address (default: WEBHOOK_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: WEBHOOK_PORT)")

    submit = sub.add_parser("submit", help="Process one JSON submission")
    submit.add_argument("file", help="JSON file holding one object, or - for stdin")

    analyze = sub.add_parser("analyze", help="Rewrite the analysis sink of a form")
    analyze.add_argument("sink", help="Sink (form) name")

    prune = sub.add_parser("prune", help="Delete rows older than DATA_RETENTION_DAYS")
    prune.add_argument("sink", help="Sink (form) name")

    return parser


def _read_submission(path: str) -> dict:
    if path == "-":
        payload = json.load(sys.stdin)
    else:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    if not isinstance(payload, dict):
        raise ValueError(f"Expected a JSON object, got {type(payload).__name__}")
    return payload


def _serve(pipeline: SubmissionPipeline, host: Optional[str], port: Optional[int]) -> int:
    from form_intake.webhook import create_app

    app = create_app(pipeline)
    host = host or pipeline.config.webhook_host
    port = port or pipeline.config.webhook_port
    logger.info("Webhook listening on %s:%s", host, port)
    app.run(host=host, port=port, threaded=True)
    return 0


def _submit(pipeline: SubmissionPipeline, path: str) -> int:
    try:
        submission = _read_submission(path)
    except (OSError, ValueError) as e:
        print(f"✗ Could not read submission: {e}", file=sys.stderr)
        return 2

    try:
        result = pipeline.handle(submission)
    except ExhaustedRetriesError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1

    print(f"✓ Stored in '{result.sink}' after {result.attempts} attempt(s)")
    print(json.dumps(result.to_dict(), indent=2, default=str))
    return 0


def _analyze(pipeline: SubmissionPipeline, sink: str) -> int:
    if not pipeline.store.sink_exists(sink):
        print(f"✗ Sink '{sink}' does not exist", file=sys.stderr)
        return 1
    snapshot = pipeline.analyze(sink)
    print(f"✓ Wrote analysis to '{pipeline.analysis_sink_for(sink)}'")
    print(json.dumps(snapshot.to_dict(), indent=2, default=str))
    return 0


def _prune(pipeline: SubmissionPipeline, sink: str) -> int:
    if not pipeline.store.sink_exists(sink):
        print(f"✗ Sink '{sink}' does not exist", file=sys.stderr)
        return 1
    deleted = pipeline.prune(sink)
    print(f"✓ Deleted {deleted} row(s) from '{sink}'")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.env_file)
    except ConfigError as e:
        print(f"✗ Invalid configuration: {e}", file=sys.stderr)
        return 2
    configure_logging(config.log_level)

    with SubmissionPipeline(config) as pipeline:
        if args.command == "serve":
            return _serve(pipeline, args.host, args.port)
        if args.command == "submit":
            return _submit(pipeline, args.file)
        if args.command == "analyze":
            return _analyze(pipeline, args.sink)
        return _prune(pipeline, args.sink)


if __name__ == "__main__":
    sys.exit(main())
