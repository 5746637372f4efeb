# ==============================================
# Form Intake Pipeline
# ==============================================
#
# Package Structure (4 Topics + Orchestrator):
#
# form_intake/
# ├── normalization/    # Topic 1: Flatten submissions into records
# ├── analysis/         # Topic 2: Classify records, compute statistics
# ├── storage/          # Topic 3: Tabular sinks, schema growth, retention
# ├── notification/     # Topic 4: Render and deliver submission summaries
# ├── config.py         # Configuration management
# ├── errors.py         # Error kinds surfaced by the pipeline
# ├── retry.py          # Bounded retry envelope
# ├── pipeline.py       # SubmissionPipeline orchestrator
# ├── webhook.py        # Flask webhook endpoint
# └── cli.py            # Command line entry point
#
# ==============================================

__version__ = "0.1.0"
