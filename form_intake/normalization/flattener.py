# ==============================================
# Flattener
# ==============================================
#
# PURPOSE:
#   Collapse a nested submission into a single-level mapping whose
#   keys are dotted paths:
#     {"contact": {"email": "a@b.c"}} → {"contact.email": "a@b.c"}
#
# RULES:
# ------
#   1. Only nested mappings are descended into.
#   2. Lists / tuples are leaves and are kept intact, even when they
#      contain mappings.
#   3. An empty nested mapping contributes no keys.
#   4. The input is never mutated; key order follows the input.
#
# ==============================================

from collections.abc import Mapping
from typing import Any


def flatten(submission: Mapping, prefix: str = "") -> dict[str, Any]:
    """
    Flatten a nested mapping into dotted-path keys.

    Args:
        submission: Raw submission (nested key/value mapping)
        prefix: Key path of the mapping being flattened, "" at the top

    Returns:
        New flat dictionary
    """
    flattened: dict[str, Any] = {}
    for key, value in submission.items():
        compound_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, Mapping):
            flattened.update(flatten(value, compound_key))
        else:
            flattened[compound_key] = value
    return flattened
