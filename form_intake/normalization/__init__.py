# ==============================================
# TOPIC 1: NORMALIZATION
# ==============================================
#
# This package turns a raw, possibly nested submission into the
# flat Record that every later stage works with.
#
# Modules:
# --------
# - value_parser.py   → Parse cell values as numbers / timestamps
# - flattener.py      → Collapse nested mappings into dotted keys
# - record_builder.py → Flatten + receipt timestamp + classification
#
# ==============================================

from .value_parser import ValueParser
from .flattener import flatten
from .record_builder import RecordBuilder

__all__ = ["ValueParser", "flatten", "RecordBuilder"]
