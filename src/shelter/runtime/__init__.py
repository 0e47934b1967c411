#
# src/shelter/runtime/__init__.py
#
"""
Test execution sub-package: capture, case/class driving and aggregation.
"""

from .aggregate import CollectionSummary, SuiteSummary, run_suite, run_suites
from .capture import ASSERT_FD_VAR, capture
from .context import CollectingEmitter, RunContext, StreamEmitter
from .driver import run_case, run_class
from .plan import build_context
from .registry import Registry

__all__ = [
    "ASSERT_FD_VAR",
    "CollectingEmitter",
    "CollectionSummary",
    "Registry",
    "RunContext",
    "StreamEmitter",
    "SuiteSummary",
    "build_context",
    "capture",
    "run_case",
    "run_class",
    "run_suite",
    "run_suites",
]

# 🔼⚙️
