#
# src/shelter/formatters/__init__.py
#
"""
Formatters turning the event stream into reports.
"""

from .core import (
    EXIT_ERRORS,
    EXIT_FAILURES,
    EXIT_FRAMEWORK_ERROR,
    EXIT_OK,
    BaseSink,
    Block,
    BlockState,
    CaseStatus,
    EventStreamFormatter,
    FormatterSink,
    Totals,
    format_stream,
)
from .human import HumanSink, human_format, write_human
from .junit import JUnitSink, structured_format, write_structured

__all__ = [
    "EXIT_ERRORS",
    "EXIT_FAILURES",
    "EXIT_FRAMEWORK_ERROR",
    "EXIT_OK",
    "BaseSink",
    "Block",
    "BlockState",
    "CaseStatus",
    "EventStreamFormatter",
    "FormatterSink",
    "HumanSink",
    "JUnitSink",
    "Totals",
    "format_stream",
    "human_format",
    "structured_format",
    "write_human",
    "write_structured",
]

# 🔼⚙️
