#
# src/shelter/__init__.py
#
"""
Shelter: runs shell test cases in isolation and reports them as JUnit XML
or as a human-readable report.
"""

from shelter.exceptions import (
    ConfigurationError,
    EventStreamError,
    MalformedCommandError,
    PatchError,
    ShelterError,
)
from shelter.formatters import human_format, structured_format
from shelter.runtime import (
    CollectingEmitter,
    Registry,
    RunContext,
    StreamEmitter,
    run_case,
    run_class,
    run_suite,
    run_suites,
)
from shelter.versions import __version__, supported_versions

__all__ = [
    "CollectingEmitter",
    "ConfigurationError",
    "EventStreamError",
    "MalformedCommandError",
    "PatchError",
    "Registry",
    "RunContext",
    "ShelterError",
    "StreamEmitter",
    "__version__",
    "human_format",
    "run_case",
    "run_class",
    "run_suite",
    "run_suites",
    "structured_format",
    "supported_versions",
]

# 🔼⚙️
