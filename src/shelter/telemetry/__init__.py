#
# src/shelter/telemetry/__init__.py
#
"""
Logging setup for shelter.
"""

from .logger import StructLogger, setup_logging

__all__ = ["StructLogger", "setup_logging"]

# 🔼⚙️
