#
# config/__init__.py
#
"""
Configuration handling sub-package for shelter.

Exports the loading functions and core configuration models.
"""

from .loader import build_config, default_config, load_config
from .models import (
    DEFAULT_SHELL,
    CaseStep,
    ClassStep,
    Command,
    ErrexitPolicy,
    GlobalConfig,
    PatchConfig,
    ShelterConfig,
    SuiteConfig,
    SuiteStep,
)

__all__ = [
    "DEFAULT_SHELL",
    "CaseStep",
    "ClassStep",
    "Command",
    "ErrexitPolicy",
    "GlobalConfig",
    "PatchConfig",
    "ShelterConfig",
    "SuiteConfig",
    "SuiteStep",
    "build_config",
    "default_config",
    "load_config",
]

# 🔼⚙️
