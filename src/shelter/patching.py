#
# src/shelter/patching.py
#
"""
Replaces commands with mocks for the duration of a run.

Strategies:

- ``function``: an exported bash function (``BASH_FUNC_<name>%%``), seen by
  bash test commands calling ``name`` without a path. Overrides builtins.
- ``path``: a script in a private bin directory prepended to ``PATH``.
  Does not override shell builtins.
- ``mount``: a script bind-mounted over the real binary. Needs root and
  affects the whole system until unpatched.
"""

import shutil
import subprocess
import tempfile
from collections.abc import Iterable, Mapping
from pathlib import Path

import structlog

from shelter.config.models import PATCH_STRATEGIES, PatchConfig
from shelter.exceptions import PatchError
from shelter.telemetry import StructLogger

log: StructLogger = structlog.get_logger("patching")

SCRIPT_TEMPLATE = """#!/usr/bin/env bash

set -euo pipefail

{command}
"""


class CommandPatcher:
    """Holds the active patches; use as a context manager to guarantee cleanup."""

    def __init__(self) -> None:
        self._temp_dir = Path(tempfile.mkdtemp(prefix="shelter-"))
        self.bin_dir = self._temp_dir / "bin"
        self.bin_dir.mkdir()
        # name -> (strategy, function body or script path)
        self._patches: dict[str, tuple[str, str]] = {}

    @property
    def patched(self) -> list[str]:
        return list(self._patches)

    def _write_script(self, path: Path, command: str) -> None:
        path.write_text(SCRIPT_TEMPLATE.format(command=command), encoding="utf-8")
        path.chmod(0o755)

    def patch(self, strategy: str, name: str, command: str) -> None:
        if name in self._patches:
            raise PatchError(f"Command {name} is already patched")
        if strategy not in PATCH_STRATEGIES:
            raise PatchError(f"Unsupported strategy {strategy}")

        if strategy == "function":
            if "/" in name:
                raise PatchError(f"Function patches need a bare command name, got {name}")
            artifact = f"() {{ {command}; }}"
        elif strategy == "path":
            if "/" in name:
                raise PatchError(f"Path patches need a bare command name, got {name}")
            script = self.bin_dir / name
            self._write_script(script, command)
            artifact = str(script)
        else:
            if not Path(name).is_absolute():
                raise PatchError(f"Mount patches need an absolute path, got {name}")
            script = Path(tempfile.mkstemp(dir=self._temp_dir)[1])
            self._write_script(script, command)
            result = subprocess.run(["mount", "--bind", str(script), name], capture_output=True, text=True)
            if result.returncode != 0:
                script.unlink(missing_ok=True)
                raise PatchError(f"Failed to mount a patch over {name}: {result.stderr.strip()}")
            artifact = str(script)

        self._patches[name] = (strategy, artifact)
        log.info("Command patched", name=name, strategy=strategy, emoji_key="patch")

    def unpatch(self, name: str) -> None:
        if name not in self._patches:
            raise PatchError(f"Command {name} is not patched")
        strategy, artifact = self._patches.pop(name)
        if strategy == "mount":
            result = subprocess.run(["umount", name], capture_output=True, text=True)
            if result.returncode != 0:
                log.error("Failed to remove patch mount", name=name, stderr=result.stderr.strip())
            Path(artifact).unlink(missing_ok=True)
        elif strategy == "path":
            Path(artifact).unlink(missing_ok=True)
        log.info("Command unpatched", name=name, strategy=strategy, emoji_key="patch")

    def apply(self, environ: Mapping[str, str]) -> dict[str, str]:
        """Returns a copy of ``environ`` that sees the active patches."""
        result = dict(environ)
        strategies = {strategy for strategy, _ in self._patches.values()}
        if "path" in strategies:
            current = result.get("PATH")
            result["PATH"] = f"{self.bin_dir}:{current}" if current else str(self.bin_dir)
        for name, (strategy, artifact) in self._patches.items():
            if strategy == "function":
                result[f"BASH_FUNC_{name}%%"] = artifact
        return result

    def cleanup(self) -> None:
        for name in list(self._patches):
            self.unpatch(name)
        shutil.rmtree(self._temp_dir, ignore_errors=True)

    def __enter__(self) -> "CommandPatcher":
        return self

    def __exit__(self, *exc_info) -> None:
        self.cleanup()


def patcher_from_config(patches: Iterable[PatchConfig]) -> CommandPatcher:
    """Creates a patcher with every configured patch applied."""
    patcher = CommandPatcher()
    try:
        for patch in patches:
            patcher.patch(patch.strategy, patch.name, patch.command)
    except PatchError:
        patcher.cleanup()
        raise
    return patcher


# 🔼⚙️
