"""Each entry point imports cleanly in a fresh interpreter, whatever is imported first."""

from __future__ import annotations

import subprocess
import sys

import pytest


@pytest.mark.parametrize(
    "module",
    [
        "progress89.model",
        "progress89.auth",
        "progress89.auth.jwt",
        "progress89.core",
        "progress89.storage.table",
        "progress89.web.gradebook.main",
    ],
)
def test_module_imports_first(module: str) -> None:
    result = subprocess.run([sys.executable, "-c", f"import {module}"], capture_output=True, text=True)
    assert result.returncode == 0, result.stderr
