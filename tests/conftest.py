"""Pytest configuration for test isolation.

Two things are set up here:

- ``packages/``, ``libs/db/src`` and the repo root go on ``sys.path`` so
  the workspace packages and ``tests.helpers`` import without an install
  step.
- Every ``POLITICAL_FUND_REPORT_*`` variable (and ``DATABASE_URL``) is
  cleared per test, so a developer's ``.env`` or shell cannot change
  thresholds, encoding policy or the database a test sees.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

_ROOT = Path(__file__).resolve().parents[1]
sys.path[:0] = [
    p
    for p in (str(_ROOT / "packages"), str(_ROOT / "libs" / "db" / "src"), str(_ROOT))
    if p not in sys.path
]


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith("POLITICAL_FUND_REPORT_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("DATABASE_URL", raising=False)
