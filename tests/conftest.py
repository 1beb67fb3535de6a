"""Shared test fixtures."""

from __future__ import annotations

import copy
import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import pytest

from lhreport.shared.renderer import PageOptions

# Root of the test fixtures
FIXTURES_DIR = Path(__file__).parent / "fixtures"

_SAMPLE = json.loads((FIXTURES_DIR / "audit.json").read_text())


@pytest.fixture
def sample_audit() -> dict[str, Any]:
    """A complete audit payload (fresh copy per test)."""
    return copy.deepcopy(_SAMPLE)


class FakeRenderer:
    """Stands in for PdfRenderer; records calls and returns canned bytes."""

    def __init__(self, pdf: bytes = b"%PDF-1.7 fake", error: Exception | None = None) -> None:
        self.pdf = pdf
        self.error = error
        self.calls: list[dict[str, Any]] = []
        self.entered = 0
        self.exited = 0

    async def render(
        self, html: str, options: PageOptions, *, base_dir: Path, name: str = "report"
    ) -> bytes:
        self.calls.append({"html": html, "options": options, "base_dir": base_dir, "name": name})
        if self.error is not None:
            raise self.error
        return self.pdf

    @asynccontextmanager
    async def session(self):
        self.entered += 1
        try:
            yield self
        finally:
            self.exited += 1


@pytest.fixture
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()
