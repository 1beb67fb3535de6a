"""Audit payload sources — local JSON files and HTTP(S) URLs."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import httpx

from lhreport.errors import ValidationError

logger = logging.getLogger(__name__)

_FETCH_TIMEOUT = 30


def unwrap(payload: Any) -> Any:
    """Accept both a bare audit record and a ``{"data": {...}}`` request body."""
    if (
        isinstance(payload, dict)
        and isinstance(payload.get("data"), dict)
        and "general_info" not in payload
    ):
        return payload["data"]
    return payload


def _decode(text: str, origin: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(
            "Invalid data format", [f"{origin}: not valid JSON ({exc.msg} at line {exc.lineno})"]
        ) from exc


def read_audit_file(path: str | Path) -> Any:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Audit file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ValidationError(
            "Invalid data format", [f"{path}: not UTF-8 text ({exc.reason} at byte {exc.start})"]
        ) from exc
    return unwrap(_decode(text, str(path)))


async def fetch_audit(url: str, *, timeout: float = _FETCH_TIMEOUT) -> Any:
    """GET ``url`` and decode its JSON body.

    Raises ``httpx.HTTPError`` subclasses for transport failures and
    non-2xx responses.
    """
    async with httpx.AsyncClient(follow_redirects=True, timeout=timeout) as http:
        resp = await http.get(url, headers={"Accept": "application/json"})
        resp.raise_for_status()
    logger.info("Fetched audit data from %s (HTTP %d)", url, resp.status_code)
    return unwrap(_decode(resp.text, url))


async def load_audit(source: str) -> Any:
    """Load an audit payload from a file path or an http(s) URL."""
    if source.startswith(("http://", "https://")):
        return await fetch_audit(source)
    return read_audit_file(source)
