"""Pydantic models for the raw audit payload (strict request validation).

Normalization never needs these since it is total over any JSON object. They
back the opt-in ``strict`` mode and the ``lhreport validate`` command,
which reject payloads an upstream producer should never send.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from lhreport.errors import ValidationError


class GeneralInfo(BaseModel):
    """Site identity block, the only required section."""

    model_config = ConfigDict(extra="allow")

    site_name: str
    site_url: str
    audit_date: str
    site_description: str = ""

    @field_validator("site_url")
    @classmethod
    def must_be_uri(cls, v: str) -> str:
        parsed = urlparse(v)
        if not parsed.scheme or not (parsed.netloc or parsed.path):
            raise ValueError("must be a valid uri")
        return v


class DeviceScores(BaseModel):
    """Lighthouse category scores for one device profile."""

    model_config = ConfigDict(extra="allow")

    total_score: float | None = Field(default=None, ge=0, le=100)
    performance: float | None = Field(default=None, ge=0, le=100)
    accessibility: float | None = Field(default=None, ge=0, le=100)
    best_practices: float | None = Field(default=None, ge=0, le=100)
    seo: float | None = Field(default=None, ge=0, le=100)
    summary: str = ""


class LighthouseScores(BaseModel):
    model_config = ConfigDict(extra="allow")

    mobile: DeviceScores | None = None
    desktop: DeviceScores | None = None


class AuditRecord(BaseModel):
    """Top-level audit payload. Unknown sections are kept, not rejected."""

    model_config = ConfigDict(extra="allow")

    general_info: GeneralInfo
    lighthouse_scores: LighthouseScores | None = None
    performance_metrics: dict[str, Any] | None = None
    seo_analysis: dict[str, Any] | None = None
    accessibility_best_practices: dict[str, Any] | None = None
    final_conclusion: dict[str, Any] | None = None


def _format_error(err: dict[str, Any]) -> str:
    loc = ".".join(str(part) for part in err.get("loc", ()))
    return f"{loc}: {err.get('msg', 'invalid value')}" if loc else err.get("msg", "invalid value")


def validate_audit_record(data: Any) -> AuditRecord:
    """Validate ``data`` against the audit schema.

    Raises :class:`lhreport.errors.ValidationError` with one detail line
    per failing field.
    """
    if not isinstance(data, dict):
        raise ValidationError(
            "Invalid data format",
            [f"audit record must be a JSON object, got {type(data).__name__}"],
        )
    try:
        return AuditRecord.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(
            "Invalid data format",
            [_format_error(err) for err in exc.errors()],
        ) from exc
