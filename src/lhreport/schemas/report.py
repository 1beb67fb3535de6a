"""Canonical report record and artifact descriptor models."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator
from pydantic.alias_generators import to_camel

PLACEHOLDER = "—"

# Chart slice colours, in the fixed metric order.
CHART_COLORS = ["#3B82F6", "#06b6d4", "#A21CAF", "#ec4899"]


class ScoreSet(BaseModel):
    """Lighthouse category scores for one device, each 0..100."""

    performance: int = 0
    accessibility: int = 0
    best_practices: int = 0
    seo: int = 0
    total_score: int = 0


class DeviceScores(BaseModel):
    mobile: ScoreSet = ScoreSet()
    desktop: ScoreSet = ScoreSet()


class DeviceSummary(BaseModel):
    mobile: str = ""
    desktop: str = ""


class VitalSet(BaseModel):
    """Core Web Vitals as display strings (unit-suffixed or a dash)."""

    fcp: str = PLACEHOLDER
    lcp: str = PLACEHOLDER
    tbt: str = PLACEHOLDER
    cls: str = PLACEHOLDER
    si: str = PLACEHOLDER


class DeviceVitals(BaseModel):
    mobile: VitalSet = VitalSet()
    desktop: VitalSet = VitalSet()


class ChartData(BaseModel):
    """Doughnut chart input: performance, accessibility, best practices, seo."""

    values: list[int] = Field(default_factory=lambda: [0, 0, 0, 0])
    total: int = 0
    colors: list[str] = Field(default_factory=lambda: list(CHART_COLORS))

    @field_validator("values")
    @classmethod
    def exactly_four(cls, v: list[int]) -> list[int]:
        if len(v) != 4:  # noqa: PLR2004
            raise ValueError(f"chart values must have 4 entries, got {len(v)}")
        return v


class ErrorFinding(BaseModel):
    """A problem synthesized from a failing metric flag."""

    title: str
    description: str
    severity: Literal["low", "medium", "high"]
    icon: str = ""


class Recommendation(BaseModel):
    """A categorized recommendation derived from one raw sentence."""

    category: str
    title: str
    description: str
    impact: str = ""
    effort: str = ""


class FinalRecommendation(BaseModel):
    title: str
    description: str
    impact: str = ""
    effort: str = ""


class MetricGroup(BaseModel):
    """Accessibility or best-practices block: score text plus 0/1 checks."""

    score: str = PLACEHOLDER
    metrics: dict[str, int | str] = {}
    recommendations: list[str] = []


class ReportRecord(BaseModel):
    """Fully-populated record consumed by the template assembler.

    Serialized with ``by_alias=True`` the keys match the template's
    placeholder vocabulary (``siteName``, ``chartDataMobile.total``, ...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    site_name: str = ""
    site_url: str = ""
    date: str = ""
    description: str = ""
    summary: DeviceSummary = DeviceSummary()
    lighthouse_metrics: DeviceScores = DeviceScores()
    seo_metrics: dict[str, int] | None = None
    web_vitals: DeviceVitals = DeviceVitals()
    chart_data_mobile: ChartData = ChartData()
    chart_data_desktop: ChartData = ChartData()
    errors: list[ErrorFinding] = []
    performance_recommendations: list[Recommendation] = []
    seo_recommendations_arr: list[Recommendation] = []
    accessibility_recommendations: list[Recommendation] = []
    final_recommendations: list[FinalRecommendation] = []
    accessibility: MetricGroup = MetricGroup()
    best_practices: MetricGroup = MetricGroup()
    contact_info: dict[str, str] = {}
    next_steps: str = ""


class ReportArtifact(BaseModel):
    """Descriptor of a rendered PDF returned to the caller."""

    path: str
    filename: str
    url: str
    size: int
    duration_ms: int

    @computed_field  # type: ignore[prop-decorator]
    @property
    def duration(self) -> str:
        return f"{self.duration_ms}ms"
