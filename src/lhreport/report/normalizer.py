"""Map a raw audit payload onto the canonical ReportRecord.

``normalize`` is total: any JSON value goes in, a fully-populated record
comes out. Every "is this field present and usable" decision lives here so
fragment builders and the assembler never re-check.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any

from lhreport.schemas.report import (
    PLACEHOLDER,
    ChartData,
    DeviceScores,
    DeviceSummary,
    DeviceVitals,
    ErrorFinding,
    FinalRecommendation,
    MetricGroup,
    Recommendation,
    ReportRecord,
    ScoreSet,
    VitalSet,
)

_FIRST_INT = re.compile(r"\d+")
_SENTENCE_END = re.compile(r"[.!?]")

SCORE_KEYS = ("performance", "accessibility", "best_practices", "seo")
VITAL_KEYS = ("fcp", "lcp", "tbt", "cls", "si")
ACCESSIBILITY_METRIC_KEYS = ("color_contrast", "aria_attributes", "semantic_elements")
BEST_PRACTICES_METRIC_KEYS = ("https", "deprecations", "errors_in_console", "third_party_cookies")

# (section, flag, title, description, severity, icon); emitted in this order
# when the flag is 0.
ERROR_CATALOG: list[tuple[str, str, str, str, str, str]] = [
    ("seo", "link_text", "Incorrect link texts",
     "Some links have non-informative text.", "medium", "link"),
    ("seo", "is_crawlable", "Site closed from indexing",
     "Check robots.txt and meta tags to open indexing.", "high", "robot"),
    ("seo", "meta_description", "Missing meta descriptions",
     "Add informative meta descriptions to key pages.", "medium", "tag"),
    ("accessibility", "color_contrast", "Poor color contrast",
     "Some elements have insufficient contrast.", "medium", "contrast"),
    ("best_practices", "https", "HTTPS missing",
     "The site does not use a secure connection.", "high", "security"),
]

# category -> (label, impact, effort)
RECOMMENDATION_PROFILES = {
    "performance": ("Performance", "High", "Medium"),
    "seo": ("SEO", "Medium", "Medium"),
    "accessibility": ("Accessibility", "Medium", "Low"),
    "final": ("Final", "Medium", "Low"),
}


def _section(data: Any, *keys: str) -> Mapping[str, Any]:
    """Follow ``keys`` through nested mappings; anything else yields ``{}``."""
    current = data
    for key in keys:
        if not isinstance(current, Mapping):
            return {}
        current = current.get(key)
    return current if isinstance(current, Mapping) else {}


def _text(value: Any, default: str = "") -> str:
    if value is None or isinstance(value, (Mapping, list)):
        return default
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def extract_score(value: Any) -> int:
    """Coerce a score to an int in 0..100.

    Numbers are rounded; strings use their first integer substring
    (``"95 out of 100"`` -> 95). Anything else is 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        if not math.isfinite(value):
            return 0
        number = round(value)
    elif isinstance(value, str):
        match = _FIRST_INT.search(value)
        if not match:
            return 0
        number = int(match.group())
    else:
        return 0
    return max(0, min(100, number))


def _is_numeric(value: Any) -> bool:
    # JSON true/false are not flags
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_failed(value: Any) -> bool:
    return _is_numeric(value) and value == 0


def _flag(value: Any) -> int | None:
    if _is_numeric(value):
        return 1 if value == 1 else 0
    return None


def _metric(value: Any) -> int | str:
    flag = _flag(value)
    return PLACEHOLDER if flag is None else flag


def _score_set(scores: Mapping[str, Any]) -> ScoreSet:
    return ScoreSet(
        **{key: extract_score(scores.get(key)) for key in SCORE_KEYS},
        total_score=extract_score(scores.get("total_score")),
    )


def _chart(scores: ScoreSet) -> ChartData:
    return ChartData(
        values=[getattr(scores, key) for key in SCORE_KEYS],
        total=scores.total_score,
    )


def _vitals(metrics: Mapping[str, Any]) -> VitalSet:
    return VitalSet(**{key: _text(metrics.get(key), PLACEHOLDER) for key in VITAL_KEYS})


def _sentences(values: Any) -> list[str]:
    if not isinstance(values, list):
        return []
    return [_text(v) for v in values if v is not None and not isinstance(v, (Mapping, list))]


def headline(text: str) -> str:
    """Text up to the first sentence terminator."""
    return _SENTENCE_END.split(text, maxsplit=1)[0]


def build_recommendations(values: Any, category: str) -> list[Recommendation]:
    label, impact, effort = RECOMMENDATION_PROFILES[category]
    return [
        Recommendation(
            category=label,
            title=headline(text),
            description=text,
            impact=impact,
            effort=effort,
        )
        for text in _sentences(values)
    ]


def build_final_recommendations(values: Any) -> list[FinalRecommendation]:
    _, impact, effort = RECOMMENDATION_PROFILES["final"]
    return [
        FinalRecommendation(title=text, description=text, impact=impact, effort=effort)
        for text in _sentences(values)
    ]


def build_errors(data: Any) -> list[ErrorFinding]:
    """Synthesize findings from failing metric flags, in catalog order."""
    flags = {
        "seo": _section(data, "seo_analysis", "metrics"),
        "accessibility": _section(data, "accessibility_best_practices", "accessibility_metrics"),
        "best_practices": _section(data, "accessibility_best_practices", "best_practices_metrics"),
    }
    errors: list[ErrorFinding] = []
    for section, flag, title, description, severity, icon in ERROR_CATALOG:
        if _is_failed(flags[section].get(flag)):
            errors.append(
                ErrorFinding(title=title, description=description, severity=severity, icon=icon)
            )
    return errors


def _seo_metrics(data: Any) -> dict[str, int] | None:
    analysis = _section(data, "seo_analysis")
    metrics = analysis.get("metrics")
    if not isinstance(metrics, Mapping):
        return None
    result: dict[str, int] = {}
    for key, value in metrics.items():
        flag = _flag(value)
        if flag is not None:
            result[str(key)] = flag
    return result


def _metric_group(section: Mapping[str, Any], score_key: str, metrics_key: str,
                  metric_keys: tuple[str, ...]) -> MetricGroup:
    metrics = section.get(metrics_key)
    metrics = metrics if isinstance(metrics, Mapping) else {}
    return MetricGroup(
        score=_text(section.get(score_key), PLACEHOLDER),
        metrics={key: _metric(metrics.get(key)) for key in metric_keys},
        recommendations=_sentences(section.get("recommendations")),
    )


def normalize(data: Any, *, contact: Mapping[str, str] | None = None) -> ReportRecord:
    """Build a canonical ReportRecord from a raw audit payload. Never raises."""
    info = _section(data, "general_info")
    mobile_scores = _section(data, "lighthouse_scores", "mobile")
    desktop_scores = _section(data, "lighthouse_scores", "desktop")
    performance = _section(data, "performance_metrics")
    seo = _section(data, "seo_analysis")
    acc_best = _section(data, "accessibility_best_practices")
    conclusion = _section(data, "final_conclusion")

    mobile = _score_set(mobile_scores)
    desktop = _score_set(desktop_scores)

    return ReportRecord(
        site_name=_text(info.get("site_name")),
        site_url=_text(info.get("site_url")),
        date=_text(info.get("audit_date")),
        description=_text(info.get("site_description")),
        summary=DeviceSummary(
            mobile=_text(mobile_scores.get("summary")),
            desktop=_text(desktop_scores.get("summary")),
        ),
        lighthouse_metrics=DeviceScores(mobile=mobile, desktop=desktop),
        seo_metrics=_seo_metrics(data),
        web_vitals=DeviceVitals(
            mobile=_vitals(_section(performance, "mobile")),
            desktop=_vitals(_section(performance, "desktop")),
        ),
        chart_data_mobile=_chart(mobile),
        chart_data_desktop=_chart(desktop),
        errors=build_errors(data),
        performance_recommendations=build_recommendations(
            performance.get("recommendations"), "performance"
        ),
        seo_recommendations_arr=build_recommendations(seo.get("recommendations"), "seo"),
        accessibility_recommendations=build_recommendations(
            acc_best.get("recommendations"), "accessibility"
        ),
        final_recommendations=build_final_recommendations(
            conclusion.get("main_recommendations")
        ),
        accessibility=_metric_group(
            acc_best, "accessibility_score", "accessibility_metrics", ACCESSIBILITY_METRIC_KEYS
        ),
        best_practices=_metric_group(
            acc_best, "best_practices_score", "best_practices_metrics", BEST_PRACTICES_METRIC_KEYS
        ),
        contact_info=dict(contact or {}),
        next_steps=_text(conclusion.get("next_steps")),
    )
