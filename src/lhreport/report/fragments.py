"""HTML fragment builders — pure functions from record slices to snippets.

Each builder renders one small Jinja2 template from ``templates/fragments``.
Audit text is interpolated raw by default, matching the legacy report
output; pass ``escape=True`` to HTML-escape it.
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from lhreport.report.normalizer import extract_score
from lhreport.schemas.report import (
    PLACEHOLDER,
    ErrorFinding,
    FinalRecommendation,
    MetricGroup,
    Recommendation,
)

_FRAGMENT_DIR = Path(__file__).parent.parent / "templates" / "fragments"

# (metric key, label, description) in display order before sorting.
SEO_CHECKS = [
    ("hreflang", "Hreflang", "Language and regional targeting"),
    ("canonical", "Canonical", "Proper canonical URL implementation"),
    ("image_alt", "Image Alt", "Alt attributes for images"),
    ("link_text", "Link Text", "Descriptive link text"),
    ("is_crawlable", "Is Crawlable", "Site is accessible to search engines"),
    ("document_title", "Document Title", "Page has a proper title"),
    ("structured_data", "Structured Data", "Schema.org markup present"),
    ("meta_description", "Meta Description", "Meta description tags present"),
]

# kind -> (css class, icon, empty placeholder)
_LIST_STYLES = {
    "performance": ("performance", "icon-danger", "No performance recommendations"),
    "seo": ("seo", "icon-warning", "No SEO recommendations"),
    "accessibility": ("accessibility", "icon-warning", "No accessibility recommendations"),
    "final": ("final", "icon-warning", "No final recommendations"),
}

DEFAULT_NEXT_STEPS = (
    "Continue monitoring your website performance and implement the recommended "
    "improvements for better user experience and search visibility."
)

_NON_NUMERIC = re.compile(r"[^\d.,]")


@lru_cache(maxsize=2)
def _environment(escape: bool) -> Environment:
    return Environment(
        loader=FileSystemLoader(str(_FRAGMENT_DIR)),
        autoescape=escape,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=StrictUndefined,
    )


def _render(name: str, escape: bool, **context: Any) -> str:
    return _environment(escape).get_template(name).render(**context).strip()


def seo_status_list(seo_metrics: Mapping[str, int] | None, *, escape: bool = False) -> str:
    """Passed/failed item per SEO check, passed items first."""
    if seo_metrics is None:
        return "<p>No SEO metrics available</p>"
    items = [
        {"name": name, "description": description, "passed": seo_metrics.get(key) == 1}
        for key, name, description in SEO_CHECKS
    ]
    # sorted() is stable, so catalog order holds within each group
    items = sorted(items, key=lambda item: not item["passed"])
    return _render("seo_status.html", escape, items=items)


def recommendation_list(
    recs: Sequence[Recommendation | FinalRecommendation],
    kind: str,
    *,
    escape: bool = False,
) -> str:
    """Icon list of recommendations, or a "No … recommendations" paragraph."""
    css_class, icon, empty_text = _LIST_STYLES[kind]
    if not recs:
        return f"<p>{empty_text}</p>"
    texts = [rec.description or rec.title for rec in recs]
    return _render(
        "recommendation_list.html", escape,
        texts=texts, css_class=css_class, icon=icon, final=kind == "final",
    )


def recommendation_cards(
    recs: Sequence[Recommendation | FinalRecommendation], *, escape: bool = False
) -> str:
    """Card per recommendation with impact/effort badges; ``""`` when empty."""
    if not recs:
        return ""
    cards = [
        {
            "text": rec.description if rec.description.strip() else rec.title,
            "impact": rec.impact,
            "effort": rec.effort,
        }
        for rec in recs
    ]
    return _render("recommendation_cards.html", escape, cards=cards)


def score_bar(score: str, tone: str = "cyan") -> str:
    """Labelled bar whose width is the score's leading integer, in percent."""
    value = extract_score(score)
    return _render("score_bar.html", False, score=value, tone=tone)


def has_score(group: MetricGroup) -> bool:
    return bool(group.score.strip()) and group.score != PLACEHOLDER


def metric_summary(group: MetricGroup, label: str, *, escape: bool = False) -> str:
    """Pass/fail list of a metric group.

    ``""`` only when the group has neither a score nor a measured metric; a
    score without metrics still gets the summary line.
    """
    measured = any(value != PLACEHOLDER for value in group.metrics.values())
    if not measured and not has_score(group):
        return ""
    items = []
    for key, value in (group.metrics.items() if measured else ()):
        if value == PLACEHOLDER:
            status = "unknown"
        else:
            status = "passed" if value == 1 else "failed"
        items.append({"name": key.replace("_", " ").capitalize(), "status": status})
    return _render("metric_summary.html", escape, label=label, items=items)


def error_cards(errors: Sequence[ErrorFinding], *, escape: bool = False) -> str:
    if not errors:
        return ""
    return _render("error_cards.html", escape, errors=errors)


def fcp_value(vital: str, decimal_mark: str = ",") -> str:
    """Numeric part of an FCP reading with a locale decimal mark (``"2.8 s"`` -> ``"2,8"``)."""
    digits = _NON_NUMERIC.sub("", vital or "")
    return digits.replace(".", decimal_mark, 1) or PLACEHOLDER


def loading_speed_text(fcp_desktop: str, fcp_mobile: str) -> str:
    return _render(
        "loading_speed.html", False, fcp_desktop=fcp_desktop, fcp_mobile=fcp_mobile
    )


def results_description(next_steps: str, *, escape: bool = False) -> str:
    return _render("results_description.html", escape, text=next_steps or DEFAULT_NEXT_STEPS)
