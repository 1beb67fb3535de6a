"""Report template parsing and assembly.

The template is parsed once into a flat tree of literal text,
``{{dotted.path}}`` placeholders, ``{{#each name}}…{{/each}}`` repeat
blocks and named marker regions. Assembly walks the tree: a region whose
predicate fails is skipped whole, everything else is emitted with
placeholders resolved against the working record. Inserted values are
never re-scanned for tokens.
"""

from __future__ import annotations

import json
import re
from typing import Any, Callable, Union

from markupsafe import escape as html_escape
from pydantic import BaseModel, ConfigDict

from lhreport.errors import TemplateError
from lhreport.report import fragments
from lhreport.report.paths import lookup, resolve
from lhreport.schemas.report import ReportRecord

# Region order in the packaged template; a region runs until the next marker.
REGION_MARKERS = (
    "Accessibility & Best Practices",
    "Errors",
    "Performance recommendations",
    "SEO recommendations",
    "Accessibility recommendations",
    "Final recommendations",
    "Next Steps",
)

_MARKER_RE = re.compile(
    r"<!--\s*(" + "|".join(re.escape(name) for name in REGION_MARKERS) + r")\s*-->"
)
_TOKEN_RE = re.compile(r"\{\{(.*?)\}\}", re.DOTALL)
_PATH_RE = re.compile(r"^[\w.]+$")
_EACH_RE = re.compile(r"^#each\s+(\w+)$")
_BODY_OPEN_RE = re.compile(r"<body\b[^>]*>", re.IGNORECASE)
_BODY_CLOSE_RE = re.compile(r"</body\s*>", re.IGNORECASE)


class Text(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str


class Placeholder(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str


class RepeatBlock(BaseModel):
    """``{{#each name}}…{{/each}}``, replaced by the ``<name>Html`` fragment."""

    model_config = ConfigDict(frozen=True)

    name: str
    body: list[Union[Text, Placeholder]] = []


class Region(BaseModel):
    """Section between a named marker comment and the next marker."""

    model_config = ConfigDict(frozen=True)

    name: str
    marker: str
    children: list[Union[Text, Placeholder, RepeatBlock]] = []


Node = Union[Text, Placeholder, RepeatBlock, Region]


class TemplateTree(BaseModel):
    nodes: list[Node] = []

    def region_names(self) -> list[str]:
        return [node.name for node in self.nodes if isinstance(node, Region)]


def _parse_inline(text: str) -> list[Union[Text, Placeholder, RepeatBlock]]:
    """Split a chunk into text, placeholders and repeat blocks."""
    nodes: list[Union[Text, Placeholder, RepeatBlock]] = []
    open_block: RepeatBlock | None = None
    block_body: list[Union[Text, Placeholder]] = []
    pos = 0

    def emit(node: Union[Text, Placeholder]) -> None:
        if open_block is not None:
            block_body.append(node)
        else:
            nodes.append(node)

    for match in _TOKEN_RE.finditer(text):
        if match.start() > pos:
            emit(Text(value=text[pos:match.start()]))
        pos = match.end()
        token = match.group(1).strip()

        each = _EACH_RE.match(token)
        if each:
            if open_block is not None:
                raise TemplateError(f"Nested repeat block '{each.group(1)}' is not supported")
            open_block = RepeatBlock(name=each.group(1))
            block_body = []
        elif token == "/each":
            if open_block is None:
                raise TemplateError("'{{/each}}' without a matching '{{#each}}'")
            nodes.append(RepeatBlock(name=open_block.name, body=block_body))
            open_block = None
        elif _PATH_RE.match(token):
            emit(Placeholder(path=token))
        # anything else resolves to nothing

    if open_block is not None:
        raise TemplateError(f"Unclosed repeat block '{open_block.name}'")
    if pos < len(text):
        nodes.append(Text(value=text[pos:]))
    return nodes


def parse_template(template_text: str) -> TemplateTree:
    """Parse template text into a TemplateTree.

    Raises :class:`TemplateError` for unbalanced repeat blocks.
    """
    markers = list(_MARKER_RE.finditer(template_text))
    body_close = None
    for body_close in _BODY_CLOSE_RE.finditer(template_text):
        pass

    if not markers:
        return TemplateTree(nodes=_parse_inline(template_text))

    nodes: list[Node] = list(_parse_inline(template_text[: markers[0].start()]))
    for index, marker in enumerate(markers):
        start = marker.end()
        if index + 1 < len(markers):
            end = markers[index + 1].start()
        elif body_close is not None and body_close.start() >= start:
            end = body_close.start()
        else:
            end = len(template_text)
        nodes.append(
            Region(
                name=marker.group(1),
                marker=marker.group(0),
                children=_parse_inline(template_text[start:end]),
            )
        )
        if index + 1 == len(markers):
            nodes.extend(_parse_inline(template_text[end:]))
    return TemplateTree(nodes=nodes)


# ----------------------------------------------------------------------
# Working context
# ----------------------------------------------------------------------

FRAGMENT_FIELDS = (
    "siteLoadingSpeedTextHtml",
    "seoStatusListHtml",
    "performanceRecsHtml",
    "seoRecsHtml",
    "accessibilityRecsHtml",
    "finalRecsListHtml",
    "resultsDescriptionHtml",
    "performanceRecommendationsHtml",
    "seoRecommendationsHtml",
    "accessibilityRecommendationsHtml",
    "finalRecommendationsHtml",
    "accessibilityScoreBarHtml",
    "accessibilityTextsHtml",
    "bestPracticesScoreBarHtml",
    "bestPracticesTextsHtml",
    "errorsHtml",
)


def build_context(
    record: ReportRecord, *, escape: bool = False, decimal_mark: str = ","
) -> dict[str, Any]:
    """Serialize the record and attach every derived fragment field.

    The legacy list fragments (``performanceRecsHtml``, ``seoRecsHtml``,
    ``accessibilityRecsHtml``, ``finalRecsListHtml``) are not used by the
    packaged template; they stay available to custom templates.
    """
    context = record.model_dump(by_alias=True)

    fcp_mobile = fragments.fcp_value(record.web_vitals.mobile.fcp, decimal_mark)
    fcp_desktop = fragments.fcp_value(record.web_vitals.desktop.fcp, decimal_mark)
    acc_texts = fragments.metric_summary(record.accessibility, "Accessibility", escape=escape)
    best_texts = fragments.metric_summary(record.best_practices, "Best practices", escape=escape)

    context.update(
        fcpMobile=fcp_mobile,
        fcpDesktop=fcp_desktop,
        siteLoadingSpeedTextHtml=fragments.loading_speed_text(fcp_desktop, fcp_mobile),
        seoStatusListHtml=fragments.seo_status_list(record.seo_metrics, escape=escape),
        performanceRecsHtml=fragments.recommendation_list(
            record.performance_recommendations, "performance", escape=escape
        ),
        seoRecsHtml=fragments.recommendation_list(
            record.seo_recommendations_arr, "seo", escape=escape
        ),
        accessibilityRecsHtml=fragments.recommendation_list(
            record.accessibility_recommendations, "accessibility", escape=escape
        ),
        finalRecsListHtml=fragments.recommendation_list(
            record.final_recommendations, "final", escape=escape
        ),
        resultsDescriptionHtml=fragments.results_description(record.next_steps, escape=escape),
        performanceRecommendationsHtml=fragments.recommendation_cards(
            record.performance_recommendations, escape=escape
        ),
        seoRecommendationsHtml=fragments.recommendation_cards(
            record.seo_recommendations_arr, escape=escape
        ),
        accessibilityRecommendationsHtml=fragments.recommendation_cards(
            record.accessibility_recommendations, escape=escape
        ),
        finalRecommendationsHtml=fragments.recommendation_cards(
            record.final_recommendations, escape=escape
        ),
        accessibilityScoreBarHtml=(
            fragments.score_bar(record.accessibility.score, "cyan")
            if fragments.has_score(record.accessibility)
            else ""
        ),
        accessibilityTextsHtml=acc_texts,
        bestPracticesScoreBarHtml=(
            fragments.score_bar(record.best_practices.score, "pink")
            if fragments.has_score(record.best_practices)
            else ""
        ),
        bestPracticesTextsHtml=best_texts,
        errorsHtml=fragments.error_cards(record.errors, escape=escape),
    )
    return context


def _any(*fields: str) -> Callable[[dict[str, Any]], bool]:
    return lambda ctx: any(ctx.get(field) for field in fields)


REGION_PREDICATES: dict[str, Callable[[dict[str, Any]], bool]] = {
    "Accessibility & Best Practices": _any(
        "accessibilityScoreBarHtml",
        "accessibilityTextsHtml",
        "bestPracticesScoreBarHtml",
        "bestPracticesTextsHtml",
    ),
    "Errors": lambda ctx: bool(ctx.get("errorsHtml")),
    "Performance recommendations": lambda ctx: bool(ctx.get("performanceRecommendationsHtml")),
    "SEO recommendations": lambda ctx: bool(ctx.get("seoRecommendationsHtml")),
    "Accessibility recommendations": lambda ctx: bool(ctx.get("accessibilityRecommendationsHtml")),
    "Final recommendations": lambda ctx: bool(ctx.get("finalRecommendationsHtml")),
}


# ----------------------------------------------------------------------
# Rendering
# ----------------------------------------------------------------------


def _render_placeholder(node: Placeholder, context: dict[str, Any], escape: bool) -> str:
    if node.path in FRAGMENT_FIELDS:
        value = lookup(context, node.path)
        return value if isinstance(value, str) else ""
    text = resolve(context, node.path)
    return str(html_escape(text)) if escape else text


def _render_nodes(nodes: list[Any], context: dict[str, Any], escape: bool) -> list[str]:
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, Text):
            parts.append(node.value)
        elif isinstance(node, Placeholder):
            parts.append(_render_placeholder(node, context, escape))
        elif isinstance(node, RepeatBlock):
            fragment = context.get(f"{node.name}Html")
            parts.append(fragment if isinstance(fragment, str) else "")
        elif isinstance(node, Region):
            predicate = REGION_PREDICATES.get(node.name)
            if predicate is None or predicate(context):
                parts.append(node.marker)
                parts.extend(_render_nodes(node.children, context, escape))
    return parts


def render_tree(tree: TemplateTree, context: dict[str, Any], *, escape: bool = False) -> str:
    return "".join(_render_nodes(tree.nodes, context, escape))


def _script_json(value: Any) -> str:
    # "</" inside a JSON string would terminate the script element
    return json.dumps(value, ensure_ascii=False).replace("</", "<\\/")


def chart_script(context: dict[str, Any]) -> str:
    """Script block exposing chart and vitals data to the in-page chart code."""
    data = [
        ("lighthouseMetrics", context["lighthouseMetrics"]),
        ("chartDataMobile", context["chartDataMobile"]["values"]),
        ("totalScoreMobile", context["chartDataMobile"]["total"]),
        ("chartDataDesktop", context["chartDataDesktop"]["values"]),
        ("totalScoreDesktop", context["chartDataDesktop"]["total"]),
        ("chartColors", context["chartDataMobile"]["colors"]),
        ("webVitals", context["webVitals"]),
    ]
    lines = [f"window.{name} = {_script_json(value)};" for name, value in data]
    return "\n<script>\n" + "\n".join(lines) + "\n</script>\n"


def _last_body_close(html: str) -> re.Match[str] | None:
    match = None
    for match in _BODY_CLOSE_RE.finditer(html):
        pass
    return match


def inject_before_body_close(html: str, snippet: str) -> str:
    close = _last_body_close(html)
    if close is None:
        return html + snippet
    return html[: close.start()] + snippet + html[close.start():]


def wrap_page(html: str) -> str:
    """Wrap the body content in a single ``<div class="page">`` container."""
    opening = _BODY_OPEN_RE.search(html)
    close = _last_body_close(html)
    if opening is None or close is None or close.start() < opening.end():
        return '<div class="page">' + html + "</div>"
    return (
        html[: opening.end()]
        + '<div class="page">'
        + html[opening.end(): close.start()]
        + "</div>"
        + html[close.start():]
    )


def assemble(
    template_text: str,
    record: ReportRecord,
    *,
    escape: bool = False,
    decimal_mark: str = ",",
) -> str:
    """Fill the report template from a normalized record.

    Returns a self-contained HTML document: conditional regions resolved,
    the errors repeat block expanded, every placeholder substituted, chart
    data embedded and the body wrapped in a page container.
    """
    tree = parse_template(template_text)
    context = build_context(record, escape=escape, decimal_mark=decimal_mark)
    html = render_tree(tree, context, escape=escape)
    html = inject_before_body_close(html, chart_script(context))
    return wrap_page(html)
