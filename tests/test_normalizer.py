"""Tests for audit → ReportRecord normalization."""

from __future__ import annotations

import pytest

from lhreport.report.normalizer import extract_score, headline, normalize
from lhreport.schemas.report import CHART_COLORS, PLACEHOLDER


class TestExtractScore:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("95 out of 100", 95),
            ("Score: 7", 7),
            ("—", 0),
            ("", 0),
            (88, 88),
            (88.6, 89),
            (150, 100),
            (-3, 0),
            (None, 0),
            (True, 0),
            ([90], 0),
            (float("nan"), 0),
        ],
    )
    def test_values(self, value, expected) -> None:
        assert extract_score(value) == expected


class TestHeadline:
    def test_first_sentence(self) -> None:
        assert headline("Optimize images. Then cache them!") == "Optimize images"

    def test_question_and_exclamation(self) -> None:
        assert headline("Why so slow? Fix it") == "Why so slow"
        assert headline("Fix now! Later") == "Fix now"

    def test_no_terminator(self) -> None:
        assert headline("Implement caching strategies") == "Implement caching strategies"


class TestNormalizeEmpty:
    def test_empty_object(self) -> None:
        record = normalize({})
        assert record.site_name == ""
        assert record.seo_metrics is None
        assert record.errors == []
        assert record.performance_recommendations == []
        assert record.final_recommendations == []
        assert record.next_steps == ""

    def test_chart_defaults(self) -> None:
        record = normalize({})
        for chart in (record.chart_data_mobile, record.chart_data_desktop):
            assert chart.values == [0, 0, 0, 0]
            assert chart.total == 0
            assert chart.colors == CHART_COLORS

    def test_vitals_and_groups_default_to_placeholder(self) -> None:
        record = normalize({})
        assert record.web_vitals.mobile.fcp == PLACEHOLDER
        assert record.web_vitals.desktop.si == PLACEHOLDER
        assert record.accessibility.score == PLACEHOLDER
        assert set(record.accessibility.metrics.values()) == {PLACEHOLDER}
        assert set(record.best_practices.metrics) == {
            "https", "deprecations", "errors_in_console", "third_party_cookies",
        }

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            [],
            "not an object",
            42,
            {"lighthouse_scores": "broken"},
            {"lighthouse_scores": {"mobile": [1, 2]}},
            {"performance_metrics": {"recommendations": "one string"}},
            {"seo_analysis": {"metrics": ["is_crawlable"]}},
            {"accessibility_best_practices": {"accessibility_score": {"x": 1}}},
            {"general_info": {"site_name": None}},
        ],
    )
    def test_total_over_malformed_input(self, raw) -> None:
        record = normalize(raw)
        assert len(record.chart_data_mobile.values) == 4
        assert len(record.chart_data_desktop.values) == 4

    def test_idempotent(self, sample_audit) -> None:
        assert normalize(sample_audit) == normalize(sample_audit)
        assert normalize({}).model_dump() == normalize({}).model_dump()


class TestNormalizeSample:
    def test_general_info(self, sample_audit) -> None:
        record = normalize(sample_audit)
        assert record.site_name == "Debug Test Site"
        assert record.site_url == "https://debug-test.com"
        assert record.date == "2026-10-18"
        assert record.summary.mobile.startswith("Good performance")

    def test_chart_order_and_total(self, sample_audit) -> None:
        record = normalize(sample_audit)
        assert record.chart_data_mobile.values == [88, 95, 92, 65]
        assert record.chart_data_mobile.total == 85
        assert record.chart_data_desktop.values == [95, 98, 95, 70]
        assert record.chart_data_desktop.colors == record.chart_data_mobile.colors

    def test_scores_clamped(self) -> None:
        record = normalize({"lighthouse_scores": {"mobile": {"performance": 140, "seo": "77"}}})
        assert record.lighthouse_metrics.mobile.performance == 100
        assert record.lighthouse_metrics.mobile.seo == 77

    def test_vitals_kept_as_text(self, sample_audit) -> None:
        record = normalize(sample_audit)
        assert record.web_vitals.mobile.fcp == "2.8 s"
        assert record.web_vitals.desktop.cls == "0.001"

    def test_numeric_vitals_stringified(self) -> None:
        record = normalize({"performance_metrics": {"mobile": {"cls": 0.02}}})
        assert record.web_vitals.mobile.cls == "0.02"

    def test_recommendation_profiles(self, sample_audit) -> None:
        record = normalize(sample_audit)
        perf = record.performance_recommendations[0]
        assert perf.category == "Performance"
        assert perf.title == "Optimize images for faster loading"
        assert perf.description.endswith("dominate LCP.")
        assert (perf.impact, perf.effort) == ("High", "Medium")

        seo = record.seo_recommendations_arr[0]
        assert (seo.category, seo.impact, seo.effort) == ("SEO", "Medium", "Medium")

        acc = record.accessibility_recommendations[0]
        assert (acc.category, acc.impact, acc.effort) == ("Accessibility", "Medium", "Low")

        final = record.final_recommendations[0]
        assert final.title == final.description
        assert (final.impact, final.effort) == ("Medium", "Low")

    def test_recommendation_entries_skip_none(self) -> None:
        record = normalize({"seo_analysis": {"recommendations": ["Fix titles", None, 3]}})
        assert [r.description for r in record.seo_recommendations_arr] == ["Fix titles", "3"]

    def test_seo_metrics_coerced(self) -> None:
        record = normalize({"seo_analysis": {"metrics": {"hreflang": 1.0, "canonical": 0, "note": "x"}}})
        assert record.seo_metrics == {"hreflang": 1, "canonical": 0}

    def test_boolean_metrics_ignored(self) -> None:
        raw = {
            "seo_analysis": {"metrics": {"hreflang": True, "canonical": 1}},
            "accessibility_best_practices": {"accessibility_metrics": {"color_contrast": False}},
        }
        record = normalize(raw)
        assert record.seo_metrics == {"canonical": 1}
        assert record.accessibility.metrics["color_contrast"] == PLACEHOLDER

    def test_metric_groups(self, sample_audit) -> None:
        record = normalize(sample_audit)
        assert record.accessibility.score == "95 out of 100"
        assert record.accessibility.metrics["semantic_elements"] == 0
        assert record.best_practices.metrics["https"] == 1
        assert record.best_practices.recommendations[0] == "Add semantic HTML elements"

    def test_numeric_group_score_stringified(self) -> None:
        record = normalize({"accessibility_best_practices": {"accessibility_score": 91}})
        assert record.accessibility.score == "91"

    def test_contact_passed_through(self) -> None:
        record = normalize({}, contact={"email": "team@example.com"})
        assert record.contact_info == {"email": "team@example.com"}

    def test_alias_keys(self, sample_audit) -> None:
        dumped = normalize(sample_audit).model_dump(by_alias=True)
        assert dumped["siteName"] == "Debug Test Site"
        assert dumped["chartDataMobile"]["total"] == 85
        assert "seoRecommendationsArr" in dumped
        assert dumped["lighthouseMetrics"]["mobile"]["best_practices"] == 92


class TestErrorSynthesis:
    def test_sample_errors_in_catalog_order(self, sample_audit) -> None:
        record = normalize(sample_audit)
        assert [e.title for e in record.errors] == [
            "Incorrect link texts",
            "Missing meta descriptions",
        ]

    def test_is_crawlable_zero(self) -> None:
        raw = {
            "seo_analysis": {
                "metrics": {"is_crawlable": 0, "link_text": 1, "meta_description": 1},
            },
            "accessibility_best_practices": {
                "accessibility_metrics": {"color_contrast": 1},
                "best_practices_metrics": {"https": 1},
            },
        }
        errors = normalize(raw).errors
        assert len(errors) == 1
        assert errors[0].title == "Site closed from indexing"
        assert errors[0].severity == "high"
        assert errors[0].icon == "robot"

    def test_is_crawlable_one(self) -> None:
        raw = {"seo_analysis": {"metrics": {"is_crawlable": 1}}}
        assert normalize(raw).errors == []

    def test_full_catalog(self) -> None:
        raw = {
            "seo_analysis": {"metrics": {"link_text": 0, "is_crawlable": 0, "meta_description": 0}},
            "accessibility_best_practices": {
                "accessibility_metrics": {"color_contrast": 0},
                "best_practices_metrics": {"https": 0},
            },
        }
        errors = normalize(raw).errors
        assert [(e.title, e.severity) for e in errors] == [
            ("Incorrect link texts", "medium"),
            ("Site closed from indexing", "high"),
            ("Missing meta descriptions", "medium"),
            ("Poor color contrast", "medium"),
            ("HTTPS missing", "high"),
        ]

    def test_absent_and_non_numeric_flags_ignored(self) -> None:
        raw = {"seo_analysis": {"metrics": {"link_text": "0", "is_crawlable": None}}}
        assert normalize(raw).errors == []

    def test_boolean_false_is_not_a_failure(self) -> None:
        raw = {
            "seo_analysis": {"metrics": {"is_crawlable": False, "link_text": False}},
            "accessibility_best_practices": {"best_practices_metrics": {"https": False}},
        }
        assert normalize(raw).errors == []
