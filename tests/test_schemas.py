"""Tests for the audit and report Pydantic models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError as PydanticValidationError

from lhreport.errors import ValidationError
from lhreport.schemas.audit import AuditRecord, validate_audit_record
from lhreport.schemas.report import ChartData, ErrorFinding, ReportArtifact, ReportRecord


class TestValidateAuditRecord:
    def test_sample_is_valid(self, sample_audit) -> None:
        record = validate_audit_record(sample_audit)
        assert isinstance(record, AuditRecord)
        assert record.general_info.site_name == "Debug Test Site"
        assert record.lighthouse_scores.mobile.total_score == 85

    def test_extra_sections_allowed(self, sample_audit) -> None:
        sample_audit["custom_section"] = {"anything": True}
        validate_audit_record(sample_audit)

    def test_general_info_required(self) -> None:
        with pytest.raises(ValidationError, match="Invalid data format") as exc_info:
            validate_audit_record({})
        assert exc_info.value.details == ["general_info: Field required"]

    def test_required_general_info_fields(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_audit_record({"general_info": {"site_name": "Acme"}})
        assert sorted(exc_info.value.details) == [
            "general_info.audit_date: Field required",
            "general_info.site_url: Field required",
        ]

    def test_site_url_must_be_uri(self, sample_audit) -> None:
        sample_audit["general_info"]["site_url"] = "not a url"
        with pytest.raises(ValidationError) as exc_info:
            validate_audit_record(sample_audit)
        assert exc_info.value.details[0].startswith("general_info.site_url:")
        assert "valid uri" in exc_info.value.details[0]

    def test_score_out_of_range(self, sample_audit) -> None:
        sample_audit["lighthouse_scores"]["desktop"]["seo"] = 140
        with pytest.raises(ValidationError) as exc_info:
            validate_audit_record(sample_audit)
        assert exc_info.value.details[0].startswith("lighthouse_scores.desktop.seo:")

    def test_non_object(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_audit_record(["not", "a", "dict"])
        assert exc_info.value.details == ["audit record must be a JSON object, got list"]


class TestReportModels:
    def test_chart_values_need_four_entries(self) -> None:
        with pytest.raises(PydanticValidationError, match="4 entries"):
            ChartData(values=[1, 2, 3])

    def test_chart_colors_not_shared(self) -> None:
        a = ChartData()
        a.colors.append("#000")
        assert len(ChartData().colors) == 4

    def test_error_severity(self) -> None:
        with pytest.raises(PydanticValidationError):
            ErrorFinding(title="x", description="y", severity="critical")

    def test_record_accepts_field_names_and_aliases(self) -> None:
        assert ReportRecord(site_name="A").site_name == "A"
        assert ReportRecord(siteName="B").site_name == "B"

    def test_artifact_duration(self) -> None:
        artifact = ReportArtifact(path="/tmp/a.pdf", filename="a.pdf", url="/files/a.pdf", size=3, duration_ms=1234)
        dumped = artifact.model_dump()
        assert dumped["duration"] == "1234ms"
        assert dumped["duration_ms"] == 1234
