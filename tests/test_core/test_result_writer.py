"""Tests for report writers."""

import json

import pytest

from baseline_navigator.core.models import (
    Baseline,
    FeatureRecord,
    ProjectAnalysis,
    ProjectFeatureUsage,
    UsageLocation,
)
from baseline_navigator.core.result_writer import (
    JSONReportWriter,
    TextReportWriter,
    create_report_writer,
)


@pytest.fixture
def analysis():
    has = ProjectFeatureUsage(
        feature=FeatureRecord(id="has", name=":has()", baseline=Baseline.LIMITED),
        usage_count=2,
        files={"a.css"},
        locations=[
            UsageLocation("a.css", 1, 1, ":has(.x)"),
            UsageLocation("a.css", 4, 3, ":has(.y)"),
        ],
        pattern_ids={"has"},
    )
    grid = ProjectFeatureUsage(
        feature=FeatureRecord(id="grid", name="Grid", baseline=Baseline.WIDELY),
        usage_count=1,
        files={"b.css"},
    )
    return ProjectAnalysis(
        features={"has": has, "grid": grid},
        total_files=3,
        analyzed_files=2,
        skipped_files=["broken.css"],
        compatibility_score=54,
        risk_features=[has],
        safe_features=[grid],
        suggestions=["Analyzed 2 of 3 files (66.7% coverage)"],
    )


class TestTextReportWriter:
    def test_summary(self, analysis, tmp_path):
        output = tmp_path / "report.txt"
        TextReportWriter().write(analysis, output)

        content = output.read_text(encoding="utf-8")
        assert "BASELINE NAVIGATOR PROJECT ANALYSIS" in content
        assert "Compatibility Score: 54" in content
        assert "Files Analyzed: 2 of 3" in content
        assert "Files Skipped: broken.css" in content
        assert "RISK FEATURES (1)" in content
        assert "SAFE FEATURES (1)" in content
        assert ":has() (has)" in content
        assert "Analyzed 2 of 3 files (66.7% coverage)" in content
        assert content.rstrip().endswith("=" * 70)

    def test_timestamp_optional(self, analysis, tmp_path):
        output = tmp_path / "report.txt"
        TextReportWriter(include_timestamp=False).write(analysis, output)
        assert "Generated:" not in output.read_text(encoding="utf-8")

    def test_locations(self, analysis, tmp_path):
        output = tmp_path / "report.txt"
        TextReportWriter(include_locations=True).write(analysis, output)
        assert "a.css:4:3  :has(.y)" in output.read_text(encoding="utf-8")

    def test_synthesized_marker(self, analysis, tmp_path):
        analysis.safe_features[0].synthesized = True
        output = tmp_path / "report.txt"
        TextReportWriter().write(analysis, output)
        assert "Grid (grid) [heuristic]" in output.read_text(encoding="utf-8")

    def test_creates_parent_directories(self, analysis, tmp_path):
        output = tmp_path / "reports" / "nested" / "report.txt"
        TextReportWriter().write(analysis, output)
        assert output.exists()


class TestJSONReportWriter:
    def test_round_trips_to_dict(self, analysis, tmp_path):
        output = tmp_path / "report.json"
        JSONReportWriter().write(analysis, output)

        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["compatibility_score"] == 54
        assert data["risk_features"] == ["has"]
        assert data["safe_features"] == ["grid"]
        assert data["features"]["has"]["usage_count"] == 2
        assert data["skipped_files"] == ["broken.css"]


class TestFactory:
    @pytest.mark.parametrize("format, expected", [
        ("text", TextReportWriter),
        ("txt", TextReportWriter),
        ("JSON", JSONReportWriter),
    ])
    def test_known_formats(self, format, expected):
        assert isinstance(create_report_writer(format), expected)

    def test_kwargs_forwarded(self):
        writer = create_report_writer("json", indent=4)
        assert writer.indent == 4

    def test_unknown_format(self):
        with pytest.raises(ValueError, match="Unknown format"):
            create_report_writer("xml")
