"""End-to-end tests for the command-line interface."""

import json
from unittest.mock import patch

import pytest

from baseline_navigator.cli import build_parser, main


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep main() from reconfiguring the root logger during tests."""
    with patch("baseline_navigator.cli.setup_logging") as mock_setup:
        yield mock_setup


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "baseline:\n"
        "  risk_tolerance: moderate\n"
        "  max_recommendations: 5\n"
        "workspace:\n"
        "  max_files: 50\n"
        "logging:\n"
        "  level: WARNING\n",
        encoding="utf-8",
    )
    return path


@pytest.fixture
def project(tmp_path):
    root = tmp_path / "site"
    root.mkdir()
    (root / "layout.css").write_text(".a { display: grid; gap: 1rem; }\n", encoding="utf-8")
    (root / "parent.css").write_text(".card:has(img) { padding: 0; }\n", encoding="utf-8")
    return root


def run(config_file, *args):
    return main(["--config", str(config_file), *args])


class TestParser:
    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_recommend_defaults(self):
        args = build_parser().parse_args(["recommend", "has"])
        assert args.language == "css"
        assert args.limit is None


class TestAnalyze:
    def test_console_summary(self, config_file, project, capsys):
        assert run(config_file, "analyze", str(project)) == 0

        out = capsys.readouterr().out
        assert "BASELINE NAVIGATOR ANALYSIS" in out
        assert "Compatibility Score:" in out
        assert "Found 1 features with limited support:" in out
        assert "Analyzed 2 of 2 files (100.0% coverage)" in out

    def test_json_to_stdout(self, config_file, project, capsys):
        assert run(config_file, "analyze", "--format", "json", str(project)) == 0

        data = json.loads(capsys.readouterr().out)
        assert set(data["features"]) == {"grid", "gap", "has"}
        assert data["risk_features"] == ["has"]

    def test_report_file(self, config_file, project, tmp_path, capsys):
        output = tmp_path / "out" / "report.txt"
        assert run(config_file, "analyze", "-o", str(output), str(project)) == 0

        assert "Report saved to" in capsys.readouterr().out
        assert "Compatibility Score:" in output.read_text(encoding="utf-8")

    def test_no_files(self, config_file, tmp_path, capsys):
        empty = tmp_path / "empty"
        empty.mkdir()
        assert run(config_file, "analyze", str(empty)) == 1
        assert "No supported source files found." in capsys.readouterr().out


class TestCheck:
    def test_text_findings(self, config_file, project, capsys):
        assert run(config_file, "check", str(project / "parent.css")) == 0

        out = capsys.readouterr().out
        assert 'parent.css:1:6: warning: ":has()" has limited browser support [has]' in out
        assert "1 finding(s)" in out

    def test_json_findings(self, config_file, project, capsys):
        assert run(config_file, "check", "--json", str(project)) == 0

        findings = json.loads(capsys.readouterr().out)
        assert [f["feature_id"] for f in findings] == ["has"]
        assert findings[0]["severity"] == "warning"


class TestLookups:
    def test_recommend(self, config_file, capsys):
        assert run(config_file, "recommend", "has", "--limit", "3") == 0

        out = capsys.readouterr().out
        assert "Recommendations for 'has':" in out
        for alternative in ("css-not", "css-is", "css-where"):
            assert alternative in out

    def test_recommend_unknown_feature(self, config_file, capsys):
        assert run(config_file, "recommend", "blink-tag") == 0
        assert "No recommendations for 'blink-tag'." in capsys.readouterr().out

    def test_search(self, config_file, capsys):
        assert run(config_file, "search", "grid") == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("grid ")
        assert any(line.startswith("subgrid ") for line in lines)

    def test_search_no_match(self, config_file, capsys):
        assert run(config_file, "search", "zzzz") == 0
        assert "No features match 'zzzz'." in capsys.readouterr().out

    def test_similar(self, config_file, capsys):
        assert run(config_file, "similar", "grid") == 0
        assert capsys.readouterr().out.strip()

    def test_info(self, config_file, capsys):
        assert run(config_file, "info", "has") == 0

        out = capsys.readouterr().out
        assert ":has() (has)" in out
        assert "Compatibility with targets: none" in out
        assert "Suggestion: Consider css-not, css-is, css-where" in out

    def test_info_unknown_feature(self, config_file, capsys):
        assert run(config_file, "info", "blink-tag") == 1
        assert "Error: Unknown feature 'blink-tag'" in capsys.readouterr().err


class TestErrors:
    def test_missing_config_file(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "nope.yaml"), "search", "grid"]) == 1
        assert "Configuration file not found" in capsys.readouterr().err

    def test_invalid_settings(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("baseline:\n  risk_tolerance: reckless\n", encoding="utf-8")
        assert main(["--config", str(path), "search", "grid"]) == 1
        assert "Invalid risk tolerance" in capsys.readouterr().err

    def test_logging_configured_from_file(self, config_file, quiet_logging):
        run(config_file, "search", "grid")
        assert quiet_logging.call_args.kwargs["level"] == "WARNING"

    def test_verbose_enables_debug(self, config_file, quiet_logging):
        main(["--config", str(config_file), "--verbose", "search", "grid"])
        assert quiet_logging.call_args.kwargs["level"] == "DEBUG"
