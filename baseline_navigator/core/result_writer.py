"""
Report writers for project analyses.

New output formats plug in as further ReportWriter subclasses registered
with create_report_writer().
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import IO, Union

from baseline_navigator.core.models import ProjectAnalysis, ProjectFeatureUsage


class ReportWriter(ABC):
    """Abstract base class for report writers (Strategy Pattern)."""

    @abstractmethod
    def write(self, analysis: ProjectAnalysis, output_path: Union[str, Path]) -> None:
        """Write the analysis to the specified path."""
        pass


class TextReportWriter(ReportWriter):
    """Writes a project analysis as a human-readable text report."""

    def __init__(self, include_timestamp: bool = True, include_locations: bool = False):
        """
        Initialize text writer.

        Args:
            include_timestamp: Whether to include the analysis timestamp
            include_locations: Whether to list every match location
        """
        self.include_timestamp = include_timestamp
        self.include_locations = include_locations
        self.logger = logging.getLogger("result_writer.text")

    def write(self, analysis: ProjectAnalysis, output_path: Union[str, Path]) -> None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            f.write("=" * 70 + "\n")
            f.write("BASELINE NAVIGATOR PROJECT ANALYSIS\n")
            f.write("=" * 70 + "\n")

            if self.include_timestamp:
                f.write(f"Generated: {analysis.timestamp.strftime('%Y-%m-%d %H:%M:%S %Z')}\n")

            f.write(f"Compatibility Score: {analysis.compatibility_score}\n")
            f.write(f"Files Analyzed: {analysis.analyzed_files} of {analysis.total_files}\n")
            if analysis.skipped_files:
                f.write(f"Files Skipped: {', '.join(analysis.skipped_files)}\n")
            f.write("=" * 70 + "\n\n")

            self._write_section(f, "RISK FEATURES", analysis.risk_features)
            self._write_section(f, "SAFE FEATURES", analysis.safe_features)

            f.write("-" * 70 + "\n")
            f.write("SUGGESTIONS\n")
            f.write("-" * 70 + "\n")
            for line in analysis.suggestions:
                f.write(f"{line}\n")
            f.write("\n")

            f.write("=" * 70 + "\n")
            f.write("END OF REPORT\n")
            f.write("=" * 70 + "\n")

        self.logger.info(f"Report written to: {output_path}")

    def _write_section(self, f: IO[str], title: str, usages: list) -> None:
        f.write("-" * 70 + "\n")
        f.write(f"{title} ({len(usages)})\n")
        f.write("-" * 70 + "\n")
        for usage in usages:
            self._write_usage(f, usage)
        f.write("\n")

    def _write_usage(self, f: IO[str], usage: ProjectFeatureUsage) -> None:
        feature = usage.feature
        marker = " [heuristic]" if usage.synthesized else ""
        f.write(f"{feature.display_name} ({feature.id}){marker}\n")
        f.write(f"  Baseline: {feature.baseline.label}\n")
        f.write(f"  Usage: {usage.usage_count} in {len(usage.files)} file(s)\n")
        if self.include_locations:
            for loc in usage.locations:
                f.write(f"    {loc.file}:{loc.line}:{loc.column}  {loc.matched_text}\n")


class JSONReportWriter(ReportWriter):
    """Writes a project analysis to a JSON file."""

    def __init__(self, indent: int = 2):
        self.indent = indent
        self.logger = logging.getLogger("result_writer.json")

    def write(self, analysis: ProjectAnalysis, output_path: Union[str, Path]) -> None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(analysis.to_dict(), f, indent=self.indent, default=str)

        self.logger.info(f"Report written to: {output_path}")


def create_report_writer(format: str = "text", **kwargs) -> ReportWriter:
    """
    Factory function to create appropriate report writer.

    Args:
        format: Output format ("text" or "json")
        **kwargs: Additional arguments for the writer

    Returns:
        Appropriate ReportWriter instance
    """
    writers = {
        "text": TextReportWriter,
        "txt": TextReportWriter,
        "json": JSONReportWriter,
    }

    writer_class = writers.get(format.lower())
    if writer_class is None:
        raise ValueError(f"Unknown format: {format}. Supported: {list(writers.keys())}")

    return writer_class(**kwargs)
