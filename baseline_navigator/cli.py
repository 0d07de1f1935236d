"""
Baseline Navigator - command-line interface

Example usage:
    baseline-navigator analyze src/
    baseline-navigator analyze --format json --output report.json src/ styles/
    baseline-navigator check styles/main.css
    baseline-navigator recommend has --language css
    baseline-navigator search grid
    baseline-navigator similar container-queries
    baseline-navigator info has
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from baseline_navigator import __version__
from baseline_navigator.core.compatibility import CompatibilityChecker
from baseline_navigator.core.knowledge_base import FeatureKnowledgeBase, create_knowledge_base
from baseline_navigator.core.models import ProjectAnalysis, Recommendation, RecommendationContext
from baseline_navigator.core.patterns import PatternRegistry, create_pattern_registry
from baseline_navigator.core.project_analyzer import create_project_analyzer
from baseline_navigator.core.recommendations import create_recommendation_engine
from baseline_navigator.core.result_writer import create_report_writer
from baseline_navigator.core.similarity import SimilarityEngine, weights_from_config
from baseline_navigator.utils.config import BaselineSettings, load_config
from baseline_navigator.utils.errors import BaselineNavigatorError
from baseline_navigator.utils.logging import setup_logging
from baseline_navigator.workspace import create_workspace_scanner


class Components:
    """Core components wired from one configuration."""

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.settings = BaselineSettings.from_config(config)
        self.registry: PatternRegistry = create_pattern_registry(config.get("patterns", {}))
        self.knowledge_base: FeatureKnowledgeBase = create_knowledge_base(
            config.get("dataset", {}), settings=self.settings
        )

    async def shutdown(self) -> None:
        await self.knowledge_base.shutdown()


def print_analysis(analysis: ProjectAnalysis) -> None:
    """Print a project analysis summary to the console."""
    print("\n" + "=" * 60)
    print("BASELINE NAVIGATOR ANALYSIS")
    print("=" * 60)
    print(f"Compatibility Score: {analysis.compatibility_score}")
    print(f"Features Found: {len(analysis.features)} "
          f"({len(analysis.safe_features)} safe, {len(analysis.risk_features)} at risk)")
    if analysis.skipped_files:
        print(f"Skipped: {len(analysis.skipped_files)} file(s)")
    print("-" * 60)
    for line in analysis.suggestions:
        print(line)
    print("-" * 60)


def print_recommendations(feature_id: str, recommendations: List[Recommendation]) -> None:
    if not recommendations:
        print(f"No recommendations for '{feature_id}'.")
        return

    print(f"\nRecommendations for '{feature_id}':")
    print(f"{'Feature':<28} {'Type':<14} {'Conf.':<6} Reason")
    print("-" * 78)
    for rec in recommendations:
        print(f"{rec.feature.id:<28} {rec.type.value:<14} {rec.confidence:<6.2f} {rec.reason}")


async def cmd_analyze(components: Components, args: argparse.Namespace) -> int:
    scanner = create_workspace_scanner(components.config.get("workspace", {}))
    files = scanner.collect_files(args.paths)
    if not files:
        print("No supported source files found.")
        return 1

    def progress(current: int, total: int, filename: str) -> None:
        if args.verbose:
            print(f"[{current}/{total}] {Path(filename).name}", file=sys.stderr)

    analyzer = create_project_analyzer(
        components.knowledge_base, registry=components.registry, settings=components.settings
    )
    analysis = await analyzer.analyze_project(
        scanner.read_documents(files),
        total_files=len(files),
        workspace_roots=[str(Path(p).resolve()) for p in args.paths],
        progress_callback=progress,
    )

    if args.output:
        writer = create_report_writer(args.format)
        writer.write(analysis, args.output)
        print(f"Report saved to: {args.output}")

    if args.format == "json" and not args.output:
        print(analysis.to_json())
    else:
        print_analysis(analysis)
    return 0


async def cmd_check(components: Components, args: argparse.Namespace) -> int:
    scanner = create_workspace_scanner(components.config.get("workspace", {}))
    await components.knowledge_base.wait_for_ready()
    checker = CompatibilityChecker(
        components.registry, components.knowledge_base, components.settings
    )

    findings = []
    for document in scanner.read_documents(scanner.collect_files(args.files)):
        findings.extend(checker.check_document(document))

    if args.json:
        print(json.dumps([f.to_dict() for f in findings], indent=2))
        return 0

    for finding in findings:
        print(f"{finding.filename}:{finding.location.line}:{finding.location.column}: "
              f"{finding.severity}: {finding.message} [{finding.feature_id}]")
        print(f"    Browser support (your targets): {finding.support_info}")
    print(f"\n{len(findings)} finding(s)")
    return 0


async def cmd_recommend(components: Components, args: argparse.Namespace) -> int:
    engine = create_recommendation_engine(
        components.knowledge_base, registry=components.registry, settings=components.settings
    )
    context = RecommendationContext(
        current_feature=args.feature,
        document_language=args.language,
        project_type=args.project_type,
        target_browsers=components.settings.target_browsers,
    )
    recommendations = await engine.get_recommendations(context)
    limit = args.limit or components.settings.max_recommendations
    print_recommendations(args.feature, recommendations[:limit])
    return 0


async def cmd_search(components: Components, args: argparse.Namespace) -> int:
    results = await components.knowledge_base.search(args.query)
    if not results:
        print(f"No features match '{args.query}'.")
        return 0

    for feature in results[:args.limit]:
        print(f"{feature.id:<28} {feature.baseline.label:<18} {feature.display_name}")
    if len(results) > args.limit:
        print(f"... and {len(results) - args.limit} more")
    return 0


async def cmd_similar(components: Components, args: argparse.Namespace) -> int:
    kb = components.knowledge_base
    await kb.wait_for_ready()
    target = kb.require_feature(args.feature)

    engine = SimilarityEngine()
    weights = weights_from_config(components.config.get("similarity", {}).get("weights"))
    scores = engine.find_similar(
        target, kb.get_all_features(), min_score=args.min_score,
        max_results=args.limit, weights=weights,
    )

    if not scores:
        print(f"No features similar to '{args.feature}'.")
        return 0

    for score in scores:
        reasons = ", ".join(score.reasons) or "-"
        print(f"{score.feature_id:<28} {score.score:.3f}  {reasons}")
    return 0


async def cmd_info(components: Components, args: argparse.Namespace) -> int:
    kb = components.knowledge_base
    await kb.wait_for_ready()
    feature = kb.require_feature(args.feature)

    checker = CompatibilityChecker(components.registry, kb, components.settings)
    report = checker.report(feature)

    print(f"\n{feature.display_name} ({feature.id})")
    print(f"  Baseline: {feature.baseline.label}")
    if feature.description:
        print(f"  {feature.description}")
    print(f"  Support: {checker.support_info(feature)}")
    print(f"  Compatibility with targets: {report.compatibility}")
    if report.missing_browsers:
        print(f"  Missing: {', '.join(report.missing_browsers)}")
    if report.suggestion:
        print(f"  Suggestion: {report.suggestion}")

    related = await kb.get_similar_features(feature.id)
    if related:
        print(f"  Related: {', '.join(f.id for f in related)}")
    if feature.mdn_url:
        print(f"  MDN: {feature.mdn_url}")
    return 0


COMMANDS = {
    "analyze": cmd_analyze,
    "check": cmd_check,
    "recommend": cmd_recommend,
    "search": cmd_search,
    "similar": cmd_similar,
    "info": cmd_info,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="baseline-navigator",
        description="Detect web-platform feature usage and assess browser compatibility",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to configuration file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output")
    parser.add_argument("--version", action="version", version=f"baseline-navigator {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze = subparsers.add_parser("analyze", help="Analyze a project")
    analyze.add_argument("paths", nargs="+", help="Files or directories to analyze")
    analyze.add_argument("--output", "-o", type=Path, default=None, help="Write a report file")
    analyze.add_argument("--format", choices=["text", "json"], default="text", help="Report format")

    check = subparsers.add_parser("check", help="List compatibility findings for files")
    check.add_argument("files", nargs="+", help="Files or directories to check")
    check.add_argument("--json", action="store_true", help="Print findings as JSON")

    recommend = subparsers.add_parser("recommend", help="Recommend alternatives for a feature")
    recommend.add_argument("feature", help="Feature id, e.g. 'has'")
    recommend.add_argument("--language", "-l", default="css", help="Document language id")
    recommend.add_argument("--project-type", default=None, help="Optional project type")
    recommend.add_argument("--limit", type=int, default=None, help="Maximum recommendations shown")

    search = subparsers.add_parser("search", help="Search the feature dataset")
    search.add_argument("query")
    search.add_argument("--limit", type=int, default=20)

    similar = subparsers.add_parser("similar", help="Features similar to a feature")
    similar.add_argument("feature")
    similar.add_argument("--limit", type=int, default=10)
    similar.add_argument("--min-score", type=float, default=0.3)

    info = subparsers.add_parser("info", help="Show a feature and its compatibility")
    info.add_argument("feature")

    return parser


async def _run(components: Components, args: argparse.Namespace) -> int:
    try:
        return await COMMANDS[args.command](components, args)
    finally:
        await components.shutdown()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the Baseline Navigator CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(str(args.config) if args.config else None)
        log_config = config.get("logging", {})
        setup_logging(
            level="DEBUG" if args.verbose else log_config.get("level", "WARNING"),
            log_format=log_config.get("format", "text"),
            log_file=log_config.get("file"),
            colored=sys.stderr.isatty(),
        )
        components = Components(config)
        return asyncio.run(_run(components, args))
    except BaselineNavigatorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
