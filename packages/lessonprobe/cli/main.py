"""Command-line interface for lessonprobe.

Commands:
    classify  Classify packages and recommend a rendering template
    detect    Show package family detection scores for a package
    manifest  Parse a manifest file or URL and summarize it
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys

from rich.console import Console
from rich.table import Table

from lessonprobe.core.config import AppConfig, load_app_config
from lessonprobe.core.detection import RuleEngine
from lessonprobe.core.io import (
    HttpDescriptorSource,
    LocalDescriptorSource,
    LocalFileLister,
    RoutingDescriptorSource,
    SourceError,
)
from lessonprobe.core.models import BatchReport, Descriptor, PackageRef
from lessonprobe.core.parsers import DescriptorParser
from lessonprobe.core.processing import PackageProcessor
from lessonprobe.core.utils.logging import configure_logging

console = Console()
logger = logging.getLogger(__name__)


def _load_config(path: str | None) -> AppConfig:
    app_config = load_app_config(path)
    configure_logging(
        level=app_config.logging.level,
        format_string=app_config.logging.format,
        structured=app_config.logging.structured,
    )
    return app_config


def _descriptor_source(app_config: AppConfig) -> RoutingDescriptorSource:
    return RoutingDescriptorSource(
        local=LocalDescriptorSource(),
        http=HttpDescriptorSource(timeout_seconds=app_config.http.timeout_seconds),
    )


def build_processor(app_config: AppConfig) -> PackageProcessor:
    """Processor wired from application config."""
    detection = app_config.detection
    return PackageProcessor(
        parser=DescriptorParser(max_depth=detection.max_descriptor_depth),
        lister=LocalFileLister(sample_bytes=detection.content_sample_bytes),
        source=_descriptor_source(app_config),
        config=detection,
    )


async def _package_ref(processor: PackageProcessor, path: str) -> PackageRef:
    # Unpacked package directories are listed up front; the processor
    # routes by extension otherwise.
    if Path(path).is_dir():
        try:
            files = await processor.lister.list_files(path)
        except (SourceError, OSError) as e:
            logger.warning(f"Could not list directory {path}: {e}")
        else:
            return PackageRef(source_path=path, files=files)
    return PackageRef(source_path=path)


async def classify_async(
    paths: list[str],
    app_config: AppConfig,
    min_confidence: float | None = None,
    as_json: bool = False,
) -> int:
    """Classify packages and print the results.

    Returns:
        Exit code (0 when every package was processed, 1 otherwise)
    """
    processor = build_processor(app_config)
    refs = [await _package_ref(processor, path) for path in paths]
    report = await processor.process_many(refs)

    if as_json:
        console.print_json(data=_report_json(processor, report, min_confidence))
    else:
        _print_report(processor, report, min_confidence)

    return 0 if not report.failed else 1


def _report_json(
    processor: PackageProcessor, report: BatchReport, min_confidence: float | None
) -> list[dict]:
    rows = []
    for result in report.results:
        row = result.model_dump(mode="json", exclude={"package"})
        if result.package is not None:
            row["package"] = result.package.model_dump(mode="json", exclude={"descriptor"})
            row["recommended_template"] = processor.get_recommended_template(
                result.package, min_confidence
            ).value
        rows.append(row)
    return rows


def _print_report(
    processor: PackageProcessor, report: BatchReport, min_confidence: float | None
) -> None:
    table = Table(title="Package classification")
    table.add_column("Package")
    table.add_column("Family")
    table.add_column("Template")
    table.add_column("Confidence", justify="right")
    table.add_column("Recommended")
    table.add_column("Status")

    for package in report.succeeded:
        recommended = processor.get_recommended_template(package, min_confidence)
        status_style = "green" if package.status.value == "processed" else "yellow"
        table.add_row(
            package.name,
            package.family or "-",
            package.template_type.value,
            f"{package.confidence:.0f}",
            recommended.value,
            f"[{status_style}]{package.status.value}[/{status_style}]",
        )
    console.print(table)

    for failure in report.failed:
        console.print(f"[red]ERROR: {failure.source_path}: {failure.error}[/red]")


async def detect_async(path: str, app_config: AppConfig) -> int:
    """Print ranked family detection results for one package."""
    lister = LocalFileLister(sample_bytes=app_config.detection.content_sample_bytes)
    try:
        files = await lister.list_files(path)
    except SourceError as e:
        console.print(f"[red]ERROR: {e}[/red]")
        return 1

    ranked = RuleEngine().rank(files)
    if not ranked:
        console.print(f"[yellow]No package family detected in {path} ({len(files)} files)[/yellow]")
        return 0

    table = Table(title=f"Detection: {path}")
    table.add_column("Family")
    table.add_column("Confidence", justify="right")
    table.add_column("Rules matched", justify="right")
    table.add_column("Matched")
    for result in ranked:
        table.add_row(
            result.family,
            f"{result.confidence:.1f}",
            f"{result.matched_rule_count}/{result.total_rule_count}",
            ", ".join(result.matched_rules),
        )
    console.print(table)
    return 0


async def manifest_async(location: str, app_config: AppConfig, as_json: bool = False) -> int:
    """Parse a manifest and print a summary."""
    parser = DescriptorParser(max_depth=app_config.detection.max_descriptor_depth)
    descriptor = await parser.parse_from(_descriptor_source(app_config), location)

    if as_json:
        console.print_json(data=descriptor.model_dump(mode="json"))
        return 0 if descriptor.valid else 1

    if not descriptor.valid:
        console.print(f"[red]ERROR: Invalid manifest: {descriptor.error}[/red]")
        return 1

    _print_descriptor(parser, descriptor)
    return 0


def _print_descriptor(parser: DescriptorParser, descriptor: Descriptor) -> None:
    console.print(f"[bold]{descriptor.title or descriptor.id or 'Untitled manifest'}[/bold]")
    console.print(f"   Identifier: {descriptor.id}")
    console.print(f"   Version: {descriptor.version}")
    console.print(f"   Organizations: {len(descriptor.organizations)}")
    console.print(f"   Items: {descriptor.item_count} (depth {descriptor.max_depth})")
    console.print(f"   Resources: {len(descriptor.resources)}")
    console.print(f"   Title template: {parser.detect_template_type(descriptor).value}")

    configuration = parser.extract_configuration(descriptor)
    console.print(f"   Mastery score: {configuration.mastery_score}")
    console.print(f"   Completion threshold: {configuration.completion_threshold}")


def build_arg_parser() -> argparse.ArgumentParser:
    """Build argument parser for CLI."""
    p = argparse.ArgumentParser(
        prog="lessonprobe",
        description="lessonprobe - classify e-learning packages into rendering templates",
    )
    p.add_argument(
        "--config",
        default=None,
        help="Path to app config (.json/.yaml, default: lessonprobe.yaml if present)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    classify = sub.add_parser("classify", help="Classify packages")
    classify.add_argument("paths", nargs="+", help="Package archives, directories or manifests")
    classify.add_argument(
        "--min-confidence",
        type=float,
        default=None,
        help="Confidence gate for the recommended template (default: from config)",
    )
    classify.add_argument("--json", action="store_true", help="Emit JSON instead of a table")

    detect = sub.add_parser("detect", help="Show family detection scores")
    detect.add_argument("path", help="Package archive or directory")

    manifest = sub.add_parser("manifest", help="Parse a manifest file or URL")
    manifest.add_argument("location", help="Path or http(s) URL of imsmanifest.xml")
    manifest.add_argument("--json", action="store_true", help="Emit the parsed descriptor as JSON")

    return p


def main(argv: list[str] | None = None) -> None:
    """Main entry point for CLI."""
    p = build_arg_parser()
    args = p.parse_args(argv)

    try:
        app_config = _load_config(args.config)
    except (OSError, ValueError) as e:
        console.print(f"[red]ERROR: Could not load config: {e}[/red]")
        sys.exit(1)

    if args.cmd == "classify":
        exit_code = asyncio.run(
            classify_async(args.paths, app_config, args.min_confidence, as_json=args.json)
        )
    elif args.cmd == "detect":
        exit_code = asyncio.run(detect_async(args.path, app_config))
    elif args.cmd == "manifest":
        exit_code = asyncio.run(manifest_async(args.location, app_config, as_json=args.json))
    else:
        p.error(f"Unknown command: {args.cmd}")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
