#!/usr/bin/env python3
"""HAR Compare CLI.

Compare HAR captures taken from different regions and explain where time goes.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import typer

from har_compare import __version__
from har_compare.analyzer import HarAnalyzer
from har_compare.config import AnalysisConfig, load_config
from har_compare.errors import ConfigError, HarParseError
from har_compare.formatter import OutputFormatter
from har_compare.models import RegionSummary

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="har-compare",
    help="Compare HAR captures across regions and diagnose slow page loads",
    add_completion=False,
)


@app.callback()
def callback() -> None:
    """Multi-region HAR performance analyzer."""


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"har-compare version {__version__}")


def setup_logging(verbose: bool) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _resolve_timestamp_timezone(
    timezone_value: str | None,
    local_time: bool,
) -> tuple[tzinfo | None, str | None]:
    if local_time and timezone_value is not None:
        raise typer.BadParameter("--local-time cannot be used with --timezone")

    if local_time:
        local_tz = datetime.now().astimezone().tzinfo
        return local_tz or UTC, "local"

    if timezone_value is None:
        return None, None

    normalized = timezone_value.strip()
    lowered = normalized.lower()
    if lowered == "utc":
        return UTC, "UTC"
    if lowered == "local":
        local_tz = datetime.now().astimezone().tzinfo
        return local_tz or UTC, "local"

    try:
        return ZoneInfo(normalized), normalized
    except ZoneInfoNotFoundError as exc:
        raise typer.BadParameter(f"Unknown timezone: {normalized}") from exc


def _resolve_region_names(har_files: list[Path], regions: list[str] | None) -> list[str]:
    """Pair region labels with files; default to each file's stem."""
    if not regions:
        names = [f.stem for f in har_files]
    elif len(regions) != len(har_files):
        raise typer.BadParameter(
            f"Got {len(regions)} --region values for {len(har_files)} HAR files"
        )
    else:
        names = list(regions)

    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise typer.BadParameter(f"Region names must be unique: {', '.join(duplicates)}")
    return names


def _load_config_option(config_file: Path | None) -> AnalysisConfig:
    try:
        return load_config(config_file)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _load_region(analyzer: HarAnalyzer, har_file: Path, region_name: str) -> RegionSummary:
    logger.info(f"Parsing HAR file: {har_file} as region {region_name!r}")
    content = har_file.read_text(encoding="utf-8")
    return analyzer.load_region(content, region_name, har_file.name)


@app.command()
def analyze(
    har_files: list[Path] = typer.Argument(  # noqa: B008
        ...,
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        help="HAR files, one per region",
    ),
    regions: list[str] | None = typer.Option(  # noqa: B008
        None, "--region", "-r", help="Region label for each HAR file, in order"
    ),
    config_file: Path | None = typer.Option(  # noqa: B008
        None, "--config", "-c", exists=True, dir_okay=False, help="JSON threshold overrides"
    ),
    output: Path | None = typer.Option(  # noqa: B008
        None, "--output", "-o", help="Export analysis to Markdown file"
    ),
    json_output: Path | None = typer.Option(  # noqa: B008
        None, "--json", help="Export analysis as JSON"
    ),
    skip_invalid: bool = typer.Option(
        False, "--skip-invalid", help="Skip HAR files that fail to parse instead of aborting"
    ),
    timezone: str | None = typer.Option(
        None,
        "--timezone",
        "-t",
        help="Convert displayed timestamps to timezone (e.g. UTC, local, America/New_York)",
    ),
    local_time: bool = typer.Option(
        False,
        "--local-time",
        help="Convert displayed timestamps to your local timezone",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Analyze HAR files from one or more regions."""
    setup_logging(verbose)

    region_names = _resolve_region_names(har_files, regions)
    config = _load_config_option(config_file)
    timestamp_timezone, timestamp_timezone_label = _resolve_timestamp_timezone(timezone, local_time)

    try:
        analyzer = HarAnalyzer(config)
        summaries: list[RegionSummary] = []
        for har_file, region_name in zip(har_files, region_names, strict=True):
            try:
                summaries.append(_load_region(analyzer, har_file, region_name))
            except HarParseError as e:
                if not skip_invalid:
                    raise
                logger.warning(f"Skipping {har_file}: {e}")

        if not summaries:
            typer.echo("\nError: no valid HAR files to analyze", err=True)
            raise typer.Exit(1)

        result = analyzer.analyze(summaries)
        logger.info(
            f"Found {len(result.comparisons)} regional differences and "
            f"{len(result.recommendations)} recommendations"
        )

        formatter = OutputFormatter(
            timestamp_timezone=timestamp_timezone,
            timestamp_timezone_label=timestamp_timezone_label,
        )

        if json_output:
            json_output.write_text(result.model_dump_json(indent=2), encoding="utf-8")
            typer.echo(f"JSON analysis exported to: {json_output}")
        if output:
            markdown_content = formatter.generate_markdown_report(result)
            output.write_text(markdown_content, encoding="utf-8")
            typer.echo(f"Markdown report exported to: {output}")
        if not output and not json_output:
            formatter.print_report(result)

    except typer.Exit:
        raise
    except KeyboardInterrupt:
        typer.echo("\n\nInterrupted by user", err=True)
        raise typer.Exit(130) from None
    except Exception as e:
        typer.echo(f"\nError: {e}", err=True)
        raise typer.Exit(1) from e


@app.command()
def timeline(
    har_file: Path = typer.Argument(  # noqa: B008
        ..., exists=True, file_okay=True, dir_okay=False, readable=True, help="Path to HAR file"
    ),
    region: str | None = typer.Option(None, "--region", "-r", help="Region label"),
    config_file: Path | None = typer.Option(  # noqa: B008
        None, "--config", "-c", exists=True, dir_okay=False, help="JSON threshold overrides"
    ),
    output: Path | None = typer.Option(  # noqa: B008
        None, "--output", "-o", help="Export timeline to Markdown file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """Reconstruct the user-experience timeline of one capture."""
    setup_logging(verbose)
    config = _load_config_option(config_file)

    try:
        analyzer = HarAnalyzer(config)
        summary = _load_region(analyzer, har_file, region or har_file.stem)
        result = analyzer.timeline(summary)

        formatter = OutputFormatter()
        if output:
            output.write_text(formatter.generate_timeline_markdown(summary, result), encoding="utf-8")
            typer.echo(f"Markdown timeline exported to: {output}")
        else:
            formatter.print_timeline(summary, result)

    except KeyboardInterrupt:
        typer.echo("\n\nInterrupted by user", err=True)
        raise typer.Exit(130) from None
    except Exception as e:
        typer.echo(f"\nError: {e}", err=True)
        raise typer.Exit(1) from e


@app.command()
def thresholds(
    config_file: Path | None = typer.Option(  # noqa: B008
        None, "--config", "-c", exists=True, dir_okay=False, help="JSON threshold overrides"
    ),
) -> None:
    """Show the effective analysis thresholds."""
    OutputFormatter().print_thresholds(_load_config_option(config_file))


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
