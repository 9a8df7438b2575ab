"""Terminal and Markdown rendering of analysis results."""

from __future__ import annotations

from datetime import datetime, tzinfo

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table

from har_compare.config import AnalysisConfig
from har_compare.models import (
    AnalysisResult,
    ComparisonResult,
    ConnectionEvidence,
    DnsEvidence,
    DownloadEvidence,
    Priority,
    Recommendation,
    RegionEvidence,
    RegionSummary,
    Severity,
    TtfbEvidence,
    UXTimelineResult,
)
from har_compare.utils import format_bytes, format_time, short_url

console = Console()

COMPARISON_TABLE_MAX_ROWS = 25
SLOW_REQUEST_TABLE_MAX_ROWS = 15
EVIDENCE_TABLE_MAX_ROWS = 10
MARKDOWN_MAX_COMPARISONS = 50
MARKDOWN_MAX_EVIDENCE_ROWS = 20

# Path truncation limits for display
PATH_TRUNCATE_LONG = 80
PATH_TRUNCATE_MEDIUM = 60

SEVERITY_STYLES = {
    Severity.CRITICAL: "bold red",
    Severity.WARNING: "yellow",
    Severity.NORMAL: "green",
}
PRIORITY_STYLES = {
    Priority.HIGH: ("red", "HIGH"),
    Priority.MEDIUM: ("yellow", "MEDIUM"),
    Priority.LOW: ("blue", "LOW"),
}


class OutputFormatter:
    """Format analysis results for terminal output and markdown exports."""

    def __init__(
        self,
        *,
        timestamp_timezone: tzinfo | None = None,
        timestamp_timezone_label: str | None = None,
    ) -> None:
        """Create a formatter with optional timestamp timezone conversion."""
        self._timestamp_timezone = timestamp_timezone
        self._timestamp_timezone_label = timestamp_timezone_label

    # -------------------------------------------------------------------------
    # Terminal
    # -------------------------------------------------------------------------

    def print_report(self, result: AnalysisResult) -> None:
        """Print region summaries, comparisons and recommendations."""
        self._print_region_table(result.regions)
        console.print()

        for region in result.regions:
            if region.slow_requests:
                self._print_slow_requests(region)
                console.print()

        if result.comparisons:
            self._print_comparisons(result.comparisons)
            console.print()
        elif len(result.regions) > 1:
            console.print("[dim]No significant differences between regions.[/dim]")
            console.print()

        if not result.recommendations:
            console.print("[bold green]No performance issues found.[/bold green]")
            return
        for index, recommendation in enumerate(result.recommendations, start=1):
            self._print_recommendation(index, recommendation)

    def print_timeline(self, region: RegionSummary, timeline: UXTimelineResult) -> None:
        """Print the UX timeline of one region."""
        summary = timeline.summary
        lines = [
            f"**Time to First Paint:** {format_time(summary.time_to_first_paint)}",
            "",
            f"**Time to Interactive:** {format_time(summary.time_to_interactive)}",
            "",
            f"**Total Blocking Time:** {format_time(summary.total_blocking_time)}",
            "",
            f"**Longest API Chain:** {format_time(summary.longest_api_chain)}",
        ]
        console.print(
            Panel(
                Markdown("\n".join(lines)),
                title=f"[bold green]UX Timeline: {region.name}[/bold green]",
                border_style="green",
            )
        )
        console.print()

        table = Table(title="Milestones")
        table.add_column("Time", justify="right", style="yellow")
        table.add_column("Milestone", style="cyan")
        table.add_column("Description")
        for milestone in timeline.milestones:
            table.add_row(format_time(milestone.time), milestone.label, milestone.description)
        console.print(table)
        console.print()

        if timeline.blocking_resources:
            table = Table(title="Render-Blocking Resources")
            table.add_column("Type", style="cyan")
            table.add_column("URL Path", no_wrap=False)
            table.add_column("Duration", justify="right")
            table.add_column("In Head", justify="center")
            table.add_column("Impact", justify="center")
            for resource in timeline.blocking_resources:
                table.add_row(
                    resource.blocking_type.value,
                    short_url(resource.request.url, PATH_TRUNCATE_MEDIUM),
                    format_time(resource.blocking_duration),
                    "yes" if resource.is_in_head else "no",
                    resource.impact.value.upper(),
                )
            console.print(table)
            console.print()

        for chain in timeline.api_chains:
            table = Table(title=f"API Chain ({format_time(chain.total_duration)})")
            table.add_column("#", justify="right", style="dim")
            table.add_column("URL Path", no_wrap=False)
            table.add_column("Start", justify="right")
            table.add_column("Duration", justify="right")
            for position, node in enumerate(chain.nodes, start=1):
                is_bottleneck = node.request.id == chain.bottleneck.request.id
                table.add_row(
                    str(position),
                    short_url(node.request.url, PATH_TRUNCATE_MEDIUM),
                    format_time(node.start_time),
                    format_time(node.request.time),
                    style="bold red" if is_bottleneck else None,
                )
            console.print(table)
            console.print()

        if timeline.waiting_periods:
            table = Table(title="Waiting Periods")
            table.add_column("Start", justify="right")
            table.add_column("Duration", justify="right")
            table.add_column("Reason", style="cyan")
            table.add_column("Request", no_wrap=False)
            for period in timeline.waiting_periods:
                table.add_row(
                    format_time(period.start_time),
                    format_time(period.duration),
                    period.reason,
                    short_url(period.related_requests[0].url, PATH_TRUNCATE_MEDIUM),
                    style=SEVERITY_STYLES[period.severity],
                )
            console.print(table)

    def print_thresholds(self, config: AnalysisConfig) -> None:
        """Print the effective threshold configuration."""
        table = Table(title="Severity Thresholds")
        table.add_column("Request Type", style="cyan")
        table.add_column("Warning", justify="right", style="yellow")
        table.add_column("Critical", justify="right", style="red")
        for group, threshold in config.severity:
            table.add_row(group, f"{threshold.warning:.0f}ms", f"{threshold.critical:.0f}ms")
        console.print(table)
        console.print()

        for title, section in (
            ("Issue Thresholds", config.issues),
            ("Recommendation Thresholds", config.recommendations),
            ("Comparison Thresholds", config.comparison),
            ("Timeline Thresholds", config.timeline),
        ):
            table = Table(title=title)
            table.add_column("Setting", style="cyan")
            table.add_column("Value", justify="right")
            for key, value in section:
                table.add_row(key, f"{value:g}")
            console.print(table)
            console.print()

    def _print_region_table(self, regions: list[RegionSummary]) -> None:
        table = Table(title="Region Summary")
        table.add_column("Region", style="cyan")
        table.add_column("File", style="dim")
        table.add_column("Capture Start", style="dim")
        table.add_column("Requests", justify="right")
        table.add_column("Slow", justify="right")
        table.add_column("Issues", justify="right")
        table.add_column("Total Time", justify="right")
        table.add_column("Total Size", justify="right")

        for region in regions:
            slow_style = "bold red" if region.slow_requests else "green"
            table.add_row(
                region.name,
                region.file_name,
                self._format_timestamp(region.base_time) if region.base_time else "-",
                f"{region.request_count:,}",
                f"[{slow_style}]{region.slow_requests}[/{slow_style}]",
                str(len(region.issues)),
                format_time(region.total_time),
                format_bytes(region.total_size),
            )
        console.print(table)
        if self._timestamp_timezone_label:
            console.print(f"[dim]Timestamp timezone: {self._timestamp_timezone_label}[/dim]")

    def _print_slow_requests(self, region: RegionSummary) -> None:
        slow = sorted(
            (r for r in region.requests if r.severity != Severity.NORMAL),
            key=lambda r: r.time,
            reverse=True,
        )
        table = Table(title=f"Slow Requests: {region.name}")
        table.add_column("Severity", justify="center")
        table.add_column("Type", style="cyan")
        table.add_column("Method")
        table.add_column("URL Path", no_wrap=False)
        table.add_column("Duration", justify="right")
        table.add_column("Issues", no_wrap=False)

        for request in slow[:SLOW_REQUEST_TABLE_MAX_ROWS]:
            style = SEVERITY_STYLES[request.severity]
            table.add_row(
                f"[{style}]{request.severity.value.upper()}[/{style}]",
                request.request_type.value,
                request.method,
                short_url(request.url, PATH_TRUNCATE_MEDIUM),
                format_time(request.time),
                "; ".join(request.issues) or "-",
            )
        if len(slow) > SLOW_REQUEST_TABLE_MAX_ROWS:
            remaining = len(slow) - SLOW_REQUEST_TABLE_MAX_ROWS
            table.add_row(f"... and {remaining} more", "", "", "", "", "", style="dim")
        console.print(table)

    def _print_comparisons(self, comparisons: list[ComparisonResult]) -> None:
        table = Table(title="Cross-Region Differences")
        table.add_column("URL Path", style="cyan", no_wrap=False)
        table.add_column("Slowest", style="red")
        table.add_column("Fastest", style="green")
        table.add_column("Difference", justify="right", style="yellow")
        table.add_column("Per Region", no_wrap=False)

        for comparison in comparisons[:COMPARISON_TABLE_MAX_ROWS]:
            table.add_row(
                short_url(comparison.url, PATH_TRUNCATE_MEDIUM),
                comparison.slowest_region,
                comparison.fastest_region,
                f"+{format_time(comparison.max_diff)}",
                ", ".join(f"{r.name}: {format_time(r.time)}" for r in comparison.regions),
            )
        if len(comparisons) > COMPARISON_TABLE_MAX_ROWS:
            remaining = len(comparisons) - COMPARISON_TABLE_MAX_ROWS
            table.add_row(f"... and {remaining} more", "", "", "", "", style="dim")
        console.print(table)

    def _print_recommendation(self, index: int, recommendation: Recommendation) -> None:
        style, label = PRIORITY_STYLES[recommendation.priority]
        headers, rows = self._evidence_rows(recommendation)

        table = Table(show_edge=False)
        for header in headers:
            table.add_column(header, no_wrap=header != "URL Path")
        for row in rows[:EVIDENCE_TABLE_MAX_ROWS]:
            table.add_row(*row)
        if len(rows) > EVIDENCE_TABLE_MAX_ROWS:
            remaining = len(rows) - EVIDENCE_TABLE_MAX_ROWS
            table.add_row(f"... and {remaining} more", *[""] * (len(headers) - 1), style="dim")

        actions = "\n".join(f"- {action}" for action in recommendation.suggested_actions)
        console.print(
            Panel(
                table,
                title=f"[bold {style}]{index}. [{label}] {recommendation.title}[/bold {style}]",
                subtitle=f"regions: {', '.join(recommendation.affected_regions)}",
                border_style=style,
            )
        )
        if actions:
            console.print(Markdown(actions))
        console.print()

    # -------------------------------------------------------------------------
    # Markdown
    # -------------------------------------------------------------------------

    def generate_markdown_report(self, result: AnalysisResult) -> str:
        """Generate a factual markdown report."""
        lines: list[str] = ["# Multi-Region HAR Analysis Report", ""]
        now = datetime.now().astimezone()
        lines.append(f"**Report Generated:** {now.isoformat(timespec='seconds')}")
        if self._timestamp_timezone_label:
            lines.append(f"**Timestamp Timezone:** {self._timestamp_timezone_label}")
        lines.extend(["", "---", ""])
        lines.extend(self._md_regions(result.regions))
        lines.extend(self._md_comparisons(result.comparisons))
        lines.extend(self._md_recommendations(result.recommendations))
        return "\n".join(lines)

    def generate_timeline_markdown(self, region: RegionSummary, timeline: UXTimelineResult) -> str:
        summary = timeline.summary
        lines = [
            f"# UX Timeline: {region.name}",
            "",
            f"- **Time to First Paint:** {format_time(summary.time_to_first_paint)}",
            f"- **Time to Interactive:** {format_time(summary.time_to_interactive)}",
            f"- **Total Blocking Time:** {format_time(summary.total_blocking_time)}",
            f"- **Longest API Chain:** {format_time(summary.longest_api_chain)}",
            "",
            "## Milestones",
            "",
            "| Time | Milestone | Description |",
            "|------|-----------|-------------|",
        ]
        lines.extend(
            f"| {format_time(m.time)} | {m.label} | {m.description} |" for m in timeline.milestones
        )
        lines.append("")

        if timeline.blocking_resources:
            lines.extend(
                [
                    "## Render-Blocking Resources",
                    "",
                    "| Type | Path | Duration | In Head | Impact |",
                    "|------|------|----------|---------|--------|",
                ]
            )
            lines.extend(
                f"| {b.blocking_type.value} | `{short_url(b.request.url, PATH_TRUNCATE_LONG)}` | "
                f"{format_time(b.blocking_duration)} | {'yes' if b.is_in_head else 'no'} | "
                f"**{b.impact.value.upper()}** |"
                for b in timeline.blocking_resources
            )
            lines.append("")

        for chain in timeline.api_chains:
            lines.extend([f"## API Chain ({format_time(chain.total_duration)})", ""])
            for node in chain.nodes:
                marker = " **(bottleneck)**" if node.request.id == chain.bottleneck.request.id else ""
                lines.append(
                    f"1. `{short_url(node.request.url, PATH_TRUNCATE_LONG)}` "
                    f"{format_time(node.request.time)}{marker}"
                )
            lines.append("")

        if timeline.waiting_periods:
            lines.extend(
                [
                    "## Waiting Periods",
                    "",
                    "| Start | Duration | Reason | Severity |",
                    "|-------|----------|--------|----------|",
                ]
            )
            lines.extend(
                f"| {format_time(p.start_time)} | {format_time(p.duration)} | {p.reason} | "
                f"{p.severity.value} |"
                for p in timeline.waiting_periods
            )
            lines.append("")
        return "\n".join(lines)

    def _md_regions(self, regions: list[RegionSummary]) -> list[str]:
        lines = [
            "## Regions",
            "",
            "| Region | File | Capture Start | Requests | Slow | Issues | Total Time | Size |",
            "|--------|------|---------------|----------|------|--------|------------|------|",
        ]
        for region in regions:
            start = self._format_timestamp(region.base_time) if region.base_time else "-"
            lines.append(
                f"| {region.name} | `{region.file_name}` | `{start}` | {region.request_count:,} | "
                f"{region.slow_requests} | {len(region.issues)} | "
                f"{format_time(region.total_time)} | {format_bytes(region.total_size)} |"
            )
        lines.append("")
        return lines

    def _md_comparisons(self, comparisons: list[ComparisonResult]) -> list[str]:
        if not comparisons:
            return []
        lines = [
            "## Cross-Region Differences",
            "",
            "| Path | Slowest | Fastest | Difference |",
            "|------|---------|---------|------------|",
        ]
        lines.extend(
            f"| `{short_url(c.url, PATH_TRUNCATE_LONG)}` | {c.slowest_region} | "
            f"{c.fastest_region} | +{format_time(c.max_diff)} |"
            for c in comparisons[:MARKDOWN_MAX_COMPARISONS]
        )
        if len(comparisons) > MARKDOWN_MAX_COMPARISONS:
            remaining = len(comparisons) - MARKDOWN_MAX_COMPARISONS
            lines.append(f"*... and {remaining} more*")
        lines.append("")
        return lines

    def _md_recommendations(self, recommendations: list[Recommendation]) -> list[str]:
        lines = ["## Recommendations", ""]
        if not recommendations:
            lines.extend(["No performance issues found.", ""])
            return lines

        for index, recommendation in enumerate(recommendations, start=1):
            _, label = PRIORITY_STYLES[recommendation.priority]
            headers, rows = self._evidence_rows(recommendation)
            lines.extend(
                [
                    f"### {index}. [{label}] {recommendation.title}",
                    "",
                    f"- **Category:** {recommendation.category.value}",
                    f"- **Regions:** {', '.join(recommendation.affected_regions)}",
                    "",
                    "| " + " | ".join(headers) + " |",
                    "|" + "|".join("---" for _ in headers) + "|",
                ]
            )
            lines.extend(
                "| " + " | ".join(row) + " |" for row in rows[:MARKDOWN_MAX_EVIDENCE_ROWS]
            )
            lines.append("")
            if recommendation.suggested_actions:
                lines.extend(["**Suggested actions:**", ""])
                lines.extend(f"- {action}" for action in recommendation.suggested_actions)
                lines.append("")
        return lines

    def _evidence_rows(self, recommendation: Recommendation) -> tuple[list[str], list[list[str]]]:
        """Column headers and rows for a recommendation's evidence details."""
        evidence = recommendation.evidence
        if isinstance(evidence, DnsEvidence):
            return ["URL Path", "DNS", "Region"], [
                [short_url(d.url), format_time(d.dns), d.region] for d in evidence.details
            ]
        if isinstance(evidence, ConnectionEvidence):
            return ["URL Path", "Connect", "SSL", "Region"], [
                [short_url(d.url), format_time(d.connect), format_time(d.ssl), d.region]
                for d in evidence.details
            ]
        if isinstance(evidence, TtfbEvidence):
            return ["URL Path", "TTFB", "Region"], [
                [short_url(d.url), format_time(d.ttfb), d.region] for d in evidence.details
            ]
        if isinstance(evidence, DownloadEvidence):
            return ["URL Path", "Download", "Region"], [
                [short_url(d.url), format_time(d.download), d.region] for d in evidence.details
            ]
        if isinstance(evidence, RegionEvidence):
            return ["URL Path", evidence.stats.region, "Fastest", "Difference"], [
                [
                    short_url(d.url),
                    format_time(d.this_region),
                    f"{format_time(d.fastest)} ({d.fastest_region})",
                    f"+{format_time(d.diff)}",
                ]
                for d in evidence.details
            ]
        return [], []

    def _format_timestamp(self, ts: datetime, *, timespec: str = "seconds") -> str:
        if self._timestamp_timezone is None:
            return ts.isoformat(timespec=timespec)
        if ts.tzinfo is None:
            return ts.isoformat(timespec=timespec)
        return ts.astimezone(self._timestamp_timezone).isoformat(timespec=timespec)
