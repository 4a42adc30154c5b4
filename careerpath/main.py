"""Command-line skill-gap report for CareerPath."""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .config import FULL_CATALOG_RESOURCE_LIMIT
from .engine import analyze_gaps, recommend_jobs, recommend_resources
from .errors import CareerPathError
from .gap_analyzer import filter_jobs_by_track
from .models import GapAnalysis, JobPosting, JobRecommendation, LearningResource, Profile, RankedResource

console = Console()

_PRIORITY_STYLES = {"high": "bold red", "medium": "yellow", "low": "dim"}


def _load_json(path: Path) -> dict | list:
    return json.loads(path.read_text(encoding="utf-8"))


def load_inputs(
    profile_path: Path, jobs_path: Path, resources_path: Path | None
) -> tuple[Profile, list[JobPosting], list[LearningResource]]:
    """Read the profile, job corpus and (optional) resource catalog from JSON files."""
    profile = Profile(**_load_json(profile_path))
    jobs = [JobPosting(**item) for item in _load_json(jobs_path)]
    resources = [LearningResource(**item) for item in _load_json(resources_path)] if resources_path else []
    return profile, jobs, resources


def display_profile(profile: Profile) -> None:
    """Display the candidate profile."""
    parts = [
        f"[bold]Skills:[/bold] {', '.join(profile.skills) or '-'}",
        f"[bold]Preferred Track:[/bold] {profile.preferred_track or 'Not specified'}",
        f"[bold]Experience:[/bold] {profile.experience_level or 'Not specified'}",
    ]
    title = f"📋 {profile.name}" if profile.name else "📋 Profile"
    console.print(Panel("\n".join(parts), title=title, border_style="blue"))
    console.print()


def display_summary(analysis: GapAnalysis) -> None:
    s = analysis.summary
    text = (
        f"Jobs analyzed: [bold]{s.total_jobs_analyzed}[/bold]   "
        f"Skills required: [bold]{s.total_skills_required}[/bold]   "
        f"You have: [bold]{s.skills_you_have}[/bold]   "
        f"To learn: [bold]{s.skills_to_learn}[/bold]   "
        f"Average match: [bold]{s.average_match_score:.0f}%[/bold]"
    )
    console.print(Panel(text, title="📊 Summary", border_style="green"))
    console.print()


def display_gaps(analysis: GapAnalysis, top: int) -> None:
    """Display the skill gaps in a table."""
    if not analysis.gaps:
        console.print("[green]No skill gaps found - you cover every required skill.[/green]")
        console.print()
        return

    table = Table(title="🧭 Skill Gaps", show_header=True, header_style="bold magenta")
    table.add_column("Skill", style="white")
    table.add_column("Missing in", justify="right", style="cyan")
    table.add_column("%", justify="right")
    table.add_column("Priority", justify="center")

    for gap in analysis.gaps[:top]:
        style = _PRIORITY_STYLES[gap.priority]
        table.add_row(
            gap.display_name,
            f"{gap.frequency} jobs",
            f"{gap.frequency_percentage:.0f}",
            f"[{style}]{gap.priority}[/{style}]",
        )
    console.print(table)
    console.print()


def display_matches(recommendations: list[JobRecommendation], top: int) -> None:
    if not recommendations:
        return
    table = Table(title="🎯 Job Matches", show_header=True, header_style="bold magenta")
    table.add_column("Score", justify="center", style="cyan", width=7)
    table.add_column("Title", style="white", max_width=35)
    table.add_column("Company", style="green", max_width=20)
    table.add_column("Missing", style="dim", max_width=40)

    for rec in recommendations[:top]:
        score = rec.match.match_score
        if score >= 80:
            score_str = f"[bold green]{score}[/bold green]"
        elif score >= 50:
            score_str = f"[yellow]{score}[/yellow]"
        else:
            score_str = f"[red]{score}[/red]"
        table.add_row(score_str, rec.job.title[:35], rec.job.company[:20], ", ".join(rec.match.missing_skills))
    console.print(table)
    console.print()


def display_resources(ranked: list[RankedResource]) -> None:
    if not ranked:
        return
    console.print("[bold]📚 Recommended Resources:[/bold]")
    for i, item in enumerate(ranked, 1):
        r = item.resource
        console.print(f"\n[bold cyan]{i}. {r.title}[/bold cyan] ({r.platform or 'unknown platform'}, {r.cost})")
        console.print(f"   Covers: {', '.join(item.matched_skills)}")
        if r.url:
            console.print(f"   Link: {r.url}")
    console.print()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CareerPath CLI."""
    parser = argparse.ArgumentParser(
        description="CareerPath: skill-gap analysis and learning recommendations",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  careerpath profile.json jobs.json
  careerpath profile.json jobs.json resources.json --track frontend
  careerpath profile.json jobs.json resources.json --limit 5 --workers 4
        """,
    )
    parser.add_argument("profile", type=Path, help="Profile JSON (skills, preferred_track, experience_level)")
    parser.add_argument("jobs", type=Path, help="JSON list of job postings")
    parser.add_argument("resources", type=Path, nargs="?", default=None, help="JSON list of learning resources")
    parser.add_argument("--track", "-t", type=str, default=None, help="Only analyze jobs whose track contains this")
    parser.add_argument(
        "--limit", "-l",
        type=int,
        default=FULL_CATALOG_RESOURCE_LIMIT,
        help=f"Maximum resources to recommend (default: {FULL_CATALOG_RESOURCE_LIMIT})",
    )
    parser.add_argument("--min-score", "-s", type=int, default=0, help="Minimum match score to list a job")
    parser.add_argument("--top", type=int, default=10, help="Rows to show per table (default: 10)")
    parser.add_argument("--workers", "-w", type=int, default=1, help="Threads used to score the corpus")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s  %(levelname)-8s  %(message)s",
    )

    try:
        profile, jobs, resources = load_inputs(args.profile, args.jobs, args.resources)
        analysis = analyze_gaps(profile, jobs, args.track, max_workers=args.workers)
        matches = recommend_jobs(profile, filter_jobs_by_track(jobs, args.track), min_score=args.min_score)
        ranked = recommend_resources(analysis.missing_skills, resources, args.limit)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 1
    except (json.JSONDecodeError, ValidationError) as e:
        console.print(f"[red]Invalid input file:[/red] {escape(str(e))}")
        return 1
    except CareerPathError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        return 1

    display_profile(profile)
    display_summary(analysis)
    display_gaps(analysis, args.top)
    display_matches(matches, args.top)
    display_resources(ranked)
    return 0


def cli():
    """CLI entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
