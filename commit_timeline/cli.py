"""
Command line interface.

    commit-timeline summary loc.csv
    commit-timeline export loc.csv -o out/ --progress 40 --brush 100,50,400,300
    commit-timeline replay loc.csv events.yaml -o out/
"""

import math
import os
import sys
from collections import Counter
from datetime import datetime
from typing import Any, Dict, Optional

import click

from . import SCHEMA_VERSION, VERSION
from .commits import aggregate_commits
from .config import ConfigResolver
from .controller import ExplorerSession
from .errors import TimelineError
from .events import load_event_script
from .formatting import format_long_datetime
from .page import render_page
from .records import load_records
from .reporting import (
    ProgressReporter,
    configure_logging,
    generate_manifest,
    write_json,
    write_text,
)
from .selection import SelectionRect


def _check_finite(ctx, param, value) -> Optional[float]:
    if value is not None and not math.isfinite(value):
        raise click.BadParameter("must be a finite number")
    return value


def _parse_brush(ctx, param, value) -> Optional[SelectionRect]:
    if value is None:
        return None
    try:
        x0, y0, x1, y1 = (float(part) for part in value.split(","))
    except ValueError:
        raise click.BadParameter("expected four comma-separated numbers: X0,Y0,X1,Y1")
    return SelectionRect(x0, y0, x1, y1)


def common_options(func):
    options = [
        click.option(
            "--config",
            type=click.Path(exists=True, dir_okay=False),
            help="Configuration file path (.yaml or .json)",
        ),
        click.option(
            "--preset",
            type=click.Choice(["standard", "compact", "wide"]),
            help="Use predefined plot configuration",
        ),
        click.option("--repo-url", help="Repository URL used to build commit links"),
        click.option(
            "-q", "--quiet", is_flag=True, default=None, help="Suppress progress output"
        ),
        click.option(
            "-v", "--verbose", is_flag=True, default=None, help="Show debug logging"
        ),
        click.option("--no-color", is_flag=True, default=None, help="Disable colored output"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _default_output_dir() -> str:
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return f"timeline_output_{timestamp}"


def _open_session(dataset: str, config: Optional[str], preset: Optional[str], cli_args: Dict[str, Any]):
    """
    Resolve configuration, load the dataset and build a session.

    Any failure here is terminal: the error is reported and the process
    exits with status 1.
    """
    fallback = ProgressReporter(use_colors=not cli_args.get("no_color"))
    try:
        resolver = ConfigResolver(
            cli_args, config, preset, os.path.dirname(os.path.abspath(dataset))
        )
    except TimelineError as e:
        fallback.error(str(e))
        sys.exit(1)

    configure_logging(bool(resolver.get("verbose", False)))
    reporter = ProgressReporter(
        quiet=bool(resolver.get("quiet", False)),
        verbose=bool(resolver.get("verbose", False)),
        use_colors=not resolver.get("no_color", False),
    )

    if resolver.config_path:
        reporter.info(f"Using configuration: {resolver.config_path}")

    try:
        reporter.stage_start("Loading", f"Reading {dataset}")
        records = load_records(dataset)
        commit_set = aggregate_commits(records, repo_url=resolver.get("repo_url"))
        if not commit_set:
            reporter.warning(f"{dataset} contains no commits; every view will be empty")
        session = ExplorerSession(
            commit_set,
            layout=resolver.layout(),
            radius_range=resolver.radius_range(),
            initial_progress=resolver.get("initial_progress"),
        )
        reporter.stage_complete(
            "Loading", {"Line records": f"{len(records):,}", "Commits": f"{len(commit_set):,}"}
        )
    except TimelineError as e:
        reporter.error(str(e))
        sys.exit(1)

    return session, reporter


def _export_session(session: ExplorerSession, output_dir: str, title: str):
    snapshot = session.snapshot()
    outputs = {
        "commits": "commits.json",
        "snapshot": "snapshot.json",
        "scatter": "scatter.svg",
        "page": "index.html",
    }
    write_json([c.to_dict() for c in session.commit_set], os.path.join(output_dir, outputs["commits"]))
    write_json(
        {"schema_version": SCHEMA_VERSION, **snapshot.to_dict()},
        os.path.join(output_dir, outputs["snapshot"]),
    )
    write_text(snapshot.scatter.to_svg(), os.path.join(output_dir, outputs["scatter"]))
    write_text(render_page(snapshot, title), os.path.join(output_dir, outputs["page"]))
    return outputs


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.version_option(version=VERSION)
def main():
    """Explore a repository's commit history from per-line change records."""


@main.command()
@click.argument("dataset", type=click.Path(exists=True, dir_okay=False))
@common_options
def summary(dataset, config, preset, **kwargs):
    """Print aggregate statistics of DATASET."""
    session, reporter = _open_session(dataset, config, preset, kwargs)
    commit_set = session.commit_set
    stats = session.stats

    summary_stats = {
        "Dataset": dataset,
        "Commits": f"{stats.commits:,}",
        "Files": f"{stats.files:,}",
        "Total LOC": f"{stats.total_lines:,}",
        "Max depth": stats.max_depth,
        "Longest line": stats.longest_line,
        "Max lines per commit": stats.max_lines,
    }
    extent = commit_set.extent()
    if extent:
        summary_stats["First commit"] = format_long_datetime(extent[0])
        summary_stats["Last commit"] = format_long_datetime(extent[1])
        authors = Counter(c.author for c in commit_set)
        summary_stats["Authors"] = ", ".join(
            f"{name} ({count})" for name, count in authors.most_common(5)
        )
    for share in session.selection_view.breakdown:
        summary_stats[f"  {share.type}"] = f"{share.count:,} lines ({share.percent_text})"

    reporter.summary(summary_stats)


@main.command()
@click.argument("dataset", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", type=click.Path(file_okay=False), help="Output directory")
@click.option(
    "--progress",
    type=click.FloatRange(0, 100),
    callback=_check_finite,
    help="Slider position (0-100) for the exported views",
)
@click.option("--brush", callback=_parse_brush, help="Brush rectangle X0,Y0,X1,Y1 in plot pixels")
@click.option("--title", default="Commit timeline", help="Page title")
@common_options
def export(dataset, output, progress, brush, title, config, preset, **kwargs):
    """Export the views of DATASET as JSON, SVG and HTML."""
    kwargs["initial_progress"] = progress
    session, reporter = _open_session(dataset, config, preset, kwargs)
    if brush is not None:
        session.brush(brush)

    output_dir = output or _default_output_dir()
    os.makedirs(output_dir, exist_ok=True)

    reporter.stage_start("Export", f"Writing views to {output_dir}")
    outputs = _export_session(session, output_dir, title)
    generate_manifest(output_dir, dataset, outputs)
    reporter.stage_complete("Export")

    reporter.summary(
        {
            "Cutoff": session.filter.cutoff_text,
            "Visible commits": f"{len(session.filtered_commits):,} / {len(session.commit_set):,}",
            "Selection": session.selection_view.text,
            "Output directory": output_dir,
        }
    )
    reporter.success(f"Export complete! Results saved to: {output_dir}")


@main.command()
@click.argument("dataset", type=click.Path(exists=True, dir_okay=False))
@click.argument("events", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", type=click.Path(file_okay=False), help="Output directory")
@click.option("--title", default="Commit timeline", help="Page title")
@common_options
def replay(dataset, events, output, title, config, preset, **kwargs):
    """Replay the input EVENTS script against DATASET and record every state."""
    session, reporter = _open_session(dataset, config, preset, kwargs)

    try:
        messages = load_event_script(events)
    except TimelineError as e:
        reporter.error(str(e))
        sys.exit(1)

    output_dir = output or _default_output_dir()
    os.makedirs(output_dir, exist_ok=True)

    states = []
    progress_bar = reporter.create_progress_bar(len(messages))
    try:
        for index, message in enumerate(messages):
            session.dispatch(message)
            state = session.snapshot().to_dict()
            state["event"] = index
            state["message"] = type(message).__name__
            states.append(state)
            if progress_bar:
                progress_bar.update(1)
    except TimelineError as e:
        reporter.error(f"Event {index}: {e}")
        sys.exit(1)
    finally:
        if progress_bar:
            progress_bar.close()

    outputs = _export_session(session, output_dir, title)
    write_json(states, os.path.join(output_dir, "states.json"))
    outputs["states"] = "states.json"
    generate_manifest(output_dir, dataset, outputs)

    reporter.summary(
        {
            "Events replayed": len(messages),
            "Final cutoff": session.filter.cutoff_text,
            "Visible commits": f"{len(session.filtered_commits):,} / {len(session.commit_set):,}",
            "Output directory": output_dir,
        }
    )
    reporter.success(f"Replay complete! Results saved to: {output_dir}")


if __name__ == "__main__":
    main()
