"""Static HTML page for a session snapshot."""

import html
from typing import List

from .views import Snapshot

PAGE_STYLE = """
body { font-family: system-ui, sans-serif; max-width: 1100px; margin: 2em auto; }
dl.stats { display: grid; grid-template-columns: repeat(6, 1fr); }
dl.stats dt { grid-row: 1; font-size: 0.8em; text-transform: uppercase; }
dl.stats dd { grid-row: 2; margin: 0; font-size: 1.6em; }
circle.selected { fill: #ff6b6b; }
#files > div { display: grid; grid-template-columns: 16em 1fr; margin-bottom: 0.5em; }
#files dd { display: flex; flex-wrap: wrap; gap: 0.15em; margin: 0; }
.loc { width: 0.5em; aspect-ratio: 1; border-radius: 50%; background: var(--color); }
.step { padding-bottom: 2em; }
"""


def _stats_section(snapshot: Snapshot) -> List[str]:
    stats = snapshot.stats
    rows = [
        ("Commits", stats.commits),
        ("Files", stats.files),
        ('Total <abbr title="Lines of code">LOC</abbr>', stats.total_lines),
        ("Max Depth", stats.max_depth),
        ("Longest Line", stats.longest_line),
        ("Max Lines", stats.max_lines),
    ]
    parts = ['<section id="stats"><dl class="stats">']
    for label, value in rows:
        parts.append(f"<dt>{label}</dt><dd>{value}</dd>")
    parts.append("</dl></section>")
    return parts


def _selection_section(snapshot: Snapshot) -> List[str]:
    selection = snapshot.selection
    parts = [f'<p id="selection-count">{html.escape(selection.text)}</p>']
    parts.append('<dl id="language-breakdown">')
    for share in selection.breakdown:
        parts.append(
            f"<dt>{html.escape(share.type)}</dt>"
            f"<dd>{share.count} lines ({share.percent_text})</dd>"
        )
    parts.append("</dl>")
    return parts


def _files_section(snapshot: Snapshot) -> List[str]:
    parts = ['<dl id="files">']
    for entry in snapshot.files:
        units = "".join(
            f'<div class="loc" style="--color: {color}"></div>' for color in entry.units
        )
        parts.append(
            f"<div><dt><code>{html.escape(entry.name)}<br>"
            f"<small>{entry.line_count} lines</small></code></dt><dd>{units}</dd></div>"
        )
    parts.append("</dl>")
    return parts


def _narrative_section(snapshot: Snapshot) -> List[str]:
    parts = ['<section id="scatter-story">']
    for step in snapshot.narrative:
        parts.append(
            f'<div class="step" data-commit="{html.escape(step.commit_id)}">'
            f'<p><a href="{html.escape(step.url)}">{html.escape(step.commit_id[:7])}</a> '
            f"{html.escape(step.text)}</p></div>"
        )
    parts.append("</section>")
    return parts


def render_page(snapshot: Snapshot, title: str = "Commit timeline") -> str:
    """Render every view of the snapshot into one self-contained HTML document."""
    slider = snapshot.slider
    parts = [
        "<!DOCTYPE html>",
        '<html lang="en"><head><meta charset="utf-8">',
        f"<title>{html.escape(title)}</title>",
        f"<style>{PAGE_STYLE}</style></head><body>",
        f"<h1>{html.escape(title)}</h1>",
    ]
    parts.extend(_stats_section(snapshot))
    parts.append(
        f'<label>Show commits until: <input type="range" id="commit-progress" '
        f'min="0" max="100" value="{slider.position:g}" disabled> '
        f'<time id="commit-time">{html.escape(slider.cutoff_text)}</time></label>'
    )
    parts.append('<div id="chart">')
    parts.append(snapshot.scatter.to_svg())
    parts.append("</div>")
    parts.extend(_selection_section(snapshot))
    parts.extend(_files_section(snapshot))
    parts.extend(_narrative_section(snapshot))
    parts.append("</body></html>")
    return "\n".join(parts)
