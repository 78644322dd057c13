"""
Step 7: Publish a snapshot as an HTML dashboard.
Input: ConflictSnapshot, refresh interval
Output: HTML string

Layout: region grid coloured by danger level, incidents table with source
links, recent articles. The page reloads itself every refresh interval.
"""

from config import BORDER_REGIONS, REFRESH_MINUTES
from models import DANGER, MODERATE

MODE_LABELS = {
    "live": "Live analysis",
    "degraded": "Degraded: model unavailable, border heuristic applied",
    "quiet": "Quiet period: no relevant articles",
    "cached": "Last stored analysis",
    "default": "No analysis stored yet",
}


def _esc(text):
    if not text:
        return ""
    return (str(text).replace("&", "&amp;").replace("<", "&lt;")
            .replace(">", "&gt;").replace('"', "&quot;"))


def _level_class(level):
    if level == DANGER:
        return "lvl-danger"
    if level == MODERATE:
        return "lvl-moderate"
    return "lvl-neutral"


def _render_regions(statuses):
    cells = ""
    for s in statuses:
        border = ' <span class="border-tag">border</span>' if s.name in BORDER_REGIONS else ""
        cells += '<div class="region {cls}"><div class="region-name">{name}{border}</div>' \
                 '<div class="region-level">{level}</div><div class="region-desc">{desc}</div></div>'.format(
                     cls=_level_class(s.danger_level), name=_esc(s.name), border=border,
                     level=_esc(s.danger_level.upper()), desc=_esc(s.description))
    return cells


def _render_incidents(incidents):
    if not incidents:
        return '<p class="empty">No incidents reported.</p>'
    rows = ""
    for i in incidents:
        source = ""
        if i.source_article_url:
            source = '<a href="{}" target="_blank" rel="noopener">source</a>'.format(
                _esc(i.source_article_url))
        rows += "<tr><td>{}</td><td>{}</td><td>{}</td><td>{}</td></tr>".format(
            _esc(i.city), _esc(i.region), _esc(i.description), source)
    return ("<table><thead><tr><th>City</th><th>State</th><th>Description</th><th></th></tr></thead>"
            "<tbody>{}</tbody></table>").format(rows)


def _render_articles(articles):
    if not articles:
        return '<p class="empty">No articles.</p>'
    items = ""
    for a in articles:
        items += '<li><a href="{}" target="_blank" rel="noopener">{}</a> <span class="meta">{} | {}</span></li>'.format(
            _esc(a.url), _esc(a.title), _esc(a.source), _esc(a.published_at))
    return "<ol>{}</ol>".format(items)


def run(snapshot, refresh_minutes=REFRESH_MINUTES):
    """Generate HTML. Returns html string."""
    counts = snapshot.counts()
    return HTML_TEMPLATE.format(
        refresh_seconds=int(refresh_minutes * 60),
        updated=_esc(snapshot.last_updated or "never"),
        mode=_esc(MODE_LABELS.get(snapshot.mode, snapshot.mode)),
        danger=counts.get("danger", 0),
        moderate=counts.get("moderate", 0),
        neutral=counts.get("neutral", 0),
        regions=_render_regions(snapshot.region_statuses),
        incidents=_render_incidents(snapshot.incidents),
        articles=_render_articles(snapshot.articles),
        refresh_minutes=refresh_minutes)


HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta http-equiv="refresh" content="{refresh_seconds}">
<title>India-Pakistan Conflict Monitor</title>
<style>
body {{ font-family: system-ui, -apple-system, "Segoe UI", Roboto, sans-serif; margin: 0; background: #0b0f14; color: #e8edf2; }}
header {{ padding: 16px 24px; border-bottom: 1px solid rgba(255,255,255,.1); }}
h1 {{ margin: 0 0 4px; font-size: 1.4rem; }}
.meta {{ color: #9aa7b2; font-size: .85rem; }}
main {{ padding: 16px 24px; }}
.counts span {{ margin-right: 16px; }}
.grid {{ display: grid; grid-template-columns: repeat(auto-fill, minmax(200px, 1fr)); gap: 8px; }}
.region {{ border-radius: 8px; padding: 10px; border: 1px solid rgba(255,255,255,.1); }}
.region-name {{ font-weight: 700; }}
.region-level {{ font-size: .75rem; letter-spacing: .05em; margin: 4px 0; }}
.region-desc {{ font-size: .85rem; color: #c9d3dc; }}
.border-tag {{ font-size: .65rem; background: rgba(255,255,255,.15); border-radius: 4px; padding: 1px 4px; }}
.lvl-danger {{ background: #5c1a1a; }}
.lvl-moderate {{ background: #5c4a1a; }}
.lvl-neutral {{ background: #14301f; }}
table {{ border-collapse: collapse; width: 100%; }}
th, td {{ text-align: left; padding: 6px 8px; border-bottom: 1px solid rgba(255,255,255,.1); }}
a {{ color: #7fb3ff; }}
.empty {{ color: #9aa7b2; }}
</style>
</head>
<body>
<header>
<h1>India-Pakistan Conflict Monitor</h1>
<div class="meta">Updated {updated} | {mode} | refreshes every {refresh_minutes} min</div>
</header>
<main>
<p class="counts"><span>Danger: {danger}</span><span>Moderate: {moderate}</span><span>Neutral: {neutral}</span></p>
<section><h2>States</h2><div class="grid">{regions}</div></section>
<section><h2>Incidents</h2>{incidents}</section>
<section><h2>Sources</h2>{articles}</section>
</main>
</body>
</html>
"""
