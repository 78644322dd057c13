"""
Step 6: Reconcile model output against the canonical region list.

Regions: exactly one status per canonical region. The model's level and
description are adopted when it names the region; anything it skipped is
neutral; names it invented are dropped.

Incidents: first N in model order, missing fields defaulted, and the
1-based "sourceArticle" citation resolved against the same article batch
the prompt was built from.
"""

from config import MAX_INCIDENTS, REGIONS
from models import DANGER_LEVELS, NEUTRAL, IncidentRecord, RegionStatus, StepReport, utc_now
from pipeline.fallback import NO_REPORTS

UNKNOWN_CITY = "Unknown location"


def _text(value, default=""):
    if value is None:
        return default
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    return value or default


def normalize_level(value):
    level = _text(value).lower()
    return level if level in DANGER_LEVELS else NEUTRAL


def reconcile_regions(raw_states, regions=None, now=None):
    """One RegionStatus per canonical region, in canonical order."""
    regions = regions or REGIONS
    now = now or utc_now()

    by_name = {}
    by_lower = {}
    for entry in raw_states or []:
        if not isinstance(entry, dict):
            continue
        name = _text(entry.get("name"))
        if not name:
            continue
        # Later entries overwrite earlier ones for the same name
        by_name[name] = entry
        by_lower[name.lower()] = entry

    statuses = []
    for region in regions:
        entry = by_name.get(region) or by_lower.get(region.lower())
        if entry is None:
            statuses.append(RegionStatus(name=region, danger_level=NEUTRAL,
                                         description=NO_REPORTS, last_updated=now))
            continue
        statuses.append(RegionStatus(
            name=region,
            danger_level=normalize_level(entry.get("dangerLevel")),
            description=_text(entry.get("description"), NO_REPORTS),
            last_updated=now,
        ))
    return statuses


def resolve_source(citation, articles):
    """1-based article index -> URL. Anything unusable resolves to None."""
    if citation is None or isinstance(citation, bool):
        return None
    if isinstance(citation, float):
        if not citation.is_integer():
            return None
        citation = int(citation)
    elif isinstance(citation, str):
        citation = citation.strip()
        if not citation.isdecimal():
            return None
        citation = int(citation)
    elif not isinstance(citation, int):
        return None
    if 1 <= citation <= len(articles):
        return articles[citation - 1].url
    return None


def reconcile_incidents(raw_attacks, articles, max_incidents=MAX_INCIDENTS, now=None):
    """Capped incident list in model order, every entry stamped with now."""
    now = now or utc_now()
    entries = [e for e in (raw_attacks or []) if isinstance(e, dict)]
    incidents = []
    for entry in entries[:max(0, max_incidents)]:
        incidents.append(IncidentRecord(
            city=_text(entry.get("city"), UNKNOWN_CITY),
            region=_text(entry.get("state")),
            description=_text(entry.get("description")),
            timestamp=now,
            source_article_url=resolve_source(entry.get("sourceArticle"), articles),
        ))
    return incidents


def run(raw, articles, regions=None, max_incidents=MAX_INCIDENTS, now=None):
    """Returns (region_statuses, incidents, report)."""
    regions = regions or REGIONS
    now = now or utc_now()
    print("\n>>> RECONCILE: {} states, {} attacks...".format(
        len(raw.raw_states), len(raw.raw_attacks)))
    report = StepReport("reconcile", items_in=len(raw.raw_states) + len(raw.raw_attacks))

    statuses = reconcile_regions(raw.raw_states, regions, now)
    incidents = reconcile_incidents(raw.raw_attacks, articles, max_incidents, now)

    named = {_text(e.get("name")).lower() for e in raw.raw_states if isinstance(e, dict)}
    defaulted = sum(1 for r in regions if r.lower() not in named)
    if defaulted:
        report.notes.append("{} regions defaulted".format(defaulted))
    if len(raw.raw_attacks) > len(incidents):
        report.notes.append("{} attacks dropped".format(len(raw.raw_attacks) - len(incidents)))
    cited = sum(1 for i in incidents if i.source_article_url)
    report.items_out = len(statuses) + len(incidents)
    print("    {} regions, {} incidents ({} with source)".format(len(statuses), len(incidents), cited))
    return statuses, incidents, report
