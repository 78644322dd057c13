"""
Fallbacks when the model cannot be used.

neutral_snapshot: quiet period or nothing else available; every region neutral.
degraded_statuses: the model is down or unparsable but articles exist; border
regions are raised to "moderate", interior regions stay neutral.
"""

from config import BORDER_REGIONS, REGIONS
from models import MODERATE, NEUTRAL, ConflictSnapshot, RegionStatus, utc_now

NO_REPORTS = "No current reports of conflict"
BORDER_ALERT = ("Border state: elevated alert while conflict coverage is active "
                "({} recent articles); live analysis unavailable")


def neutral_statuses(regions=None, now=None, description=NO_REPORTS):
    regions = regions or REGIONS
    now = now or utc_now()
    return [RegionStatus(name=r, danger_level=NEUTRAL, description=description, last_updated=now)
            for r in regions]


def neutral_snapshot(now=None, regions=None, mode="default", articles=None):
    now = now or utc_now()
    return ConflictSnapshot(
        region_statuses=neutral_statuses(regions, now),
        incidents=[],
        articles=list(articles or []),
        last_updated=now,
        mode=mode,
    )


def degraded_statuses(articles, regions=None, border_regions=None, now=None):
    regions = regions or REGIONS
    border = set(border_regions if border_regions is not None else BORDER_REGIONS)
    now = now or utc_now()
    if not articles:
        return neutral_statuses(regions, now)

    statuses = []
    for r in regions:
        if r in border:
            statuses.append(RegionStatus(name=r, danger_level=MODERATE,
                                         description=BORDER_ALERT.format(len(articles)),
                                         last_updated=now))
        else:
            statuses.append(RegionStatus(name=r, danger_level=NEUTRAL,
                                         description=NO_REPORTS, last_updated=now))
    return statuses


def degraded_snapshot(articles, regions=None, border_regions=None, now=None):
    now = now or utc_now()
    return ConflictSnapshot(
        region_statuses=degraded_statuses(articles, regions, border_regions, now),
        incidents=[],
        articles=list(articles),
        last_updated=now,
        mode="degraded",
    )
