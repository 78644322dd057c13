"""
Data models for the pipeline. Clean interfaces between steps.
to_dict() produces the camelCase shape the store and the dashboard read.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Any

DANGER = "danger"
MODERATE = "moderate"
NEUTRAL = "neutral"
DANGER_LEVELS = (DANGER, MODERATE, NEUTRAL)


def utc_now():
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Article:
    """A single news article returned by a search query."""
    title: str
    url: str
    source: str = ""
    published_at: str = ""
    summary: str = ""
    content: str = ""

    def to_dict(self):
        return {
            "title": self.title,
            "source": self.source,
            "url": self.url,
            "publishedAt": self.published_at,
            "summary": self.summary,
        }

    @classmethod
    def from_dict(cls, d):
        return cls(
            title=d.get("title", ""), url=d.get("url", ""),
            source=d.get("source", ""), published_at=d.get("publishedAt", ""),
            summary=d.get("summary", "") or "", content=d.get("content", "") or "",
        )


@dataclass
class RegionStatus:
    """Threat classification for one region in one run."""
    name: str
    danger_level: str = NEUTRAL
    description: str = ""
    last_updated: str = ""

    def to_dict(self):
        return {
            "name": self.name,
            "dangerLevel": self.danger_level,
            "description": self.description,
            "lastUpdated": self.last_updated,
        }

    @classmethod
    def from_dict(cls, d):
        return cls(
            name=d.get("name", ""), danger_level=d.get("dangerLevel", NEUTRAL),
            description=d.get("description", ""), last_updated=d.get("lastUpdated", ""),
        )


@dataclass
class IncidentRecord:
    """A notable incident reported by the model."""
    city: str
    region: str = ""  # free text, not required to match config.REGIONS
    description: str = ""
    timestamp: str = ""
    source_article_url: Optional[str] = None

    @property
    def key(self):
        return "{}_{}".format(self.city, self.timestamp)

    def to_dict(self):
        d = {
            "city": self.city,
            "state": self.region,
            "description": self.description,
            "timestamp": self.timestamp,
        }
        if self.source_article_url:
            d["sourceArticleUrl"] = self.source_article_url
        return d

    @classmethod
    def from_dict(cls, d):
        return cls(
            city=d.get("city", ""), region=d.get("state", ""),
            description=d.get("description", ""), timestamp=d.get("timestamp", ""),
            source_article_url=d.get("sourceArticleUrl"),
        )


@dataclass
class RawAnalysis:
    """Model output after JSON extraction, before any validation."""
    raw_states: List[Any] = field(default_factory=list)
    raw_attacks: List[Any] = field(default_factory=list)


@dataclass
class ConflictSnapshot:
    """Complete output of one pipeline run. Unit of persistence."""
    region_statuses: List[RegionStatus] = field(default_factory=list)
    incidents: List[IncidentRecord] = field(default_factory=list)
    articles: List[Article] = field(default_factory=list)
    last_updated: str = ""
    mode: str = "live"  # live, degraded, quiet, cached, default

    def status_for(self, name):
        for s in self.region_statuses:
            if s.name == name:
                return s
        return None

    def counts(self):
        """Number of regions at each danger level."""
        out = {level: 0 for level in DANGER_LEVELS}
        for s in self.region_statuses:
            out[s.danger_level] = out.get(s.danger_level, 0) + 1
        return out

    def to_dict(self):
        return {
            "regionStatuses": [s.to_dict() for s in self.region_statuses],
            "incidents": [i.to_dict() for i in self.incidents],
            "articles": [a.to_dict() for a in self.articles],
            "lastUpdated": self.last_updated,
            "mode": self.mode,
        }


@dataclass
class StepReport:
    """Observability for each pipeline step."""
    step_name: str
    items_in: int = 0
    items_out: int = 0
    llm_calls: int = 0
    llm_successes: int = 0
    llm_failures: int = 0
    notes: List[str] = field(default_factory=list)

    def summary(self):
        success_rate = ""
        if self.llm_calls > 0:
            pct = int(100 * self.llm_successes / self.llm_calls)
            success_rate = " ({}% success)".format(pct)
        return "{}: {} in -> {} out | {} LLM calls{}{}".format(
            self.step_name, self.items_in, self.items_out,
            self.llm_calls, success_rate,
            " | " + "; ".join(self.notes) if self.notes else "")
