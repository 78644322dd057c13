"""
Configuration: regions, relevance keywords, search queries, LLM models.
For query packs, the runner loads a JSON config that can override
which queries run and how many incidents are kept.
"""

import json
import os
from pathlib import Path


ADVERSARY = "pakistan"

# Border states with Pakistan get elevated scrutiny
BORDER_REGIONS = ["Jammu and Kashmir", "Punjab", "Rajasthan", "Gujarat"]

INTERIOR_REGIONS = [
    "Himachal Pradesh", "Uttarakhand", "Haryana", "Delhi", "Uttar Pradesh",
    "Madhya Pradesh", "Maharashtra", "Telangana", "Andhra Pradesh",
    "Karnataka", "Tamil Nadu", "Kerala", "Goa", "Chhattisgarh", "Odisha",
    "Jharkhand", "Bihar", "West Bengal", "Sikkim", "Assam", "Meghalaya",
    "Tripura", "Mizoram", "Manipur", "Nagaland", "Arunachal Pradesh",
]

REGIONS = BORDER_REGIONS + INTERIOR_REGIONS

REGION_ALIASES = {
    "Jammu and Kashmir": ["jammu", "kashmir", "srinagar", "poonch", "rajouri", "kupwara"],
    "Punjab": ["amritsar", "pathankot", "ferozepur", "gurdaspur", "attari", "wagah"],
    "Rajasthan": ["jaisalmer", "barmer", "bikaner", "sri ganganagar"],
    "Gujarat": ["bhuj", "kutch", "sir creek"],
    "Delhi": ["new delhi"],
    "Uttar Pradesh": ["lucknow"],
    "Maharashtra": ["mumbai"],
}

# Lower-case substrings; an article is relevant if any one appears
CONFLICT_TERMS = [
    "conflict", "war", "tension", "military", "ceasefire", "violation",
    "border", "line of control", "defense", "defence", "army",
    "airstrike", "air strike", "operation sindoor",
]
ADVERSARY_TERMS = ["pakistan", "pakistani", "islamabad", "rawalpindi"]
SECURITY_TERMS = [
    "attack", "security", "missile", "terror", "shelling", "drone",
    "blast", "explosion", "infiltration", "militant", "firing", "blackout",
]


def _region_terms():
    terms = []
    for region in REGIONS:
        terms.append(region.lower())
        terms.extend(REGION_ALIASES.get(region, []))
    return terms


KEYWORDS = CONFLICT_TERMS + ADVERSARY_TERMS + SECURITY_TERMS + _region_terms()

GENERAL_QUERIES = [
    "india pakistan conflict",
    "india pakistan border attack",
    "line of control ceasefire violation",
]

GENERAL_PAGE_SIZE = 30
REGION_PAGE_SIZE = 2
SEARCH_WINDOW_DAYS = 7
SEARCH_LANGUAGE = "en"

MAX_ARTICLES = 20
PROMPT_CHAR_BUDGET = 20000
MAX_INCIDENTS = 10

# Model round-trip: seconds before the call counts as unavailable
MODEL_TIMEOUT = int(os.environ.get("MODEL_TIMEOUT", "60"))
# Attempts per model call; only HTTP 429 is retried
MODEL_ATTEMPTS = int(os.environ.get("MODEL_ATTEMPTS", "1"))
MODEL_MAX_TOKENS = 4000

REFRESH_MINUTES = 30

READ_INCIDENT_LIMIT = 20
READ_ARTICLE_LIMIT = 20

STORE_PATH = os.environ.get("CONFLICT_STORE_PATH", "output/conflict_store.json")
SEARCH_PROVIDER = os.environ.get("SEARCH_PROVIDER", "newsapi")
MODEL_ID = os.environ.get("MODEL_ID", "gemini")

NEWS_API_KEY_ENV = "NEWS_API_KEY"

LLM_CONFIGS = {
    "gemini": {
        "provider": "google", "model": os.environ.get("GEMINI_MODEL", "gemini-2.0-flash"),
        "env_key": "GOOGLE_API_KEY", "alt_env_key": "GEMINI_API_KEY", "label": "Gemini",
    },
    "chatgpt": {
        "provider": "openai", "model": "gpt-4.1",
        "env_key": "OPENAI_API_KEY", "label": "ChatGPT",
    },
    "claude": {
        "provider": "anthropic", "model": "claude-sonnet-4-20250514",
        "env_key": "ANTHROPIC_API_KEY", "label": "Claude",
    },
}

# Keys a query pack may override
PACK_SETTINGS = {
    "general_page_size": GENERAL_PAGE_SIZE,
    "region_page_size": REGION_PAGE_SIZE,
    "search_window_days": SEARCH_WINDOW_DAYS,
    "max_articles": MAX_ARTICLES,
    "max_incidents": MAX_INCIDENTS,
    "prompt_char_budget": PROMPT_CHAR_BUDGET,
}


def region_queries():
    """One search per region: '<region> current condition <adversary>'."""
    return ["{} current condition {}".format(region, ADVERSARY) for region in REGIONS]


def load_query_pack(path):
    """Load a JSON config pack that overrides default queries/settings."""
    if not path or not Path(path).exists():
        return None
    with open(path) as f:
        return json.load(f)


def get_setting(pack, name):
    """Return a pack override for name, else the module default."""
    if pack and name in pack:
        return pack[name]
    return PACK_SETTINGS[name]


def get_active_queries(pack=None):
    """Return [(query, page_size), ...], optionally overridden by a query pack."""
    general = GENERAL_QUERIES
    if pack and "queries" in pack:
        general = pack["queries"]
    queries = [(q, get_setting(pack, "general_page_size")) for q in general]
    if not pack or pack.get("region_queries", True):
        size = get_setting(pack, "region_page_size")
        queries.extend((q, size) for q in region_queries())
    return queries


def get_api_key(env_key, alt_env_key=None):
    """Environment lookup that treats blank values as missing."""
    value = os.environ.get(env_key, "").strip()
    if not value and alt_env_key:
        value = os.environ.get(alt_env_key, "").strip()
    return value or None
