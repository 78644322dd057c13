"""
Step 1: Fetch articles for every query in parallel.
A failing query contributes nothing; it never fails the batch.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

from config import SEARCH_LANGUAGE, SEARCH_WINDOW_DAYS, get_active_queries, get_setting
from models import StepReport


def default_since(pack=None):
    days = get_setting(pack, "search_window_days")
    return datetime.now(timezone.utc) - timedelta(days=days)


def fetch_single_query(search, query, page_size, language, since):
    """Run one query. Returns a list of articles, empty on any failure."""
    try:
        result = search.search(query, language=language, page_size=page_size, since=since)
    except Exception as e:
        print("  X query '{}': {}".format(query[:50], str(e)[:100]))
        return []
    if not result or result.get("status") != "ok":
        message = (result or {}).get("message", "no status")
        print("  X query '{}': {}".format(query[:50], str(message)[:100]))
        return []
    return list(result.get("articles") or [])


def dedupe(articles):
    """Drop repeated URLs, first occurrence wins."""
    seen = set()
    unique = []
    for a in articles:
        if a.url not in seen:
            seen.add(a.url)
            unique.append(a)
    return unique


def run(search, queries=None, language=SEARCH_LANGUAGE, since=None, max_workers=10):
    """Fetch all queries concurrently. Returns (articles, report)."""
    queries = queries if queries is not None else get_active_queries()
    since = since or default_since()
    print("\n>>> FETCH: {} queries...".format(len(queries)))
    report = StepReport("fetch", items_in=len(queries))

    if not queries:
        return [], report

    with ThreadPoolExecutor(max_workers=min(max_workers, len(queries))) as executor:
        futures = [
            executor.submit(fetch_single_query, search, q, size, language, since)
            for q, size in queries
        ]
        # Merge in query order so "first occurrence" does not depend on timing
        results = [f.result() for f in futures]

    failed = sum(1 for r in results if not r)
    all_articles = [a for batch in results for a in batch]
    unique = dedupe(all_articles)

    if failed:
        report.notes.append("{} queries empty or failed".format(failed))
    report.items_out = len(unique)
    print("    {} articles, {} unique".format(len(all_articles), len(unique)))
    return unique, report
