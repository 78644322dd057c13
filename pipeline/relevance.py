"""
Step 2: Relevance filter. Keyword matching over title + summary + content.
Pure function over the batch: no network, no model.
"""

from config import KEYWORDS
from models import StepReport


def is_relevant(article, keywords=KEYWORDS):
    """Untitled articles never pass; otherwise any keyword substring keeps it."""
    if not article.title:
        return False
    haystack = " ".join([article.title, article.summary or "", article.content or ""]).lower()
    return any(k in haystack for k in keywords)


def run(articles, limit=None, keywords=KEYWORDS):
    """Filter and sort newest first. Returns (relevant, report)."""
    print("\n>>> RELEVANCE: {} articles...".format(len(articles)))
    report = StepReport("relevance", items_in=len(articles))

    relevant = [a for a in articles if is_relevant(a, keywords)]
    relevant.sort(key=lambda a: a.published_at or "", reverse=True)
    dropped = len(articles) - len(relevant)
    if limit is not None and len(relevant) > limit:
        report.notes.append("capped {} -> {}".format(len(relevant), limit))
        relevant = relevant[:limit]

    report.items_out = len(relevant)
    print("    {} relevant ({} filtered out)".format(len(relevant), dropped))
    return relevant, report
