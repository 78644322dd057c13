"""
Search collaborators: "articles matching query Q, up to N, newer than D".

NewsApiSearch calls the NewsAPI `everything` endpoint (needs NEWS_API_KEY).
RssSearch reads the Google News RSS search feed (no key).
Both return {"status": "ok"|"error", "articles": [Article, ...]}.
"""

import re
import time
from datetime import datetime, timezone
from urllib.parse import urlencode

import feedparser
import requests

from config import NEWS_API_KEY_ENV, SEARCH_PROVIDER, get_api_key
from errors import ConfigurationError, TransportError
from models import Article

NEWS_API_URL = "https://newsapi.org/v2/everything"
GOOGLE_NEWS_RSS = "https://news.google.com/rss/search"
SUMMARY_CHARS = 500


def clean_text(text):
    text = re.sub(r"<[^>]+>", "", text or "")
    return re.sub(r"\s+", " ", text).strip()


def _iso(value):
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    return value or ""


class NewsApiSearch:
    """NewsAPI /v2/everything, newest first."""
    label = "NewsAPI"

    def __init__(self, api_key=None, timeout=20):
        self.api_key = api_key or get_api_key(NEWS_API_KEY_ENV)
        if not self.api_key:
            raise ConfigurationError(self.label)
        self.timeout = timeout

    def search(self, query, language="en", page_size=20, since=None):
        params = {
            "q": query,
            "language": language,
            "sortBy": "publishedAt",
            "pageSize": page_size,
        }
        if since:
            params["from"] = _iso(since)
        try:
            resp = requests.get(NEWS_API_URL, params=params,
                                headers={"X-Api-Key": self.api_key}, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise TransportError("NewsAPI '{}': {}".format(query, str(e)[:100])) from e

        if data.get("status") != "ok":
            return {"status": "error", "message": data.get("message", ""), "articles": []}
        articles = [a for a in (self._to_article(row) for row in data.get("articles") or []) if a]
        return {"status": "ok", "articles": articles}

    def _to_article(self, row):
        title = (row.get("title") or "").strip()
        url = (row.get("url") or "").strip()
        if not url:
            return None
        source = row.get("source") or {}
        return Article(
            title=title, url=url,
            source=source.get("name") or "Unknown source",
            published_at=row.get("publishedAt") or "",
            summary=clean_text(row.get("description"))[:SUMMARY_CHARS],
            content=clean_text(row.get("content")),
        )


class RssSearch:
    """Google News RSS search. The feed has no page size, so entries are sliced."""
    label = "Google News RSS"

    def search(self, query, language="en", page_size=20, since=None):
        params = {"q": query, "hl": language, "gl": "IN", "ceid": "IN:{}".format(language)}
        url = "{}?{}".format(GOOGLE_NEWS_RSS, urlencode(params))
        feed = feedparser.parse(url, request_headers={"User-Agent": "ConflictMonitor/1.0"})
        if feed.bozo and not feed.entries:
            raise TransportError("RSS '{}': {}".format(query, str(feed.get("bozo_exception", ""))[:100]))

        articles = []
        for entry in feed.entries:
            title = entry.get("title", "").strip()
            link = entry.get("link", "").strip()
            if not title or not link:
                continue
            published = ""
            parsed = entry.get("published_parsed") or entry.get("updated_parsed")
            if parsed:
                published = time.strftime("%Y-%m-%dT%H:%M:%SZ", parsed)
                if since and published < _iso(since):
                    continue
            source = entry.get("source") or {}
            summary = entry.get("summary", entry.get("description", ""))
            articles.append(Article(
                title=title, url=link,
                source=source.get("title", "") or "Google News",
                published_at=published,
                summary=clean_text(summary)[:SUMMARY_CHARS],
            ))
            if len(articles) >= page_size:
                break
        return {"status": "ok", "articles": articles}


def get_search_client(provider=None):
    """Build the configured search collaborator. May raise ConfigurationError."""
    provider = provider or SEARCH_PROVIDER
    if provider == "rss":
        return RssSearch()
    if provider == "newsapi":
        return NewsApiSearch()
    raise ValueError("unknown search provider: {}".format(provider))
