"""
Shared pytest fixtures: fake search/model collaborators and a temp store.
"""

import pytest

from errors import TransportError
from models import Article
from store import JsonStore


class FakeSearch:
    """Canned results per query; queries listed in `fail` raise."""
    label = "Fake search"

    def __init__(self, results=None, fail=(), status=None):
        self.results = results or {}
        self.fail = set(fail)
        self.status = status or {}
        self.calls = []

    def search(self, query, language="en", page_size=20, since=None):
        self.calls.append((query, page_size))
        if query in self.fail:
            raise TransportError("boom")
        if query in self.status:
            return {"status": self.status[query], "message": "bad", "articles": []}
        return {"status": "ok", "articles": list(self.results.get(query, []))}


class FakeModel:
    label = "Fake model"

    def __init__(self, reply="", healthy=True, error=None):
        self.reply = reply
        self.healthy = healthy
        self.error = error
        self.prompts = []
        self.health_checks = 0

    def health_check(self):
        self.health_checks += 1
        return self.healthy

    def complete(self, prompt):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply

    def probe(self):
        if self.error:
            raise self.error
        return "ok" if self.healthy else ""


def make_article(n, title=None, published=None, **kw):
    return Article(
        title=title if title is not None else "Shelling reported along the border #{}".format(n),
        url="https://news.example.com/{}".format(n),
        source="Example News",
        published_at=published or "2025-05-0{}T10:00:00Z".format(min(n, 9)),
        **kw)


@pytest.fixture
def store(tmp_path):
    return JsonStore(tmp_path / "store.json")


@pytest.fixture
def articles():
    return [make_article(i) for i in range(1, 4)]

