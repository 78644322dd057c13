"""
Store: persistent conflict snapshots across runs.

A small document store kept as one JSON file:
  {collection: {key: document}}

Collections used by the pipeline:
  regionStatuses  keyed by region name
  attacks         keyed "<city>_<timestamp>" (a repeat in one run gets "_2", ...)
  articles        keyed by a stable hash of the article URL
  metadata        singleton "lastUpdate"

Writes go to a temp file and are swapped in with os.replace, so readers
never see a half-written file. Wrapping several writes in transaction()
writes them all at once. save_snapshot replaces every collection, so the
file only ever holds the last run. Another process writing the file is
picked up on the next read (mtime + size check).
"""

import hashlib
import json
import os
import threading
from contextlib import contextmanager
from pathlib import Path

from config import READ_ARTICLE_LIMIT, READ_INCIDENT_LIMIT, REGIONS
from models import ConflictSnapshot, RegionStatus, IncidentRecord, Article, NEUTRAL
from pipeline.fallback import NO_REPORTS

REGION_COLLECTION = "regionStatuses"
INCIDENT_COLLECTION = "attacks"
ARTICLE_COLLECTION = "articles"
METADATA_COLLECTION = "metadata"
LAST_UPDATE_KEY = "lastUpdate"


def article_key(url):
    return hashlib.sha256(url.encode("utf-8", errors="ignore")).hexdigest()[:24]


class JsonStore:
    """Collections of JSON documents in one file, re-read when the file changes."""

    def __init__(self, path):
        self.path = Path(path)
        self._lock = threading.RLock()
        self._data = None
        self._seen = None
        self._depth = 0
        self._dirty = False

    def _signature(self):
        try:
            st = self.path.stat()
        except FileNotFoundError:
            return None
        return (st.st_mtime_ns, st.st_size)

    def _load(self):
        # Pending writes inside a transaction win over the file
        if self._data is not None and (self._depth or self._dirty):
            return self._data
        signature = self._signature()
        if self._data is not None and signature == self._seen:
            return self._data
        self._seen = signature
        if signature is None:
            self._data = {}
            return self._data
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as e:
            print("  X store {}: unreadable ({}), starting empty".format(self.path, str(e)[:60]))
            data = {}
        self._data = data if isinstance(data, dict) else {}
        return self._data

    def _flush(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(self._data, indent=2, default=str), encoding="utf-8")
        os.replace(tmp, self.path)
        self._seen = self._signature()
        self._dirty = False

    @contextmanager
    def transaction(self):
        """Defer the file write until the outermost block exits cleanly."""
        with self._lock:
            if self._depth == 0:
                self._load()
            self._depth += 1
            try:
                yield self
            except Exception:
                self._depth -= 1
                if self._depth == 0:
                    # Drop the in-memory changes; the file still holds the last good state
                    self._data = None
                    self._dirty = False
                raise
            self._depth -= 1
            if self._depth == 0 and self._dirty:
                self._flush()

    def upsert(self, collection, key, value):
        with self._lock:
            data = self._load()
            data.setdefault(collection, {})[key] = value
            self._dirty = True
            if self._depth == 0:
                self._flush()

    def replace(self, collection, documents):
        """Swap a whole collection for the {key: document} mapping given."""
        with self._lock:
            data = self._load()
            data[collection] = dict(documents)
            self._dirty = True
            if self._depth == 0:
                self._flush()

    def get(self, collection, key):
        with self._lock:
            return self._load().get(collection, {}).get(key)

    def list_all(self, collection):
        with self._lock:
            return list(self._load().get(collection, {}).values())

    def query_latest(self, collection, order_field, limit):
        docs = self.list_all(collection)
        docs.sort(key=lambda d: str(d.get(order_field) or ""), reverse=True)
        return docs[:limit]

    def ping(self):
        """Raise if the backing file cannot be read or its directory written."""
        with self._lock:
            self._data = None
            self._load()
            self.path.parent.mkdir(parents=True, exist_ok=True)
            if not os.access(self.path.parent, os.W_OK):
                raise OSError("store directory not writable: {}".format(self.path.parent))
            return True


def incident_documents(incidents):
    """{key: document} for one run. A repeated city_timestamp key gets a _2, _3... suffix."""
    documents = {}
    for incident in incidents:
        key = incident.key
        n = 1
        while key in documents:
            n += 1
            key = "{}_{}".format(incident.key, n)
        documents[key] = incident.to_dict()
    return documents


def save_snapshot(store, snapshot):
    """Replace the stored snapshot with this one in a single write."""
    with store.transaction():
        store.replace(REGION_COLLECTION, {s.name: s.to_dict() for s in snapshot.region_statuses})
        store.replace(INCIDENT_COLLECTION, incident_documents(snapshot.incidents))
        store.replace(ARTICLE_COLLECTION,
                      {article_key(a.url): a.to_dict() for a in snapshot.articles})
        store.upsert(METADATA_COLLECTION, LAST_UPDATE_KEY, {
            "timestamp": snapshot.last_updated,
            "mode": snapshot.mode,
        })


def load_snapshot(store, regions=None, incident_limit=READ_INCIDENT_LIMIT,
                  article_limit=READ_ARTICLE_LIMIT):
    """Last persisted snapshot, or None if nothing has been stored yet."""
    regions = regions or REGIONS
    # One consistent view of the file for every collection
    with store.transaction():
        stored = {d.get("name"): d for d in store.list_all(REGION_COLLECTION)}
        meta = store.get(METADATA_COLLECTION, LAST_UPDATE_KEY) or {}
        incident_docs = store.query_latest(INCIDENT_COLLECTION, "timestamp", incident_limit)
        article_docs = store.query_latest(ARTICLE_COLLECTION, "publishedAt", article_limit)
    if not stored:
        return None
    last_updated = meta.get("timestamp", "")

    statuses = []
    for name in regions:
        if name in stored:
            statuses.append(RegionStatus.from_dict(stored[name]))
        else:
            statuses.append(RegionStatus(name=name, danger_level=NEUTRAL,
                                         description=NO_REPORTS,
                                         last_updated=last_updated))

    return ConflictSnapshot(
        region_statuses=statuses,
        incidents=[IncidentRecord.from_dict(d) for d in incident_docs],
        articles=[Article.from_dict(d) for d in article_docs],
        last_updated=last_updated, mode="cached",
    )
