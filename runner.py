#!/usr/bin/env python3
"""
Conflict Monitor Runner
=======================
Orchestrates the pipeline: Fetch > Relevance > Prompt > Model > Parse >
Reconcile > Store

Fallbacks, in order:
  no articles          -> every region neutral, no model call
  model down / garbage -> degraded heuristic (border regions elevated)
  anything unexpected  -> last stored snapshot, else all neutral

Usage:
  python runner.py                          # One run
  python runner.py --interval 30            # Re-run every 30 minutes
  python runner.py --config packs/wide.json # Specific query pack
"""

import argparse
import json
import sys
import threading
import time
import traceback

from dotenv import load_dotenv

from config import (BORDER_REGIONS, LLM_CONFIGS, MODEL_ID, REFRESH_MINUTES, REGIONS, STORE_PATH,
                    get_active_queries, get_setting, load_query_pack)
from errors import ConfigurationError, MalformedResponse
from llm import ModelClient
from models import ConflictSnapshot, StepReport, utc_now
from pipeline import fetch, relevance, prompt, parse, reconcile, fallback
from search import get_search_client
from store import JsonStore, load_snapshot, save_snapshot


def read_snapshot(store, regions=None):
    """Read path: last stored snapshot, else all neutral."""
    try:
        snapshot = load_snapshot(store, regions)
    except Exception as e:
        print("  X reading stored snapshot: {}".format(str(e)[:100]))
        snapshot = None
    if snapshot is None:
        return fallback.neutral_snapshot(regions=regions)
    return snapshot


class Pipeline:
    """News-to-classification pipeline with injected search, model and store."""

    def __init__(self, search, model, store, pack=None, regions=None, border_regions=None):
        self.search = search
        self.model = model
        self.store = store
        self.pack = pack
        self.queries = get_active_queries(pack)
        self.max_articles = get_setting(pack, "max_articles")
        self.max_incidents = get_setting(pack, "max_incidents")
        self.prompt_budget = get_setting(pack, "prompt_char_budget")
        self.regions = regions or REGIONS
        self.border_regions = border_regions if border_regions is not None else BORDER_REGIONS
        self.reports = []
        self._run_lock = threading.Lock()

    def latest_snapshot(self):
        return read_snapshot(self.store, self.regions)

    def run_once(self):
        """One full run. Always returns a ConflictSnapshot, never raises."""
        if not self._run_lock.acquire(blocking=False):
            print("Run already in progress; serving stored snapshot")
            return self.latest_snapshot()
        start_time = time.time()
        try:
            self.reports = []
            try:
                snapshot = self._run()
            except Exception as e:
                print("  ERROR: {}".format(str(e)[:100]))
                traceback.print_exc()
                return self.latest_snapshot()

            try:
                save_snapshot(self.store, snapshot)
                print("\nStored snapshot ({}) at {}".format(snapshot.mode, snapshot.last_updated))
            except Exception as e:
                print("  X storing snapshot: {}".format(str(e)[:100]))
            self._print_report(int(time.time() - start_time))
            return snapshot
        finally:
            self._run_lock.release()

    def fetch_relevant(self, queries=None):
        """Steps 1-2 only. Returns (relevant articles, [fetch report, relevance report])."""
        articles, fetch_report = fetch.run(
            self.search, queries if queries is not None else self.queries,
            since=fetch.default_since(self.pack))
        relevant, relevance_report = relevance.run(articles, limit=self.max_articles)
        return relevant, [fetch_report, relevance_report]

    def _run(self):
        # Steps 1-2: Fetch + Relevance
        articles, reports = self.fetch_relevant()
        self.reports.extend(reports)
        if not articles:
            print("No relevant articles: quiet period, all regions neutral")
            return fallback.neutral_snapshot(regions=self.regions, mode="quiet")

        # Step 3: Prompt
        text, prompt_report = prompt.run(articles, self.regions, self.max_incidents,
                                         self.prompt_budget, self.border_regions)
        self.reports.append(prompt_report)

        # Step 4: Model
        model_report = StepReport("model", items_in=1)
        self.reports.append(model_report)
        print("\n>>> MODEL: {}...".format(getattr(self.model, "label", "model")))
        model_report.llm_calls += 1
        if not self.model.health_check():
            model_report.llm_failures += 1
            model_report.notes.append("health check failed")
            return self._degraded(articles, "model health check failed")
        try:
            model_report.llm_calls += 1
            response = self.model.complete(text)
            model_report.llm_successes += 2
            model_report.items_out = 1
        except Exception as e:
            # Any model failure degrades, not only TransportError
            model_report.llm_successes += 1
            model_report.llm_failures += 1
            return self._degraded(articles, "model call failed: {}".format(e))

        # Step 5: Parse
        try:
            raw, parse_report = parse.run(response)
        except MalformedResponse as e:
            self.reports.append(StepReport("parse", items_in=1, notes=[str(e)[:80]]))
            return self._degraded(articles, "unparsable model output: {}".format(e))
        self.reports.append(parse_report)

        # Step 6: Reconcile
        now = utc_now()
        statuses, incidents, reconcile_report = reconcile.run(
            raw, articles, self.regions, self.max_incidents, now)
        self.reports.append(reconcile_report)

        return ConflictSnapshot(region_statuses=statuses, incidents=incidents,
                                articles=articles, last_updated=now, mode="live")

    def _degraded(self, articles, reason):
        print("  X {} -> degraded heuristic".format(str(reason)[:120]))
        report = StepReport("degraded", items_in=len(articles), notes=[str(reason)[:80]])
        snapshot = fallback.degraded_snapshot(articles, self.regions, self.border_regions)
        report.items_out = len(snapshot.region_statuses)
        self.reports.append(report)
        return snapshot

    def _print_report(self, run_time):
        print("\n" + "=" * 70)
        print("RUN REPORT")
        print("=" * 70)
        for r in self.reports:
            print("  " + r.summary())
        print("  Total runtime: {}s".format(run_time))
        print("=" * 70)


def build_pipeline(pack=None, store_path=STORE_PATH, model_id=MODEL_ID, search_provider=None,
                   store=None):
    """Wire real collaborators from the environment. Raises ConfigurationError."""
    search = get_search_client(search_provider)
    model = ModelClient(model_id)
    return Pipeline(search, model, store or JsonStore(store_path), pack=pack)


def main():
    load_dotenv()
    parser = argparse.ArgumentParser(description="India-Pakistan Conflict Monitor")
    parser.add_argument("--config", help="Path to query pack JSON", default=None)
    parser.add_argument("--interval", type=float, default=None,
                        help="Re-run every N minutes (default: run once; {} is typical)".format(
                            REFRESH_MINUTES))
    parser.add_argument("--store", default=STORE_PATH, help="Snapshot store JSON file")
    parser.add_argument("--model", default=MODEL_ID, choices=sorted(LLM_CONFIGS))
    parser.add_argument("--search", default=None, choices=["newsapi", "rss"])
    parser.add_argument("--json", action="store_true", help="Print the snapshot as JSON")
    args = parser.parse_args()

    print("=" * 70)
    print("CONFLICT MONITOR")
    print("=" * 70)

    pack = load_query_pack(args.config)
    if pack:
        print("Config pack: {}".format(pack.get("name", args.config)))

    try:
        pipeline = build_pipeline(pack, args.store, args.model, args.search)
    except ConfigurationError as e:
        print("\n{}".format(e))
        sys.exit(1)
    print("Model: {} | Queries: {} | Store: {}".format(
        pipeline.model.label, len(pipeline.queries), args.store))

    while True:
        snapshot = pipeline.run_once()
        counts = snapshot.counts()
        print("\n{} | danger {} | moderate {} | neutral {} | {} incidents".format(
            snapshot.mode, counts["danger"], counts["moderate"], counts["neutral"],
            len(snapshot.incidents)))
        if args.json:
            print(json.dumps(snapshot.to_dict(), indent=2))
        if not args.interval:
            break
        print("Next run in {} minutes".format(args.interval))
        time.sleep(args.interval * 60)


if __name__ == "__main__":
    main()
