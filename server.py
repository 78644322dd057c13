"""
HTTP surface: JSON API plus the dashboard page.

  GET /                        dashboard (HTML, reloads every REFRESH_MINUTES)
  GET /api/conflict-data       current snapshot
  GET /api/updateConflictData  run the pipeline once, return its timestamp
  GET /api/news                relevant articles for the first general query
  GET /api/test-services       probe store, search and model

Errors are {"error": "..."} with a non-2xx status; tracebacks stay in the log.
"""

import os
import threading

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

import service_check
from config import GENERAL_PAGE_SIZE, REFRESH_MINUTES, STORE_PATH
from errors import ConfigurationError
from pipeline import publish
from runner import build_pipeline, read_snapshot
from store import JsonStore


def create_app(pipeline=None, store=None, pipeline_factory=None):
    """App factory. Pass a ready pipeline (tests) or let it be built lazily from env."""
    app = Flask(__name__)
    store = store or (pipeline.store if pipeline is not None else JsonStore(STORE_PATH))
    # The read path and the pipeline share one store instance
    pipeline_factory = pipeline_factory or (lambda: build_pipeline(store=store))
    state = {"pipeline": pipeline}
    build_lock = threading.Lock()

    def get_pipeline():
        # Built once and shared so every request sees the same run lock
        with build_lock:
            if state["pipeline"] is None:
                state["pipeline"] = pipeline_factory()
            return state["pipeline"]

    @app.errorhandler(ConfigurationError)
    def handle_config_error(e):
        print("  X configuration: {}".format(e))
        return jsonify({"error": str(e)}), 500

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        print("  X {}: {}".format(type(e).__name__, str(e)[:100]))
        return jsonify({"error": "An unexpected error occurred while processing your request."}), 500

    @app.route("/")
    def dashboard():
        snapshot = read_snapshot(store)
        return publish.run(snapshot, REFRESH_MINUTES)

    @app.route("/api/conflict-data")
    def conflict_data():
        return jsonify(read_snapshot(store).to_dict())

    @app.route("/api/updateConflictData")
    def update_conflict_data():
        snapshot = get_pipeline().run_once()
        return jsonify({
            "success": True,
            "message": "Conflict data updated successfully",
            "timestamp": snapshot.last_updated,
            "mode": snapshot.mode,
        })

    @app.route("/api/news")
    def news():
        p = get_pipeline()
        queries = [(q, GENERAL_PAGE_SIZE) for q, _ in p.queries[:1]]
        articles, _ = p.fetch_relevant(queries)
        return jsonify({
            "status": "ok",
            "query": queries[0][0] if queries else "",
            "totalResults": len(articles),
            "articles": [a.to_dict() for a in articles],
        })

    @app.route("/api/test-services")
    def test_services():
        p = state["pipeline"]
        return jsonify(service_check.run_all(
            store,
            search=p.search if p is not None else None,
            model=p.model if p is not None else None))

    return app


def main():
    load_dotenv()
    app = create_app()
    port = int(os.environ.get("PORT", "8000"))
    print("Conflict Monitor API on port {}".format(port))
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
