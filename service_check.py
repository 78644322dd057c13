"""
Health probes for the three collaborators: store, search, model.
Each returns {"success": bool, "message": str, ...}; none of them raise.
"""

from config import MODEL_ID
from errors import ConfigurationError
from llm import ModelClient
from search import get_search_client


def check_store(store):
    try:
        store.ping()
        return {"success": True, "message": "Store ready at {}".format(store.path)}
    except Exception as e:
        return {"success": False, "message": "Store unavailable: {}".format(str(e)[:200])}


def check_search(search=None):
    try:
        search = search or get_search_client()
        result = search.search("india pakistan", page_size=5)
    except ConfigurationError as e:
        return {"success": False, "message": str(e)}
    except Exception as e:
        return {"success": False, "message": "Search failed: {}".format(str(e)[:200])}
    if result.get("status") != "ok":
        return {"success": False, "message": "Search error: {}".format(result.get("message", ""))}
    return {
        "success": True,
        "message": "{} initialized successfully".format(getattr(search, "label", "Search")),
        "articles": len(result.get("articles") or []),
    }


def check_model(model=None):
    try:
        model = model or ModelClient(MODEL_ID)
        reply = model.probe()
    except ConfigurationError as e:
        return {"success": False, "message": str(e)}
    except Exception as e:
        return {"success": False, "message": "Model failed: {}".format(str(e)[:200])}
    if not reply.strip():
        return {"success": False, "message": "{} returned an empty reply".format(model.label)}
    return {
        "success": True,
        "message": "{} initialized successfully".format(model.label),
        "response": reply.strip()[:200],
    }


def run_all(store, search=None, model=None):
    return {
        "store": check_store(store),
        "newsApi": check_search(search),
        "ai": check_model(model),
    }
