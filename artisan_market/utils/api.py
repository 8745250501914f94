# --- artisan_market/utils/api.py ---
from flask import jsonify


def api_ok(message, data=None):
    return {"message": message, **(data or {})}


def api_error(message, data=None):
    return {"message": message, **(data or {})}


def ok(msg, data=None, status=200):
    r = jsonify(api_ok(msg, data)); r.status_code = status; return r


def err(msg, status=400, data=None):
    r = jsonify(api_error(msg, data)); r.status_code = status; return r


def parse_page_args(args, default_size=10, max_size=50):
    """page/pageSize query params, clamped to [1, max_size]."""
    try:
        page = max(1, int(args.get("page") or 1))
    except (TypeError, ValueError):
        page = 1
    try:
        page_size = min(max_size, max(1, int(args.get("pageSize") or default_size)))
    except (TypeError, ValueError):
        page_size = default_size
    return page, page_size
