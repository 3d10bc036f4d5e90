"""Cross-view highlight endpoints."""

from __future__ import annotations

from flask import jsonify, request

from lmdash.utils.filter_params import FilterError

from . import bp, get_dashboard


@bp.route("/api/highlight", methods=["GET"])
def highlight_state():
    return jsonify(get_dashboard().highlight())


@bp.route("/api/highlight", methods=["POST"])
def mark_click():
    """A click on a bubble, bar segment, heatmap cell or timeline path."""
    payload = request.get_json(silent=True) or {}
    model = str(payload.get("model") or "").strip()
    if not model:
        raise FilterError("highlight needs a 'model'")
    dashboard = get_dashboard()
    dashboard.broker.mark_click(model)
    return jsonify(dashboard.highlight())


@bp.route("/api/highlight", methods=["DELETE"])
def document_click():
    """A click anywhere else on the page."""
    dashboard = get_dashboard()
    dashboard.broker.document_click()
    return jsonify(dashboard.highlight())
