"""Healthcheck endpoint."""

from __future__ import annotations

from flask import current_app, jsonify

from . import bp, get_datastore


@bp.route("/health", methods=["GET"])
def health():
    """Liveness plus what the record store holds (rows, districts, date span, months)."""
    datastore = get_datastore()
    try:
        body = {"ok": True, **datastore.summary()}
        body["months"] = len(datastore.year_months())
        return jsonify(body), 200
    except Exception as exc:  # pragma: no cover - defensive logging path
        current_app.logger.exception("Healthcheck failed")
        return jsonify({"ok": False, "error": str(exc)}), 500
