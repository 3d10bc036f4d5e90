"""Dashboard state and combined view payloads."""

from __future__ import annotations

from flask import jsonify, request

from . import bp, get_dashboard
from .helpers import build_selection


@bp.route("/api/state", methods=["GET"])
def state():
    return jsonify(get_dashboard().state())


@bp.route("/api/options", methods=["GET"])
def options():
    return jsonify(get_dashboard().options())


@bp.route("/api/views", methods=["GET"])
def views():
    """All five views, computed from one working set."""
    return jsonify(get_dashboard().views(build_selection(request.args)))
