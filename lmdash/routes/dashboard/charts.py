"""Per-view chart data endpoints."""

from __future__ import annotations

from flask import jsonify, request

from . import bp, get_dashboard
from .helpers import build_selection


@bp.route("/api/size-groups", methods=["GET"])
def size_groups():
    """Stacked bar chart: schools per size group and learning model."""
    dashboard = get_dashboard()
    records = dashboard.working_set(build_selection(request.args))
    return jsonify(dashboard.size_groups(records))


@bp.route("/api/model-share", methods=["GET"])
def model_share():
    """Bubble chart: enrollment per learning model and percent of total."""
    dashboard = get_dashboard()
    records = dashboard.working_set(build_selection(request.args))
    return jsonify({"rows": dashboard.model_share(records)})


@bp.route("/api/heatmap", methods=["GET"])
def heatmap():
    dashboard = get_dashboard()
    records = dashboard.working_set(build_selection(request.args))
    return jsonify({"cells": dashboard.heatmap(records)})


@bp.route("/api/timeline", methods=["GET"])
def timeline():
    dashboard = get_dashboard()
    return jsonify(dashboard.timeline(build_selection(request.args)))
