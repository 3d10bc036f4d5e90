"""Choropleth endpoints."""

from __future__ import annotations

from flask import jsonify, request

from . import bp, get_dashboard, get_geography
from .helpers import build_selection


@bp.route("/api/virtual-share", methods=["GET"])
def virtual_share():
    dashboard = get_dashboard()
    return jsonify(dashboard.virtual_share(build_selection(request.args)))


@bp.route("/api/map", methods=["GET"])
def district_map():
    """District polygons annotated with the selected month's virtual share."""
    dashboard = get_dashboard()
    share = dashboard.virtual_share(build_selection(request.args))
    geojson = get_geography().annotated(share["current"])
    geojson["legend"] = share["legend"]
    geojson["year_month"] = share["year_month"]
    return jsonify(geojson)
