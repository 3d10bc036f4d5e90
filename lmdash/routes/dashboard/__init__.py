"""Dashboard blueprint package."""

from __future__ import annotations

from flask import Blueprint, jsonify

from lmdash.utils.filter_params import FilterError

bp = Blueprint("dashboard", __name__)


def get_dashboard():
    from flask import current_app

    return current_app.extensions["dashboard"]


def get_datastore():
    from flask import current_app

    return current_app.extensions["datastore"]


def get_geography():
    from flask import current_app

    return current_app.extensions["geography"]


@bp.errorhandler(FilterError)
def _bad_filter(exc: FilterError):
    return jsonify({"error": str(exc)}), 400


from . import charts, downloads, filters, health, highlight, maps, views  # noqa: E402,F401

__all__ = ["bp", "get_dashboard", "get_datastore", "get_geography"]
