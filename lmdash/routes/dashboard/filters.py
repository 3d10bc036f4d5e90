"""Filter endpoints for dashboard."""

from __future__ import annotations

from typing import Dict, List

from flask import current_app, jsonify, request

from lmdash.utils.filter_params import COLUMNS, FilterError

from . import bp, get_dashboard, get_datastore
from .helpers import build_selection


@bp.route("/api/filters", methods=["POST"])
def update_filters():
    """Change one or more filter dimensions and return every view."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise FilterError("expected a JSON object of filter values")
    dashboard = get_dashboard()
    dashboard.update(payload)
    return jsonify(dashboard.views())


@bp.route("/api/filters/reset", methods=["POST"])
def reset_filters():
    dashboard = get_dashboard()
    dashboard.reset()
    return jsonify(dashboard.views())


@bp.route("/filters/facets", methods=["GET"])
def facets():
    """Distinct values still reachable under the current non-time filters."""
    datastore = get_datastore()
    selection = build_selection(request.args)
    base = datastore.get(copy=False)
    sentinel = current_app.config.get("ALL_SENTINEL", "All")
    if base.empty:
        return jsonify({"options": {}, "rows": 0})

    clause, sql_params = selection.to_sql_where(
        available_columns=base.columns,
        include_time=request.args.get("scope") == "month",
    )

    def distinct(col: str) -> List[str]:
        df = datastore.run_query(
            f"""
            SELECT DISTINCT CAST({col} AS VARCHAR) AS v
            FROM lm.records
            WHERE {clause} AND {col} IS NOT NULL
            ORDER BY v
            """,
            sql_params,
        )
        if df is None or df.empty:
            return [sentinel]
        return [sentinel] + df["v"].astype(str).tolist()

    options: Dict[str, List[str]] = {
        dim: distinct(COLUMNS[dim]) for dim in ("district", "school_type", "learning_model")
    }

    cdf = datastore.run_query(
        f"SELECT COUNT(*) AS n FROM lm.records WHERE {clause};",
        sql_params,
    )
    rows = int(cdf.iloc[0]["n"]) if cdf is not None else 0

    return jsonify({"options": options, "rows": rows})
