"""Download endpoints for dashboard."""

from __future__ import annotations

import io
from datetime import datetime, timezone

from flask import Response, request

from . import bp, get_dashboard
from .helpers import build_selection


@bp.route("/download-csv", methods=["GET"])
def download_csv():
    """Download the current working set as CSV."""
    dashboard = get_dashboard()
    filtered = dashboard.working_set(build_selection(request.args))

    out = filtered.copy()
    out["time_period_start"] = out["time_period_start"].dt.date
    buf = io.StringIO()
    out.to_csv(buf, index=False)
    buf.seek(0)

    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    filename = f"working_set_{ts}.csv"

    return Response(
        buf.getvalue(),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
