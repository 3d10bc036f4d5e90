"""Shared helper functions for dashboard routes."""

from __future__ import annotations

from flask import current_app

from lmdash.utils.filter_params import FilterError, FilterSelection, parse_choice, parse_range
from lmdash.utils.periods import YearMonth

from . import get_dashboard


def build_selection(args) -> FilterSelection:
    """Current selection with any query-string overrides applied.

    Overrides are per request; the dashboard's own selection is unchanged.
    """
    dashboard = get_dashboard()
    selection = dashboard.snapshot()
    sentinel = current_app.config.get("ALL_SENTINEL", "All")

    if args.get("time_index") not in (None, ""):
        months = dashboard.store.year_months()
        try:
            i = int(args["time_index"])
        except ValueError:
            raise FilterError(f"time index must be an integer, got {args['time_index']!r}") from None
        if not 0 <= i < len(months):
            raise FilterError(f"time index {i} out of range 0..{len(months) - 1}")
        selection.year_month = months[i]
    elif args.get("year_month"):
        try:
            selection.year_month = YearMonth.parse(args["year_month"])
        except ValueError as e:
            raise FilterError(str(e)) from None

    for dim in ("district", "school_type", "learning_model"):
        if dim in args:
            setattr(selection, dim, parse_choice(args.get(dim), sentinel))
    if "enrollment" in args:
        selection.enrollment = parse_range(args.get("enrollment"), sentinel)

    return selection


__all__ = ["build_selection"]
