"""Dashboard context: record store, filter selection and highlight state."""

from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from lmdash.services import aggregates
from lmdash.services.datastore import RecordStore, empty_records
from lmdash.services.highlight import CrossHighlightBroker
from lmdash.services.legend import Legend, map_legend
from lmdash.services.pipeline import FilterPipeline
from lmdash.utils.filter_params import (
    FilterError,
    FilterSelection,
    parse_choice,
    parse_range,
)
from lmdash.utils.periods import YearMonth

logger = logging.getLogger("lmdash")

# keys accepted by update(), applied in this order
DIMENSIONS = ("year_month", "time_index", "district", "school_type", "learning_model", "enrollment")


class DashboardContext:
    """Single owner of all state shared by the five views.

    Every filter change re-runs the pipeline from the full record set, and all
    views are computed from that same working set. Mutations are serialised
    so a threaded server cannot interleave a read-modify-write of the
    selection.
    """

    def __init__(
        self,
        store: RecordStore,
        legend: Legend,
        config: Mapping[str, Any],
        broker: Optional[CrossHighlightBroker] = None,
    ):
        self.store = store
        self.legend = legend
        self.config = config
        self.pipeline = FilterPipeline()
        self.broker = broker or CrossHighlightBroker(config.get("DIMMED_OPACITY", 0.2))
        self.selection = FilterSelection()
        self._lock = threading.RLock()
        self._initialized = False
        self.broker.subscribe(self._on_highlight)

    def _on_highlight(self, state) -> None:
        logger.info("Highlight -> %s", state.selected or "<none>")

    def highlight(self) -> Dict[str, Any]:
        """Highlight state plus the opacity every view should give each model."""
        out = self.broker.state.to_dict()
        out["opacity"] = {m: self.broker.opacity(m) for m in self.legend.models}
        return out

    # ---------- lifecycle ----------

    def initialize(self) -> FilterSelection:
        """Load the records, then select the most recent month with no other filter."""
        with self._lock:
            self.store.load()
            months = self.store.year_months()
            self.selection = FilterSelection(year_month=months[-1] if months else None)
            self._initialized = True
            logger.info(
                "Dashboard initialized at %s",
                self.selection.year_month.label() if self.selection.year_month else "<no data>",
            )
            return self.selection.copy()

    def ensure_initialized(self) -> None:
        if not self._initialized:
            self.initialize()

    def reset(self) -> FilterSelection:
        return self.initialize()

    # ---------- filter mutations ----------

    def set_year_month(self, value) -> None:
        if isinstance(value, YearMonth):
            ym = value
        else:
            try:
                ym = YearMonth.parse(value)
            except ValueError as e:
                raise FilterError(str(e)) from None
        with self._lock:
            self.ensure_initialized()
            self.selection.year_month = ym

    def set_time_index(self, index) -> None:
        """Move the time slider: ``index`` into the sorted distinct months."""
        with self._lock:
            self.ensure_initialized()
            months = self.store.year_months()
            try:
                i = int(index)
            except (TypeError, ValueError):
                raise FilterError(f"time index must be an integer, got {index!r}") from None
            if not 0 <= i < len(months):
                raise FilterError(f"time index {i} out of range 0..{len(months) - 1}")
            self.selection.year_month = months[i]

    def _sentinel(self) -> str:
        return self.config.get("ALL_SENTINEL", "All")

    def set_district(self, value) -> None:
        with self._lock:
            self.ensure_initialized()
            self.selection.district = parse_choice(value, self._sentinel())

    def set_school_type(self, value) -> None:
        with self._lock:
            self.ensure_initialized()
            self.selection.school_type = parse_choice(value, self._sentinel())

    def set_learning_model(self, value) -> None:
        with self._lock:
            self.ensure_initialized()
            self.selection.learning_model = parse_choice(value, self._sentinel())

    def set_enrollment_range(self, value) -> None:
        with self._lock:
            self.ensure_initialized()
            self.selection.enrollment = parse_range(value, self._sentinel())

    def update(self, payload: Mapping[str, Any]) -> FilterSelection:
        """Apply several dimensions at once; all or nothing."""
        unknown = [k for k in payload if k not in DIMENSIONS]
        if unknown:
            raise FilterError(f"unknown filter(s): {', '.join(sorted(unknown))}")
        with self._lock:
            self.ensure_initialized()
            before = self.selection.copy()
            try:
                for key in DIMENSIONS:
                    if key not in payload:
                        continue
                    setter = "set_enrollment_range" if key == "enrollment" else f"set_{key}"
                    getattr(self, setter)(payload[key])
            except FilterError:
                self.selection = before
                raise
            return self.selection.copy()

    # ---------- working sets ----------

    def snapshot(self) -> FilterSelection:
        with self._lock:
            self.ensure_initialized()
            return self.selection.copy()

    def working_set(self, selection: Optional[FilterSelection] = None) -> pd.DataFrame:
        selection = selection or self.snapshot()
        records = self.store.get(copy=False)
        if records.empty:
            return empty_records()
        return self.pipeline.working_set(records, selection)

    def timeline_set(self, selection: Optional[FilterSelection] = None) -> pd.DataFrame:
        """Every filter except the month, so the timeline keeps its x axis."""
        selection = selection or self.snapshot()
        records = self.store.get(copy=False)
        if records.empty:
            return empty_records()
        return self.pipeline.working_set(records, selection, include_time=False)

    # ---------- views ----------

    def size_groups(self, records: pd.DataFrame) -> Dict[str, Any]:
        groups = aggregates.calculate_size_groups(
            records,
            width=self.config.get("SIZE_GROUP_WIDTH", 200),
            open_min=self.config.get("SIZE_GROUP_OPEN_MIN", 800),
            cap=self.config.get("SIZE_GROUP_CAP", 999),
        )
        return {
            "groups": [
                {"label": g.label, "min": g.min, "max": g.max, "open_ended": g.open_ended}
                for g in groups
            ],
            "rows": aggregates.size_group_by_model(records, self.legend.models, groups),
        }

    def model_share(self, records: pd.DataFrame) -> List[Dict[str, Any]]:
        rows = aggregates.model_enrollment_share(records, self.legend.models)
        for row in rows:
            row["color"] = self.legend.color(row["learning_model"])
        return rows

    def virtual_share(self, selection: Optional[FilterSelection] = None) -> Dict[str, Any]:
        """Virtual share over the full record set; ``current`` is the selected month."""
        selection = selection or self.snapshot()
        shares = aggregates.virtual_share_per_district_month(
            self.store.get(copy=False), self.config.get("VIRTUAL_MODEL", "Virtual")
        )
        return {
            "year_month": selection.year_month.label() if selection.year_month else None,
            "by_key": aggregates.virtual_share_keys(shares),
            "current": aggregates.virtual_share_for_month(shares, selection.year_month),
            "legend": map_legend(self.config.get("MAP_LEGEND_STEPS", list(range(0, 101, 10)))),
        }

    def heatmap(self, records: pd.DataFrame) -> List[Dict[str, Any]]:
        return aggregates.cross_tab_type_model(records)

    def timeline(self, selection: Optional[FilterSelection] = None) -> Dict[str, Any]:
        records = self.timeline_set(selection)
        return {
            "series": aggregates.enrollment_time_series(records, self.legend.models),
            "totals": aggregates.monthly_totals(records),
        }

    def views(self, selection: Optional[FilterSelection] = None) -> Dict[str, Any]:
        """Every view payload, all from one selection snapshot."""
        selection = selection or self.snapshot()
        records = self.working_set(selection)
        return {
            "selection": selection.to_dict(),
            "highlight": self.highlight(),
            "rows": len(records),
            "size_groups": self.size_groups(records),
            "model_share": self.model_share(records),
            "virtual_share": self.virtual_share(selection),
            "heatmap": self.heatmap(records),
            "timeline": self.timeline(selection),
        }

    # ---------- UI support ----------

    def options(self) -> Dict[str, Any]:
        base = self.store.get(copy=False)
        sentinel = self._sentinel()

        def distinct(col: str) -> List[str]:
            if base.empty:
                return [sentinel]
            return [sentinel] + sorted(base[col].astype(str).unique().tolist())

        months = self.store.year_months()
        return {
            "district": distinct("district_name"),
            "school_type": distinct("school_type"),
            "learning_model": [sentinel] + [m for m, _ in self.legend.available(base)],
            "enrollment": list(self.config.get("ENROLLMENT_RANGES", [sentinel])),
            "time_periods": [
                {"index": i, "year_month": ym.label(), "label": ym.display()}
                for i, ym in enumerate(months)
            ],
        }

    def state(self) -> Dict[str, Any]:
        selection = self.snapshot()
        months = self.store.year_months()
        ym = selection.year_month
        return {
            "selection": selection.to_dict(),
            "time_index": months.index(ym) if ym in months else None,
            "time_label": ym.display() if ym else "",
            "highlight": self.highlight(),
            "summary": self.store.summary(),
        }


__all__ = ["DashboardContext", "DIMENSIONS"]
