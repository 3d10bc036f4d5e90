"""Chart-ready aggregates computed from a working set.

Every function here is pure: the input frame is never modified, and an
empty (or missing) working set yields an empty or zero-filled result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from lmdash.utils.periods import YearMonth

DEFAULT_MODELS: Tuple[str, ...] = ("Virtual", "Hybrid", "In-person", "Closed")

Row = Dict[str, Union[str, int, float]]


@dataclass(frozen=True)
class SizeGroup:
    """Enrollment bucket ``[min, max)``.

    The open-ended last bucket accepts everything ``>= min``; its ``max`` is
    only the display ceiling.
    """

    min: int
    max: int
    label: str
    open_ended: bool = False

    @property
    def upper(self) -> float:
        """Exclusive bin edge; unbounded for the open-ended bucket."""
        return np.inf if self.open_ended else self.max


def _has_rows(records: Optional[pd.DataFrame]) -> bool:
    return isinstance(records, pd.DataFrame) and not records.empty


def model_order(records: Optional[pd.DataFrame], models: Iterable[str] = DEFAULT_MODELS) -> List[str]:
    """Configured models first, then any other observed model alphabetically."""
    ordered = list(dict.fromkeys(models))
    if _has_rows(records):
        extra = sorted(set(records["learning_model"].astype(str)) - set(ordered))
        ordered.extend(extra)
    return ordered


# -------- bar chart --------

def calculate_size_groups(
    records: Optional[pd.DataFrame],
    width: int = 200,
    open_min: int = 800,
    cap: int = 999,
) -> List[SizeGroup]:
    """Fixed-width buckets below ``open_min`` plus one open-ended bucket.

    The open bucket's ceiling follows the working set's max enrollment, so the
    groups can change whenever the filters do.
    """
    groups = [
        SizeGroup(lo, lo + width, f"{lo}-{lo + width - 1}")
        for lo in range(0, open_min, width)
    ]
    max_enrollment = int(records["enrollment_total"].max()) if _has_rows(records) else 0
    groups.append(
        SizeGroup(open_min, min(max_enrollment, cap), f"{open_min}+", open_ended=True)
    )
    return groups


def size_group_by_model(
    records: Optional[pd.DataFrame],
    models: Iterable[str] = DEFAULT_MODELS,
    groups: Optional[Sequence[SizeGroup]] = None,
) -> List[Row]:
    """Count of records per (size group, learning model), zero-filled."""
    if groups is None:
        groups = calculate_size_groups(records)
    order = model_order(records, models)

    counts: Dict[Tuple[str, str], int] = {}
    if _has_rows(records):
        edges = [g.min for g in groups] + [groups[-1].upper]
        bucket = pd.cut(
            records["enrollment_total"],
            bins=edges,
            right=False,
            labels=[g.label for g in groups],
        )
        frame = pd.DataFrame(
            {
                "size_group": bucket.astype(str).to_numpy(),
                "learning_model": records["learning_model"].astype(str).to_numpy(),
            }
        )
        grp = frame.groupby(["size_group", "learning_model"]).size()
        counts = {key: int(n) for key, n in grp.items()}

    return [
        {"size_group": g.label, "learning_model": m, "count": counts.get((g.label, m), 0)}
        for g in groups
        for m in order
    ]


# -------- bubble chart --------

def model_enrollment_share(
    records: Optional[pd.DataFrame],
    models: Iterable[str] = DEFAULT_MODELS,
) -> List[Row]:
    """Total enrollment per learning model and its share of the whole."""
    if not _has_rows(records):
        return []

    sums = records.groupby("learning_model")["enrollment_total"].sum()
    total = float(sums.sum())

    out: List[Row] = []
    for model in model_order(records, models):
        if model not in sums.index:
            continue
        enrollment = int(sums[model])
        percent = round(enrollment / total * 100, 2) if total > 0 else 0.0
        out.append({"learning_model": model, "enrollment": enrollment, "percent": percent})
    return out


# -------- map --------

def virtual_share_per_district_month(
    records: Optional[pd.DataFrame],
    virtual_model: str = "Virtual",
) -> Dict[Tuple[str, YearMonth], float]:
    """Percent of enrollment in ``virtual_model`` for every district and month."""
    if not _has_rows(records):
        return {}

    ts = records["time_period_start"]
    enrollment = records["enrollment_total"].to_numpy()
    frame = pd.DataFrame(
        {
            "district": records["district_name"].to_numpy(),
            "year": ts.dt.year.to_numpy(),
            "month": ts.dt.month.to_numpy(),
            "total": enrollment,
            "virtual": np.where(records["learning_model"].to_numpy() == virtual_model, enrollment, 0),
        }
    )
    grp = frame.groupby(["district", "year", "month"])[["total", "virtual"]].sum()
    pct = (grp["virtual"] / grp["total"].replace(0, np.nan) * 100).fillna(0.0)

    return {
        (district, YearMonth(int(year), int(month))): float(value)
        for (district, year, month), value in pct.items()
    }


def virtual_share_keys(shares: Mapping[Tuple[str, YearMonth], float]) -> Dict[str, float]:
    """Render ``"{district}-{month}-{year}"`` keys for the map front end."""
    return {f"{district}-{ym.month}-{ym.year}": value for (district, ym), value in shares.items()}


def virtual_share_for_month(
    shares: Mapping[Tuple[str, YearMonth], float],
    year_month: Optional[YearMonth],
) -> Dict[str, float]:
    """District -> percent for one month. Absent districts read as 0."""
    if year_month is None:
        return {}
    return {district: value for (district, ym), value in shares.items() if ym == year_month}


# -------- heatmap --------

def cross_tab_type_model(records: Optional[pd.DataFrame]) -> List[Row]:
    """Record count per observed (school type, learning model) pair."""
    if not _has_rows(records):
        return []
    grp = records.groupby(["school_type", "learning_model"]).size()
    return [
        {"school_type": school_type, "learning_model": model, "count": int(n)}
        for (school_type, model), n in grp.items()
    ]


# -------- timeline --------

def _monthly(records: pd.DataFrame) -> pd.DataFrame:
    ts = pd.to_datetime(records["time_period_start"], errors="coerce")
    return pd.DataFrame(
        {
            "year": ts.dt.year.to_numpy(),
            "month": ts.dt.month.to_numpy(),
            "learning_model": records["learning_model"].astype(str).to_numpy(),
            # non-numeric enrollment counts as zero
            "value": pd.to_numeric(records["enrollment_total"], errors="coerce").fillna(0).to_numpy(),
        }
    ).dropna(subset=["year", "month"])


def enrollment_time_series(
    records: Optional[pd.DataFrame],
    models: Iterable[str] = DEFAULT_MODELS,
) -> List[Row]:
    """Enrollment per (month, learning model), oldest month first."""
    if not _has_rows(records):
        return []
    frame = _monthly(records)
    grp = frame.groupby(["year", "month", "learning_model"])["value"].sum()
    rank = {m: i for i, m in enumerate(model_order(records, models))}

    points = []
    for (year, month, model), value in grp.items():
        ym = YearMonth(int(year), int(month))
        points.append((ym, rank.get(model, len(rank)), model, value))
    points.sort(key=lambda p: (p[0], p[1]))

    return [
        {"date": ym.first_day().isoformat(), "learning_model": model, "value": float(value)}
        for ym, _, model, value in points
    ]


def monthly_totals(records: Optional[pd.DataFrame]) -> List[Row]:
    """Total enrollment per month, oldest first."""
    if not _has_rows(records):
        return []
    grp = _monthly(records).groupby(["year", "month"])["value"].sum()
    return [
        {"date": YearMonth(int(y), int(m)).first_day().isoformat(), "total": float(v)}
        for (y, m), v in grp.items()
    ]


__all__ = [
    "DEFAULT_MODELS",
    "SizeGroup",
    "calculate_size_groups",
    "cross_tab_type_model",
    "enrollment_time_series",
    "model_enrollment_share",
    "model_order",
    "monthly_totals",
    "size_group_by_model",
    "virtual_share_for_month",
    "virtual_share_keys",
    "virtual_share_per_district_month",
]
