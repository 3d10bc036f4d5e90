"""Filter predicates and their composition into the working set."""

from __future__ import annotations

import logging
from typing import Any, Callable, List

import pandas as pd

from lmdash.services.datastore import empty_records
from lmdash.utils.filter_params import (
    COLUMNS,
    ExactMatch,
    FilterSelection,
    Range,
    parse_choice,
    parse_range,
)

logger = logging.getLogger("lmdash")


def _usable(records: Any, caller: str) -> bool:
    if not isinstance(records, pd.DataFrame) or records.empty:
        logger.error("Invalid or empty record set passed to %s.", caller)
        return False
    return True


def apply_time_filter(records: pd.DataFrame, year, month) -> pd.DataFrame:
    """Records whose ``time_period_start`` falls in the given calendar month."""
    if not _usable(records, "apply_time_filter"):
        return empty_records()
    year, month = int(year), int(month)
    ts = records["time_period_start"]
    return records[(ts.dt.year == year) & (ts.dt.month == month)]


def _apply_exact(records: pd.DataFrame, dim: str, value) -> pd.DataFrame:
    if not _usable(records, f"apply_{dim}"):
        return empty_records()
    choice = parse_choice(value)
    if not isinstance(choice, ExactMatch):
        return records
    return records[records[COLUMNS[dim]] == choice.value]


def apply_district(records: pd.DataFrame, district) -> pd.DataFrame:
    return _apply_exact(records, "district", district)


def apply_school_type(records: pd.DataFrame, school_type) -> pd.DataFrame:
    return _apply_exact(records, "school_type", school_type)


def apply_learning_model(records: pd.DataFrame, learning_model) -> pd.DataFrame:
    return _apply_exact(records, "learning_model", learning_model)


def apply_enrollment_range(records: pd.DataFrame, enrollment) -> pd.DataFrame:
    """Inclusive range on ``enrollment_total``; "All" passes everything."""
    if not _usable(records, "apply_enrollment_range"):
        return empty_records()
    choice = parse_range(enrollment)
    if not isinstance(choice, Range):
        return records
    return records[records["enrollment_total"].between(choice.min, choice.max)]


class FilterPipeline:
    """Compose the active predicates of a selection into one working set.

    Nothing is cached: every call starts again from the full record set.
    """

    def steps(
        self, selection: FilterSelection, include_time: bool = True
    ) -> List[Callable[[pd.DataFrame], pd.DataFrame]]:
        steps: List[Callable[[pd.DataFrame], pd.DataFrame]] = []
        ym = selection.year_month
        if include_time and ym is not None:
            steps.append(lambda df: apply_time_filter(df, ym.year, ym.month))
        steps.append(lambda df: apply_district(df, selection.district))
        steps.append(lambda df: apply_school_type(df, selection.school_type))
        steps.append(lambda df: apply_learning_model(df, selection.learning_model))
        steps.append(lambda df: apply_enrollment_range(df, selection.enrollment))
        return steps

    def working_set(
        self,
        records: pd.DataFrame,
        selection: FilterSelection,
        include_time: bool = True,
    ) -> pd.DataFrame:
        if not _usable(records, "FilterPipeline.working_set"):
            return empty_records()
        out = records
        for step in self.steps(selection, include_time=include_time):
            out = step(out)
            if out.empty:
                # nothing left for the remaining predicates
                return empty_records()
        return out.reset_index(drop=True)


__all__ = [
    "FilterPipeline",
    "apply_district",
    "apply_enrollment_range",
    "apply_learning_model",
    "apply_school_type",
    "apply_time_filter",
]
