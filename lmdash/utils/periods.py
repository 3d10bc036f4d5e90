"""Calendar month keys."""

from __future__ import annotations

from datetime import date
from typing import NamedTuple

import pandas as pd


class YearMonth(NamedTuple):
    """A calendar month, ignoring day-of-month. Sorts chronologically."""

    year: int
    month: int

    @classmethod
    def parse(cls, value: str) -> "YearMonth":
        """Parse ``"YYYY-MM"`` (``"2021-6"`` is accepted too)."""
        try:
            year_s, month_s = str(value).strip().split("-")
            year, month = int(year_s), int(month_s)
        except ValueError:
            raise ValueError(f"not a year-month: {value!r}") from None
        if not 1 <= month <= 12:
            raise ValueError(f"month out of range: {value!r}")
        return cls(year, month)

    @classmethod
    def from_timestamp(cls, ts) -> "YearMonth":
        ts = pd.Timestamp(ts)
        return cls(int(ts.year), int(ts.month))

    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    def display(self) -> str:
        # "June 2021", as shown next to the time slider
        return self.first_day().strftime("%B %Y")


__all__ = ["YearMonth"]
