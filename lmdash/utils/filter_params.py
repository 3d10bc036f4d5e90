# filter_params.py
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from lmdash.utils.periods import YearMonth

ALL = "All"


class FilterError(ValueError):
    """Malformed filter input coming from the UI."""


# -------- filter variants --------

@dataclass(frozen=True)
class Unrestricted:
    """No restriction on this dimension ("All" in the UI)."""

    def __str__(self) -> str:
        return ALL


@dataclass(frozen=True)
class ExactMatch:
    value: str

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Range:
    """Inclusive ``[min, max]`` bounds."""

    min: int
    max: int

    def __str__(self) -> str:
        return f"{self.min}-{self.max}"


Choice = Union[Unrestricted, ExactMatch]
EnrollmentChoice = Union[Unrestricted, Range]


def parse_choice(value: Any, sentinel: str = ALL) -> Choice:
    """Map a select value onto a filter variant."""
    if isinstance(value, (Unrestricted, ExactMatch)):
        return value
    if value is None:
        return Unrestricted()
    text = str(value).strip()
    if not text or text == sentinel:
        return Unrestricted()
    return ExactMatch(text)


def parse_range(value: Any, sentinel: str = ALL) -> EnrollmentChoice:
    """Parse ``"{min}-{max}"`` (or the sentinel) into a filter variant."""
    if isinstance(value, (Unrestricted, Range)):
        return value
    if value is None:
        return Unrestricted()
    if isinstance(value, (list, tuple)) and len(value) == 2:
        lo, hi = value
    else:
        text = str(value).strip()
        if not text or text == sentinel:
            return Unrestricted()
        parts = text.split("-")
        if len(parts) != 2:
            raise FilterError(f"enrollment range must look like 'min-max', got {value!r}")
        lo, hi = parts
    try:
        lo, hi = int(lo), int(hi)
    except (TypeError, ValueError):
        raise FilterError(f"enrollment range bounds must be integers, got {value!r}") from None
    if lo < 0 or hi < lo:
        raise FilterError(f"invalid enrollment range {value!r}")
    return Range(lo, hi)


# -------- selection state --------

# dimension -> record column
COLUMNS: Dict[str, str] = {
    "district": "district_name",
    "school_type": "school_type",
    "learning_model": "learning_model",
    "enrollment": "enrollment_total",
}


@dataclass
class FilterSelection:
    """Current value of every filter dimension.

    The working set is the INTERSECTION (AND) of all dimensions. ``year_month``
    stays ``None`` only until the dashboard has been initialized.
    """

    year_month: Optional[YearMonth] = None
    district: Choice = field(default_factory=Unrestricted)
    school_type: Choice = field(default_factory=Unrestricted)
    learning_model: Choice = field(default_factory=Unrestricted)
    enrollment: EnrollmentChoice = field(default_factory=Unrestricted)

    def copy(self) -> "FilterSelection":
        return FilterSelection(
            year_month=self.year_month,
            district=self.district,
            school_type=self.school_type,
            learning_model=self.learning_model,
            enrollment=self.enrollment,
        )

    def to_dict(self) -> Dict[str, Optional[str]]:
        """Selection in the vocabulary of the UI controls."""
        return {
            "year_month": self.year_month.label() if self.year_month else None,
            "district": str(self.district),
            "school_type": str(self.school_type),
            "learning_model": str(self.learning_model),
            "enrollment": str(self.enrollment),
        }

    # -------- SQL helpers --------
    def to_sql_where(
        self,
        date_col: str = "time_period_start",
        available_columns: Optional[Iterable[str]] = None,
        include_time: bool = True,
    ) -> Tuple[str, List[Any]]:
        """
        Build a safe SQL WHERE clause and its parameters (DuckDB compatible).

        INTERSECTION (AND) of:
          - calendar month equality on date_col
          - exact matches on the categorical dimensions
          - inclusive enrollment range
        """
        where: List[str] = []
        params: List[Any] = []

        if include_time and self.year_month is not None:
            where.append(f"year({date_col}) = ? AND month({date_col}) = ?")
            params.extend([self.year_month.year, self.year_month.month])

        cols = set(available_columns) if available_columns is not None else None

        for dim in ("district", "school_type", "learning_model"):
            choice = getattr(self, dim)
            col = COLUMNS[dim]
            if not isinstance(choice, ExactMatch):
                continue
            if cols is not None and col not in cols:
                continue
            where.append(f"CAST({col} AS VARCHAR) = ?")
            params.append(choice.value)

        if isinstance(self.enrollment, Range):
            where.append(f"{COLUMNS['enrollment']} BETWEEN ? AND ?")
            params.extend([self.enrollment.min, self.enrollment.max])

        clause = " AND ".join(where) if where else "1=1"
        return clause, params


__all__ = [
    "ALL",
    "COLUMNS",
    "Choice",
    "EnrollmentChoice",
    "ExactMatch",
    "FilterError",
    "FilterSelection",
    "Range",
    "Unrestricted",
    "parse_choice",
    "parse_range",
]
