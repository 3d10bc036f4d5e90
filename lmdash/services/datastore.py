"""Record loading, validation and the DuckDB facet table."""

from __future__ import annotations
import logging
import os
import re
from io import StringIO
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union
import duckdb
import numpy as np
import pandas as pd
import requests

from lmdash.utils.periods import YearMonth

logger = logging.getLogger("lmdash")

# source column -> record column
SOURCE_COLUMNS: Dict[str, str] = {
    "TimePeriodStart": "time_period_start",
    "SchoolType": "school_type",
    "LearningModel": "learning_model",
    "DistrictName": "district_name",
    "EnrollmentTotal": "enrollment_total",
}
RECORD_COLUMNS: List[str] = list(SOURCE_COLUMNS.values())
LABEL_COLUMNS = ("school_type", "learning_model", "district_name")


def empty_records() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "time_period_start": pd.Series(dtype="datetime64[ns]"),
            "school_type": pd.Series(dtype=object),
            "learning_model": pd.Series(dtype=object),
            "district_name": pd.Series(dtype=object),
            "enrollment_total": pd.Series(dtype="int64"),
        }
    )


def _clean_label(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


# whole number, optionally written with a zero fraction ("75.0")
_ENROLLMENT_TEXT = re.compile(r"([0-9]+)(?:\.0*)?")
_ENROLLMENT_MAX = int(np.iinfo("int64").max)


def _parse_enrollment(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, np.integer)):
        number = int(value)
    elif isinstance(value, (float, np.floating)):
        if not np.isfinite(value) or not float(value).is_integer():
            return None
        number = int(value)
    elif isinstance(value, str):
        match = _ENROLLMENT_TEXT.fullmatch(value.strip())
        if match is None:
            return None
        number = int(match.group(1))
    else:
        return None
    if number < 0 or number > _ENROLLMENT_MAX:
        return None
    return number


def ingest(raw_rows: Union[pd.DataFrame, Iterable[Mapping[str, Any]]]) -> pd.DataFrame:
    """Validate source rows and return the record frame.

    Invalid rows (missing field, unparseable date, blank label, negative or
    non-integer enrollment) are dropped without raising.
    """
    frame = raw_rows if isinstance(raw_rows, pd.DataFrame) else pd.DataFrame(list(raw_rows))
    if frame.empty:
        return empty_records()

    missing = [c for c in SOURCE_COLUMNS if c not in frame.columns]
    if missing:
        logger.error("Dataset is missing required column(s): %s", ", ".join(missing))
        return empty_records()

    out = pd.DataFrame(index=frame.index)
    out["time_period_start"] = pd.to_datetime(
        frame["TimePeriodStart"], errors="coerce", format="mixed"
    )
    for src in ("SchoolType", "LearningModel", "DistrictName"):
        out[SOURCE_COLUMNS[src]] = frame[src].map(_clean_label)
    # object dtype keeps large counts exact until the final int64 cast
    out["enrollment_total"] = pd.Series(
        [_parse_enrollment(v) for v in frame["EnrollmentTotal"]],
        index=frame.index,
        dtype=object,
    )

    valid = out.notna().all(axis=1)
    dropped = int((~valid).sum())
    if dropped:
        logger.info("Dropped %d invalid row(s) of %d at ingestion", dropped, len(frame))

    out = out[valid].reset_index(drop=True)
    out["enrollment_total"] = out["enrollment_total"].astype("int64")
    return out[RECORD_COLUMNS]


class RecordStore:
    """Own data loading, validation, and the immutable record frame.

    Storage backend: DuckDB (in-memory unless DUCKDB_PATH says otherwise)
    - Source data: CSV at Config.DATA_PATH, or Config.DATA_URL as fallback
    - Materialized table: lm.records (facet queries)
    """

    def __init__(self, config: Mapping[str, Any]):
        self.config = config
        self._df: Optional[pd.DataFrame] = None
        self._con: Optional[duckdb.DuckDBPyConnection] = None

    # ---------- DuckDB helpers ----------

    def _connect(self) -> duckdb.DuckDBPyConnection:
        if self._con is None:
            db_path = str(self.config.get("DUCKDB_PATH") or ":memory:")
            if db_path != ":memory:" and os.path.dirname(db_path):
                os.makedirs(os.path.dirname(db_path), exist_ok=True)
            self._con = duckdb.connect(db_path)
        return self._con

    def run_query(self, sql: str, params=None) -> pd.DataFrame:
        """Execute SQL on DuckDB and return as pandas DataFrame."""
        self.load()
        con = self._connect()
        return con.execute(sql, params or []).df()

    def _read_local_csv(self, path: Path) -> pd.DataFrame:
        con = self._connect()
        escaped = str(path).replace("'", "''")
        return con.execute(
            f"SELECT * FROM read_csv_auto('{escaped}', HEADER=TRUE, ALL_VARCHAR=TRUE);"
        ).df()

    def _fetch_remote_csv(self, url: str) -> Optional[pd.DataFrame]:
        try:
            resp = requests.get(url, timeout=60)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error("Failed to fetch dataset from DATA_URL: %s", e)
            return None
        logger.info("Loaded remote CSV from DATA_URL.")
        return pd.read_csv(StringIO(resp.text), dtype=str, keep_default_na=False)

    # ---------- loading ----------

    def load(self) -> pd.DataFrame:
        if self._df is not None:
            return self._df

        path = Path(self.config.get("DATA_PATH") or "")
        url = self.config.get("DATA_URL")
        raw: Optional[pd.DataFrame] = None

        if path.is_file():
            try:
                raw = self._read_local_csv(path)
                logger.info("Read %d row(s) from %s", len(raw), path)
            except duckdb.Error as e:
                logger.error("Could not read %s: %s", path, e)
        if raw is None and url:
            raw = self._fetch_remote_csv(url)

        if raw is None:
            logger.error("No data source succeeded; dashboard starts empty.")
            raw = pd.DataFrame()

        self.set_records(raw)
        return self._df

    def set_records(self, raw_rows) -> None:
        """Validate ``raw_rows`` and make them the store's record set."""
        self._df = ingest(raw_rows)

        con = self._connect()
        con.execute("CREATE SCHEMA IF NOT EXISTS lm;")
        con.execute("DROP TABLE IF EXISTS lm.records;")
        con.execute(
            """
            CREATE TABLE lm.records (
              time_period_start TIMESTAMP,
              school_type VARCHAR,
              learning_model VARCHAR,
              district_name VARCHAR,
              enrollment_total BIGINT
            );
            """
        )
        con.register("tmp_df", self._df)
        con.execute(f"INSERT INTO lm.records SELECT {', '.join(RECORD_COLUMNS)} FROM tmp_df;")
        con.unregister("tmp_df")
        logger.info("RecordStore holds %d record(s).", len(self._df))

    def get(self, copy: bool = True) -> pd.DataFrame:
        df = self.load()
        return df.copy(deep=False) if copy else df

    # ---------- derived facts ----------

    def year_months(self) -> List[YearMonth]:
        """Sorted distinct months, the time slider's domain."""
        df = self.load()
        if df.empty:
            return []
        ts = df["time_period_start"]
        pairs = set(zip(ts.dt.year.astype(int), ts.dt.month.astype(int)))
        return sorted(YearMonth(y, m) for y, m in pairs)

    def summary(self) -> Dict[str, Union[int, str]]:
        df = self.load()
        out: Dict[str, Union[int, str]] = {
            "rows": len(df),
            "districts": int(df["district_name"].nunique()) if len(df) else 0,
            "date_min": "",
            "date_max": "",
        }
        if len(df) > 0:
            out["date_min"] = df["time_period_start"].min().date().isoformat()
            out["date_max"] = df["time_period_start"].max().date().isoformat()
        return out


__all__ = ["RECORD_COLUMNS", "SOURCE_COLUMNS", "RecordStore", "empty_records", "ingest"]
