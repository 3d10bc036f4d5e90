"""Application configuration objects."""

import os
import sys
from typing import Dict, List
from dotenv import load_dotenv
from pathlib import Path

if getattr(sys, "frozen", False):
    load_dotenv(os.path.join(sys._MEIPASS, ".env"))
else:
    load_dotenv()


class Config:
    """Base configuration for the learning-model dashboard."""

    # -------------------------
    # Data paths
    # -------------------------
    # School enrollment by learning model, one row per observation
    DATA_PATH = Path(
        os.getenv("LMDASH_DATA_PATH", "data/California_Schools_LearningModelData_Final.csv")
    )

    # Fallback location when the CSV is not on disk
    DATA_URL = os.getenv("LMDASH_DATA_URL")

    # District polygons for the choropleth
    GEOJSON_PATH = Path(
        os.getenv("LMDASH_GEOJSON_PATH", "data/California_School_District_Areas_2020-21.geojson")
    )
    GEOJSON_URL = os.getenv("LMDASH_GEOJSON_URL")

    # DuckDB database used for facet queries (in-memory unless overridden)
    DUCKDB_PATH = os.getenv("LMDASH_DUCKDB_PATH", ":memory:")

    # -------------------------
    # Domain vocabulary
    # -------------------------
    LEARNING_MODELS: Dict[str, str] = {
        "Virtual": "#f0f9e7",
        "Hybrid": "#b9e4bc",
        "In-person": "#7bccc4",
        "Closed": "#2b8cbf",
    }

    VIRTUAL_MODEL = "Virtual"
    ALL_SENTINEL = "All"

    # -------------------------
    # School size buckets
    # -------------------------
    SIZE_GROUP_WIDTH = 200
    SIZE_GROUP_OPEN_MIN = 800  # start of the "800+" bucket
    SIZE_GROUP_CAP = 999

    # Options offered by the enrollment-size select
    ENROLLMENT_RANGES: List[str] = ["All", "0-199", "200-399", "400-599", "600-799", "800-999"]

    # -------------------------
    # Highlighting / map legend
    # -------------------------
    DIMMED_OPACITY = 0.2
    MAP_LEGEND_STEPS: List[int] = [0, 10, 20, 30, 40, 50, 60, 70, 80, 90, 100]


class TestConfig(Config):
    TESTING = True
    DATA_URL = None
    GEOJSON_URL = None


__all__ = ["Config", "TestConfig"]
