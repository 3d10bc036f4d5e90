"""
Shared fixtures for the dashboard tests.

Usage:
    pytest tests/ -v
"""

import json

import pandas as pd
import pytest

from lmdash.app import create_app
from lmdash.config import Config
from lmdash.services.dashboard import DashboardContext
from lmdash.services.datastore import RecordStore, ingest
from lmdash.services.legend import Legend


def _row(date, school_type, model, district, enrollment):
    return {
        "TimePeriodStart": date,
        "SchoolType": school_type,
        "LearningModel": model,
        "DistrictName": district,
        "EnrollmentTotal": enrollment,
    }


# --- Raw source rows ---

@pytest.fixture
def scenario_rows():
    """The three-row dataset used throughout the examples."""
    return [
        _row("2021-01-01", "TypeA", "Virtual", "D1", "100"),
        _row("2021-01-01", "TypeA", "Hybrid", "D1", "50"),
        _row("2021-02-01", "TypeA", "Virtual", "D1", "200"),
    ]


@pytest.fixture
def raw_rows(scenario_rows):
    return scenario_rows + [
        _row("2021-01-18", "TypeB", "In-person", "D2", "199"),
        _row("2021-02-01", "TypeB", "In-person", "D2", "850"),
        _row("2021-02-01", "TypeB", "Closed", "D2", "1200"),
        _row("2021-02-01", "TypeB", "Hybrid", "D3", "0"),
        _row("2020-12-01", "TypeA", "Virtual", "D3", "400"),
    ]


@pytest.fixture
def invalid_rows():
    return [
        _row("", "TypeA", "Virtual", "D1", "10"),
        _row("not a date", "TypeA", "Virtual", "D1", "10"),
        _row("2021-01-01", "   ", "Virtual", "D1", "10"),
        _row("2021-01-01", "TypeA", None, "D1", "10"),
        _row("2021-01-01", "TypeA", "Virtual", "", "10"),
        _row("2021-01-01", "TypeA", "Virtual", "D1", "abc"),
        _row("2021-01-01", "TypeA", "Virtual", "D1", "-5"),
        _row("2021-01-01", "TypeA", "Virtual", "D1", "12.5"),
        _row("2021-01-01", "TypeA", "Virtual", "D1", None),
    ]


# --- Record frames ---

@pytest.fixture
def scenario_records(scenario_rows):
    return ingest(scenario_rows)


@pytest.fixture
def records(raw_rows):
    return ingest(raw_rows)


@pytest.fixture
def store(raw_rows):
    store = RecordStore({"DUCKDB_PATH": ":memory:"})
    store.set_records(raw_rows)
    return store


@pytest.fixture
def dashboard(store):
    config = {k: getattr(Config, k) for k in dir(Config) if k.isupper()}
    return DashboardContext(store, Legend(Config.LEARNING_MODELS), config)


# --- Flask app ---

@pytest.fixture
def geojson():
    return {
        "type": "FeatureCollection",
        "features": [
            {"type": "Feature", "properties": {"DistrictName": "D1"}, "geometry": None},
            {"type": "Feature", "properties": {"DistrictName": "D2"}, "geometry": None},
            {"type": "Feature", "properties": {"DistrictName": "Elsewhere"}, "geometry": None},
        ],
    }


@pytest.fixture
def app(tmp_path, raw_rows, invalid_rows, geojson):
    csv_path = tmp_path / "learning_models.csv"
    pd.DataFrame(raw_rows + invalid_rows).to_csv(csv_path, index=False)
    geo_path = tmp_path / "districts.geojson"
    geo_path.write_text(json.dumps(geojson), encoding="utf-8")

    app = create_app(
        {
            "TESTING": True,
            "DATA_PATH": csv_path,
            "DATA_URL": None,
            "GEOJSON_PATH": geo_path,
            "GEOJSON_URL": None,
        }
    )
    with app.app_context():
        app.extensions["dashboard"].initialize()
    return app


@pytest.fixture
def client(app):
    return app.test_client()
