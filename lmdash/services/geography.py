"""District polygons for the choropleth."""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import requests

logger = logging.getLogger("lmdash")

EMPTY_COLLECTION: Dict[str, Any] = {"type": "FeatureCollection", "features": []}


def load_geojson(path: Optional[Path] = None, url: Optional[str] = None) -> Dict[str, Any]:
    """Read a FeatureCollection from disk, falling back to ``url``."""
    if path is not None and Path(path).is_file():
        with open(path, encoding="utf-8") as fh:
            data = json.load(fh)
        logger.info("Loaded district geometry from %s", path)
        return data

    if url:
        try:
            resp = requests.get(url, timeout=60)
            resp.raise_for_status()
            logger.info("Loaded district geometry from GEOJSON_URL.")
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("Failed to fetch district geometry: %s", e)

    logger.warning("No district geometry available; map will be empty.")
    return copy.deepcopy(EMPTY_COLLECTION)


def annotate_features(
    geojson: Mapping[str, Any],
    shares: Mapping[str, float],
    prop: str = "percentageVirtual",
) -> Dict[str, Any]:
    """Copy of ``geojson`` with each feature's virtual share for one month.

    ``shares`` maps district name -> percent; unknown districts get 0.
    """
    out = copy.deepcopy(dict(geojson))
    for feature in out.get("features", []):
        props = feature.setdefault("properties", {}) or {}
        feature["properties"] = props
        props[prop] = float(shares.get(props.get("DistrictName"), 0.0))
    return out


class Geography:
    """Lazily loaded district FeatureCollection."""

    def __init__(self, config: Mapping[str, Any]):
        self.config = config
        self._geojson: Optional[Dict[str, Any]] = None

    def get(self) -> Dict[str, Any]:
        if self._geojson is None:
            self._geojson = load_geojson(
                self.config.get("GEOJSON_PATH"), self.config.get("GEOJSON_URL")
            )
        return self._geojson

    def set(self, geojson: Dict[str, Any]) -> None:
        self._geojson = geojson

    def annotated(self, shares: Mapping[str, float]) -> Dict[str, Any]:
        return annotate_features(self.get(), shares)


__all__ = ["Geography", "annotate_features", "load_geojson"]
