"""Learning-model legend utilities."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import pandas as pd


class Legend:
    """Encapsulate the learning model -> colour mapping and helper routines."""

    def __init__(self, mapping: Dict[str, str], fallback: str = "#cccccc"):
        self.mapping = dict(mapping)
        self.fallback = fallback

    @property
    def models(self) -> List[str]:
        return list(self.mapping)

    def color(self, model: Optional[str]) -> str:
        if not model:
            return self.fallback
        return self.mapping.get(model, self.fallback)

    def available(self, df: pd.DataFrame) -> List[Tuple[str, str]]:
        """(model, colour) pairs for models present in ``df``, legend order first."""
        if df is None or "learning_model" not in df.columns:
            return []
        present = set(df["learning_model"].astype(str))
        known = [(k, v) for k, v in self.mapping.items() if k in present]
        extra = [(k, self.fallback) for k in sorted(present - set(self.mapping))]
        return known + extra


def map_legend(steps: List[int]) -> List[Dict[str, object]]:
    """Legend entries for the virtual-share choropleth."""
    return [{"value": value, "label": f"{value}%"} for value in steps]


__all__ = ["Legend", "map_legend"]
