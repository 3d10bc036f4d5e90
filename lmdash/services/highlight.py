"""Cross-view highlighting of one learning model."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger("lmdash.highlight")

DIMMED_OPACITY = 0.2


@dataclass(frozen=True)
class HighlightState:
    """``selected is None`` means Unselected."""

    selected: Optional[str] = None

    @property
    def is_selected(self) -> bool:
        return self.selected is not None

    def opacity(self, category: str, dimmed: float = DIMMED_OPACITY) -> float:
        if self.selected is None or category == self.selected:
            return 1.0
        return dimmed

    def to_dict(self) -> dict:
        return {"state": "selected" if self.is_selected else "unselected", "model": self.selected}


UNSELECTED = HighlightState()


@dataclass
class ClickEvent:
    """A click travelling from a mark up to the document root."""

    model: Optional[str] = None
    propagation_stopped: bool = False

    def stop_propagation(self) -> None:
        self.propagation_stopped = True


Listener = Callable[[HighlightState], None]


class CrossHighlightBroker:
    """Hold the highlighted learning model and tell every view about changes.

    The broker holds no chart data. Views subscribe and derive their own
    per-mark opacity from the broadcast state.
    """

    def __init__(self, dimmed_opacity: float = DIMMED_OPACITY):
        self.dimmed_opacity = dimmed_opacity
        self._state = UNSELECTED
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()

    @property
    def state(self) -> HighlightState:
        return self._state

    def subscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _transition(self, state: HighlightState) -> HighlightState:
        with self._lock:
            self._state = state
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(state)
            except Exception:
                logger.exception("Highlight listener %r failed", listener)
        return state

    def select(self, model: str) -> HighlightState:
        return self._transition(HighlightState(model))

    def clear(self) -> HighlightState:
        return self._transition(UNSELECTED)

    def mark_click(self, model: str) -> ClickEvent:
        """Click on a categorical mark: select it and stop the event."""
        event = ClickEvent(model=model)
        event.stop_propagation()
        self.select(model)
        return event

    def document_click(self, event: Optional[ClickEvent] = None) -> HighlightState:
        """Click reaching the document root clears, unless a mark stopped it."""
        if event is not None and event.propagation_stopped:
            return self._state
        return self.clear()

    def opacity(self, category: str) -> float:
        return self._state.opacity(category, self.dimmed_opacity)


__all__ = [
    "ClickEvent",
    "CrossHighlightBroker",
    "DIMMED_OPACITY",
    "HighlightState",
    "UNSELECTED",
]
