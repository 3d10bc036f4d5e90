"""
Tests for cross-view highlighting.
"""

import pytest

from lmdash.services.highlight import (
    UNSELECTED,
    ClickEvent,
    CrossHighlightBroker,
    HighlightState,
)


@pytest.fixture
def broker():
    return CrossHighlightBroker()


def test_starts_unselected(broker):
    assert broker.state == UNSELECTED
    assert not broker.state.is_selected


def test_mark_click_selects_and_stops_event(broker):
    event = broker.mark_click("Virtual")

    assert broker.state == HighlightState("Virtual")
    assert event.propagation_stopped


def test_stopped_event_does_not_clear(broker):
    event = broker.mark_click("Virtual")

    broker.document_click(event)

    assert broker.state.selected == "Virtual"


def test_click_elsewhere_clears(broker):
    broker.mark_click("Virtual")

    broker.document_click(ClickEvent())

    assert broker.state == UNSELECTED


def test_listeners_get_every_transition(broker):
    seen = []
    broker.subscribe(seen.append)

    broker.mark_click("Hybrid")
    broker.mark_click("Closed")
    broker.document_click()

    assert seen == [HighlightState("Hybrid"), HighlightState("Closed"), UNSELECTED]


def test_failing_listener_does_not_block_others(broker):
    seen = []

    def broken(state):
        raise RuntimeError("view gone")

    broker.subscribe(broken)
    broker.subscribe(seen.append)

    broker.select("Virtual")

    assert seen == [HighlightState("Virtual")]


def test_unsubscribe(broker):
    seen = []
    broker.subscribe(seen.append)
    broker.unsubscribe(seen.append)

    broker.select("Virtual")

    assert seen == []


def test_opacity(broker):
    assert broker.opacity("Hybrid") == 1.0

    broker.select("Virtual")

    assert broker.opacity("Virtual") == 1.0
    assert broker.opacity("Hybrid") == 0.2


def test_state_payload():
    assert HighlightState("Virtual").to_dict() == {"state": "selected", "model": "Virtual"}
    assert UNSELECTED.to_dict() == {"state": "unselected", "model": None}
