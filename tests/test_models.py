"""Tests for Nanoleaf data models."""
import dataclasses

import pytest

from nanoleaf_api.models import Color, Effects, State


def test_state_from_dict():
    """Test creating a state from a full response."""
    data = {
        "name": "Left Panel",
        "serialNo": "ABC123",
        "firmwareVersion": "1.0",
        "effects": {
            "select": "Rainbow",
            "effectsList": ["Rainbow", "Fade"],
        },
        "panelLayout": {"layout": {"numPanels": 9}},
    }

    state = State.from_dict(data)

    assert state == State(
        name="Left Panel",
        serial="ABC123",
        firmware_version="1.0",
        effects=Effects(selected="Rainbow", effects_list=["Rainbow", "Fade"]),
    )


def test_state_minimal_data():
    """Test that missing keys decode to empty values."""
    state = State.from_dict({"name": "Aurora"})

    assert state.name == "Aurora"
    assert state.serial == ""
    assert state.firmware_version == ""
    assert state.effects.selected == ""
    assert state.effects.effects_list == []


def test_state_null_effects_list():
    """Test that a null effects list decodes to an empty list."""
    state = State.from_dict({"effects": {"select": "*Solid*", "effectsList": None}})

    assert state.effects.selected == "*Solid*"
    assert state.effects.effects_list == []


@pytest.mark.parametrize(
    "data",
    [
        [],
        "state",
        {"name": 5},
        {"effects": "Rainbow"},
        {"effects": {"effectsList": ["Rainbow", 3]}},
        {"effects": {"select": ["Rainbow"]}},
        {"effects": {"effectsList": ""}},
        {"effects": {"effectsList": 0}},
        {"effects": {"effectsList": {}}},
        {"effects": {"effectsList": False}},
    ],
)
def test_state_wrong_types(data):
    """Test that values of the wrong type are rejected."""
    with pytest.raises(ValueError):
        State.from_dict(data)


def test_state_is_read_only():
    """Test that a state snapshot cannot be modified."""
    state = State.from_dict({"name": "Aurora"})

    with pytest.raises(dataclasses.FrozenInstanceError):
        state.name = "Canvas"


def test_color_not_validated():
    """Test that colors pass out-of-range values through."""
    color = Color(hue=720, saturation=-1, brightness=101)

    assert (color.hue, color.saturation, color.brightness) == (720, -1, 101)
