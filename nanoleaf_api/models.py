"""Data models for Nanoleaf controller state and colors."""
from dataclasses import dataclass, field
from typing import Any, Dict, List

from .const import (
    KEY_EFFECTS,
    KEY_EFFECTS_LIST,
    KEY_FIRMWARE_VERSION,
    KEY_NAME,
    KEY_SELECT,
    KEY_SERIAL,
)


def _get_str(data: Dict[str, Any], key: str) -> str:
    value = data.get(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class Effects:
    """Currently selected effect and the effects stored on the controller."""

    selected: str = ""
    effects_list: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Effects":
        """Create Effects from the "effects" object of a state response."""
        if not isinstance(data, dict):
            raise ValueError(f"field {KEY_EFFECTS!r} must be an object, got {type(data).__name__}")

        effects_list = data.get(KEY_EFFECTS_LIST)
        if effects_list is None:
            effects_list = []
        if not isinstance(effects_list, list) or not all(isinstance(name, str) for name in effects_list):
            raise ValueError(f"field {KEY_EFFECTS_LIST!r} must be a list of strings")

        return cls(
            selected=_get_str(data, KEY_SELECT),
            effects_list=list(effects_list),
        )


@dataclass(frozen=True)
class State:
    """Snapshot of a Nanoleaf controller.

    ``name`` is the native name of the device, not the name a user gave it.
    """

    name: str = ""
    serial: str = ""
    firmware_version: str = ""
    effects: Effects = field(default_factory=Effects)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "State":
        """Create a State from the API root response.

        Missing keys decode to empty values; keys with the wrong type raise
        ValueError.
        """
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")

        effects = data.get(KEY_EFFECTS)
        return cls(
            name=_get_str(data, KEY_NAME),
            serial=_get_str(data, KEY_SERIAL),
            firmware_version=_get_str(data, KEY_FIRMWARE_VERSION),
            effects=Effects() if effects is None else Effects.from_dict(effects),
        )


@dataclass(frozen=True)
class Color:
    """HSB color as understood by the controller.

    Values are sent as given; the device may reject or clamp them.
    """

    hue: int  # [0,360]
    saturation: int  # [0,100]
    brightness: int  # [0,100]
