"""Coerce AI-generated events into rows the events table accepts."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

from models.calendar import DEFAULT_EVENT_COLOR, EVENT_COLORS
from services.timeutils import parse_timestamp

# The system prompt pairs each slot with a color name; models sometimes answer with the name
_COLOR_ALIASES = {
    "blue": "chart-1",
    "green": "chart-2",
    "red": "chart-3",
    "orange": "chart-4",
    "purple": "chart-5",
}


class GeneratedEventError(ValueError):
    """A generated event could not be turned into a valid row."""

    def __init__(self, index: int, reason: str):
        super().__init__(f"Generated event {index + 1} is invalid: {reason}")
        self.index = index
        self.reason = reason


def normalize_color(value: Any) -> str:
    """Return a category slot, falling back to the first one."""
    if not isinstance(value, str):
        return DEFAULT_EVENT_COLOR
    lowered = value.strip().lower()
    if lowered in EVENT_COLORS:
        return lowered
    return _COLOR_ALIASES.get(lowered, DEFAULT_EVENT_COLOR)


def _normalize_one(item: Any) -> Dict[str, Any]:
    if not isinstance(item, Mapping):
        raise ValueError("event must be an object")

    title = item.get("title")
    if not isinstance(title, str) or not title.strip():
        raise ValueError("title is required")

    try:
        start_time = parse_timestamp(item.get("startTime"))
    except ValueError:
        raise ValueError("startTime must be a valid timestamp")
    try:
        end_time = parse_timestamp(item.get("endTime"))
    except ValueError:
        raise ValueError("endTime must be a valid timestamp")

    description = item.get("description")
    if description is not None and not isinstance(description, str):
        description = str(description)

    return {
        "title": title.strip(),
        "description": description or None,
        "start_time": start_time,
        "end_time": end_time,
        "color": normalize_color(item.get("color")),
        "is_all_day": False,
    }


def normalize_generated_events(items: Iterable[Any]) -> List[Dict[str, Any]]:
    """Validate every item; the first bad one raises ``GeneratedEventError``."""
    results: List[Dict[str, Any]] = []
    for index, item in enumerate(items):
        try:
            results.append(_normalize_one(item))
        except ValueError as exc:
            raise GeneratedEventError(index, str(exc)) from exc
    return results
