"""Prompt builders for AI-assisted schedule generation."""
from __future__ import annotations

import json
from datetime import datetime
from textwrap import dedent
from typing import Any, Dict, Iterable, List, Mapping, Optional

from services.timeutils import isoformat_utc, utcnow

Message = Dict[str, str]


def generation_system_prompt(now: Optional[datetime] = None) -> str:
    """Instructions describing the JSON contract for newly generated events."""
    current = isoformat_utc(now or utcnow())
    return dedent(
        f"""
        You are an intelligent calendar assistant. Generate calendar events based on user prompts.

        Rules:
        1. Always respond with JSON in this exact format: {{ "events": [...], "reply": "..." }}
        2. Each event must have: title, startTime (ISO 8601), endTime (ISO 8601), and color (chart-1 to chart-5). description is optional.
        3. Use smart defaults for timing - morning (9 AM), afternoon (2 PM), evening (6 PM)
        4. Spread events throughout the week intelligently
        5. Add helpful descriptions when relevant
        6. Color code by category: chart-1 (blue) for work/study, chart-2 (green) for health/gym, chart-3 (red) for important, chart-4 (orange) for social, chart-5 (purple) for personal
        7. Keep events realistic (30min - 3 hours typically)
        8. Reply should be friendly and confirm what you created

        Current date: {current}
        """
    ).strip()


def modification_system_prompt(current_events: Iterable[Mapping[str, Any]]) -> str:
    events_json = json.dumps(list(current_events), indent=2, default=str)
    return dedent(
        """
        You are an intelligent calendar assistant. Modify existing calendar events based on user requests.

        Current events: {events}

        Rules:
        1. Respond with JSON: {{ "events": [...], "reply": "..." }}
        2. Include ALL events (modified and unchanged)
        3. Apply the user's requested changes
        4. Keep the reply friendly and explain what changed
        5. Maintain event colors and IDs where possible
        """
    ).strip().format(events=events_json)


def build_generation_messages(
    history: Iterable[Any],
    prompt: str,
    now: Optional[datetime] = None,
) -> List[Message]:
    """System instruction, then previous turns oldest-first, then the new prompt.

    ``history`` holds objects with ``role`` and ``content`` attributes
    (conversation rows).
    """
    prompt = (prompt or "").strip()
    if not prompt:
        raise ValueError("prompt must be a non-empty string")

    messages: List[Message] = [{"role": "system", "content": generation_system_prompt(now)}]
    for turn in history:
        messages.append({"role": turn.role, "content": turn.content})
    messages.append({"role": "user", "content": prompt})
    return messages


def build_modification_messages(
    current_events: Iterable[Mapping[str, Any]],
    modification: str,
) -> List[Message]:
    modification = (modification or "").strip()
    if not modification:
        raise ValueError("modification must be a non-empty string")

    return [
        {"role": "system", "content": modification_system_prompt(current_events)},
        {"role": "user", "content": modification},
    ]
