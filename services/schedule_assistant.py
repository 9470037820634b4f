"""Turns prompts into calendar events and swaps them into a user's calendar."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Iterable, List, Mapping, Optional, Protocol, Sequence

from services.db_config import db
from services.ai_postprocess import normalize_generated_events
from services.llm_client import parse_completion
from services.prompts import build_generation_messages, build_modification_messages
from services.storage import Storage

logger = logging.getLogger(__name__)

DEFAULT_GENERATE_REPLY = "I've created your events!"
DEFAULT_MODIFY_REPLY = "I've updated your schedule!"


class TemplateNotFoundError(LookupError):
    """Raised when a template id does not match any system template."""


class Completer(Protocol):
    def complete(self, messages: Sequence[Mapping[str, str]]) -> str: ...


@dataclass
class CompletionResult:
    events: List[Any] = field(default_factory=list)
    reply: str = ""


class ScheduleAssistant:
    def __init__(
        self,
        storage: Storage,
        client: Completer,
        history_limit: int = 10,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.storage = storage
        self.client = client
        self.history_limit = history_limit
        self.clock = clock

    # ---------------- Completion ----------------
    def generate_from_prompt(self, user_id: str, prompt: str) -> CompletionResult:
        history = self.storage.get_conversations(user_id, self.history_limit)
        now = self.clock() if self.clock else None
        messages = build_generation_messages(history, prompt, now=now)
        return self._complete_and_record(user_id, messages, prompt, DEFAULT_GENERATE_REPLY)

    def apply_template(self, user_id: str, template_id: str) -> CompletionResult:
        template = self.storage.get_template(template_id)
        if template is None:
            raise TemplateNotFoundError("Template not found")
        logger.info(f"Applying template {template.name!r} for user {user_id}")
        return self.generate_from_prompt(user_id, template.prompt)

    def modify_schedule(
        self,
        user_id: str,
        modification: str,
        current_events: Iterable[Mapping[str, Any]],
    ) -> CompletionResult:
        messages = build_modification_messages(current_events, modification)
        return self._complete_and_record(user_id, messages, modification, DEFAULT_MODIFY_REPLY)

    def _complete_and_record(self, user_id, messages, prompt, default_reply) -> CompletionResult:
        text = self.client.complete(messages)
        events, reply = parse_completion(text)
        reply = reply or default_reply

        self.storage.create_conversation({"user_id": user_id, "role": "user", "content": prompt})
        self.storage.create_conversation({"user_id": user_id, "role": "assistant", "content": reply})
        return CompletionResult(events=events, reply=reply)

    # ---------------- Mutation ----------------
    def replace_events(self, user_id: str, generated: Iterable[Any]) -> int:
        """Swap the user's whole calendar for ``generated`` in one transaction.

        Raises ``GeneratedEventError`` before anything is deleted when an item
        is invalid; any later failure rolls back to the previous events.
        """
        rows = normalize_generated_events(generated)
        try:
            removed = self.storage.delete_all_events(user_id, commit=False)
            for row in rows:
                self.storage.create_event({**row, "user_id": user_id}, commit=False)
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        logger.info(f"Replaced {removed} events with {len(rows)} generated events for user {user_id}")
        return len(rows)

    def generate(self, user_id: str, prompt: str) -> CompletionResult:
        result = self.generate_from_prompt(user_id, prompt)
        self.replace_events(user_id, result.events)
        return result

    def generate_from_template(self, user_id: str, template_id: str) -> CompletionResult:
        result = self.apply_template(user_id, template_id)
        self.replace_events(user_id, result.events)
        return result

    def modify(self, user_id: str, modification: str) -> CompletionResult:
        current = [event.to_dict() for event in self.storage.get_events(user_id)]
        result = self.modify_schedule(user_id, modification, current)
        self.replace_events(user_id, result.events)
        return result
