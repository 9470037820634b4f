"""Data access for users, events, conversation turns and scenario templates.

Every user-scoped method filters on the owning user id; ownership equality is
the only authorization check in the application.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from services.db_config import db
from services.timeutils import utcnow
from models.user import User
from models.calendar import DEFAULT_EVENT_COLOR, Event
from models.assistant_models import CONVERSATION_ROLES, AiConversation, ScenarioTemplate

logger = logging.getLogger(__name__)

# Event columns a caller may set; userId is never patchable
EVENT_FIELDS = ("title", "description", "start_time", "end_time", "color", "is_all_day")


class Storage:

    # ---------------- Users ----------------
    def get_user(self, user_id: str) -> Optional[User]:
        return db.session.get(User, user_id)

    def upsert_user(self, claims: Mapping[str, Any]) -> User:
        """Create or refresh the user row from identity-provider claims."""
        user_id = claims.get("sub")
        if not user_id:
            raise ValueError("claims must contain 'sub'")

        user = db.session.get(User, str(user_id))
        if user is None:
            user = User(id=str(user_id))
            db.session.add(user)
        for claim, column in (
            ("email", "email"),
            ("first_name", "first_name"),
            ("last_name", "last_name"),
            ("profile_image_url", "profile_image_url"),
        ):
            if claim in claims:
                setattr(user, column, claims[claim])
        user.updated_at = utcnow()
        db.session.commit()
        return user

    # ---------------- Events ----------------
    def get_events(
        self,
        user_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Event]:
        """Events whose interval intersects [start, end]; either bound is optional."""
        query = Event.query.filter(Event.user_id == user_id)
        if start is not None:
            query = query.filter(Event.end_time >= start)
        if end is not None:
            query = query.filter(Event.start_time <= end)
        return query.order_by(Event.start_time.asc()).all()

    def get_event(self, event_id: str, user_id: str) -> Optional[Event]:
        return Event.query.filter_by(id=event_id, user_id=user_id).first()

    def create_event(self, data: Mapping[str, Any], commit: bool = True) -> Event:
        event = Event(
            id=Event.generate_id(),
            user_id=data["user_id"],
            title=data["title"],
            description=data.get("description"),
            start_time=data["start_time"],
            end_time=data["end_time"],
            color=data.get("color") or DEFAULT_EVENT_COLOR,
            is_all_day=bool(data.get("is_all_day", False)),
        )
        db.session.add(event)
        if commit:
            db.session.commit()
        else:
            db.session.flush()
        return event

    def update_event(self, event_id: str, user_id: str, data: Mapping[str, Any]) -> Optional[Event]:
        event = self.get_event(event_id, user_id)
        if event is None:
            return None
        for field in EVENT_FIELDS:
            if field in data:
                setattr(event, field, data[field])
        event.updated_at = utcnow()
        db.session.commit()
        return event

    def delete_event(self, event_id: str, user_id: str) -> bool:
        deleted = Event.query.filter_by(id=event_id, user_id=user_id).delete(synchronize_session=False)
        db.session.commit()
        return deleted > 0

    def delete_all_events(self, user_id: str, commit: bool = True) -> int:
        deleted = Event.query.filter_by(user_id=user_id).delete(synchronize_session=False)
        if commit:
            db.session.commit()
        return deleted

    # ---------------- Conversations ----------------
    def get_conversations(self, user_id: str, limit: int = 50) -> List[AiConversation]:
        """The most recent ``limit`` turns, returned oldest-first."""
        recent = (
            AiConversation.query.filter_by(user_id=user_id)
            .order_by(AiConversation.created_at.desc(), AiConversation.id.desc())
            .limit(limit)
            .all()
        )
        recent.reverse()
        return recent

    def create_conversation(self, data: Mapping[str, Any]) -> AiConversation:
        role = data.get("role")
        if role not in CONVERSATION_ROLES:
            raise ValueError(f"role must be one of {', '.join(CONVERSATION_ROLES)}")
        turn = AiConversation(
            user_id=data["user_id"],
            role=role,
            content=data["content"],
            created_at=utcnow(),
        )
        db.session.add(turn)
        db.session.commit()
        return turn

    def delete_conversations(self, user_id: str) -> int:
        deleted = AiConversation.query.filter_by(user_id=user_id).delete(synchronize_session=False)
        db.session.commit()
        return deleted

    # ---------------- Templates ----------------
    def get_templates(self) -> List[ScenarioTemplate]:
        return (
            ScenarioTemplate.query.filter(ScenarioTemplate.is_default.is_(True))
            .order_by(ScenarioTemplate.created_at.asc(), ScenarioTemplate.name.asc())
            .all()
        )

    def get_template(self, template_id: str) -> Optional[ScenarioTemplate]:
        """Only system templates can be applied."""
        return ScenarioTemplate.query.filter(
            ScenarioTemplate.id == template_id,
            ScenarioTemplate.is_default.is_(True),
        ).first()

    def create_template(self, data: Mapping[str, Any]) -> ScenarioTemplate:
        template = ScenarioTemplate(
            name=data["name"],
            description=data["description"],
            prompt=data["prompt"],
            icon=data.get("icon") or "Calendar",
            is_default=data.get("is_default", True),
        )
        db.session.add(template)
        db.session.commit()
        logger.info(f"Created scenario template {template.name!r}")
        return template


def rows_to_dicts(rows: List[Any]) -> List[Dict[str, Any]]:
    return [row.to_dict() for row in rows]
