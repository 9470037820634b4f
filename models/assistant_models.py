# models/assistant_models.py
from services.db_config import db
from services.timeutils import isoformat_utc, utcnow
import uuid

CONVERSATION_ROLES = ('user', 'assistant')


class AiConversation(db.Model):
    """One chat turn. The integer id orders turns written in the same instant."""
    __tablename__ = 'ai_conversations'
    __table_args__ = (
        db.CheckConstraint("role IN ('user', 'assistant')", name='ck_ai_conversations_role'),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(db.String(100), db.ForeignKey('users.id', ondelete='CASCADE'),
                        nullable=False, index=True)
    role = db.Column(db.String(20), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'role': self.role,
            'content': self.content,
            'createdAt': isoformat_utc(self.created_at),
        }


class ScenarioTemplate(db.Model):
    __tablename__ = 'scenario_templates'

    id = db.Column(db.String(100), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.Text, nullable=False)
    # The natural-language instruction sent to the model
    prompt = db.Column(db.Text, nullable=False)
    icon = db.Column(db.String(50), nullable=False, default='Calendar')
    # True for system templates, False for user-created ones
    is_default = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'prompt': self.prompt,
            'icon': self.icon,
            'isDefault': bool(self.is_default),
            'createdAt': isoformat_utc(self.created_at),
        }
