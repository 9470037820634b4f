# models/calendar.py
from services.db_config import db
from services.timeutils import isoformat_utc, utcnow
import uuid

# Category slots, in order; the first one is the default
EVENT_COLORS = ('chart-1', 'chart-2', 'chart-3', 'chart-4', 'chart-5')
DEFAULT_EVENT_COLOR = EVENT_COLORS[0]


class Event(db.Model):
    __tablename__ = 'events'
    __table_args__ = (
        db.CheckConstraint(
            "color IN ('chart-1', 'chart-2', 'chart-3', 'chart-4', 'chart-5')",
            name='ck_events_color',
        ),
    )

    id = db.Column(db.String(100), primary_key=True)
    user_id = db.Column(db.String(100), db.ForeignKey('users.id', ondelete='CASCADE'),
                        nullable=False, index=True)
    title = db.Column(db.Text, nullable=False)
    description = db.Column(db.Text)
    # Keep columns as naive datetimes - we consistently treat them as UTC
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)
    color = db.Column(db.String(50), nullable=False, default=DEFAULT_EVENT_COLOR)
    is_all_day = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    @staticmethod
    def generate_id():
        return str(uuid.uuid4())

    def to_dict(self):
        return {
            'id': self.id,
            'userId': self.user_id,
            'title': self.title,
            'description': self.description,
            'startTime': isoformat_utc(self.start_time),
            'endTime': isoformat_utc(self.end_time),
            'color': self.color,
            'isAllDay': bool(self.is_all_day),
            'createdAt': isoformat_utc(self.created_at),
            'updatedAt': isoformat_utc(self.updated_at),
        }
