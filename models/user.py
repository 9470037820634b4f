from services.db_config import db
from services.timeutils import isoformat_utc, utcnow
from sqlalchemy.orm import relationship

class User(db.Model):
    __tablename__ = 'users'

    # Stable identity string from the identity provider (the "sub" claim)
    id = db.Column(db.String(100), primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=True)
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    profile_image_url = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    events = relationship('Event', backref='user', lazy=True,
                          cascade='all, delete-orphan', passive_deletes=True)
    conversations = relationship('AiConversation', backref='user', lazy=True,
                                 cascade='all, delete-orphan', passive_deletes=True)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'firstName': self.first_name,
            'lastName': self.last_name,
            'profileImageUrl': self.profile_image_url,
            'createdAt': isoformat_utc(self.created_at),
            'updatedAt': isoformat_utc(self.updated_at),
        }
