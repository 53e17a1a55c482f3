from sqlalchemy import Column, String, DateTime, Text, JSON
from datetime import datetime
import uuid

from .database import Base


class MessageRecord(Base):
    """Stored chat message with its per-language translations"""
    __tablename__ = "messages"

    # Primary key
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    room_id = Column(String(36), nullable=False, index=True)
    sender_id = Column(String(36), nullable=True, index=True)

    # Message content
    text = Column(Text, nullable=False, default="")
    mentions = Column(JSON, nullable=False, default=list)      # usernames
    channels = Column(JSON, nullable=False, default=list)      # channel names
    attachments = Column(JSON, nullable=False, default=list)   # [{description, text, translations}]

    # Translation data: {"de": "...", "fr": "..."}
    translations = Column(JSON, nullable=False, default=dict)
    translation_provider = Column(String(100), nullable=True)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        """Convert to dictionary for JSON response"""
        return {
            "id": self.id,
            "room_id": self.room_id,
            "sender_id": self.sender_id,
            "text": self.text,
            "mentions": list(self.mentions or []),
            "channels": list(self.channels or []),
            "attachments": list(self.attachments or []),
            "translations": dict(self.translations or {}),
            "translation_provider": self.translation_provider,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<MessageRecord {self.id} in room {self.room_id}>"
