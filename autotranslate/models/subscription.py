"""
Subscription Model - Room membership

One row per user per room. Members with auto-translate switched on receive
translations into their auto-translate language.
"""
from sqlalchemy import Column, String, DateTime, Boolean, UniqueConstraint
from datetime import datetime
import uuid

from .database import Base


class Subscription(Base):
    """Room subscription model"""
    __tablename__ = "subscriptions"
    __table_args__ = (
        UniqueConstraint('room_id', 'user_id', name='uq_subscription_room_user'),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))

    room_id = Column(String(36), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True)

    # Auto-translate preference
    auto_translate = Column(Boolean, default=False, nullable=False)
    auto_translate_language = Column(String(10), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def to_dict(self):
        return {
            "id": self.id,
            "room_id": self.room_id,
            "user_id": self.user_id,
            "auto_translate": self.auto_translate,
            "auto_translate_language": self.auto_translate_language,
        }

    def __repr__(self):
        return f"<Subscription {self.user_id} in room {self.room_id}>"
