"""
Database Models Package

This module exports the SQLAlchemy models of the auto-translation service.

Tables:
1. messages - Chat messages with their stored translations
2. subscriptions - Room membership with auto-translate preferences
"""

from .database import (
    engine,
    AsyncSessionLocal,
    Base,
    init_db,
)

from .message import MessageRecord
from .subscription import Subscription

__all__ = [
    # Database utilities
    "engine",
    "AsyncSessionLocal",
    "Base",
    "init_db",

    # Models
    "MessageRecord",
    "Subscription",
]
