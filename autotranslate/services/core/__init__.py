"""
Core Infrastructure Module

Repositories over the message and subscription tables:
- MessageRepository: Message rows and their stored translations
- SubscriptionRepository: Room membership and auto-translate languages

Usage:
    from autotranslate.services.core import get_message_repository, get_subscription_repository
"""

from autotranslate.services.core.repositories import (
    MessageRepository,
    SubscriptionRepository,
    get_message_repository,
    get_subscription_repository,
)

__all__ = [
    "MessageRepository",
    "SubscriptionRepository",
    "get_message_repository",
    "get_subscription_repository",
]
