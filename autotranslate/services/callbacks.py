"""
Named callback hooks with priorities.

The host application fires ``afterSaveMessage`` once a message is durably
saved; the active translation provider's orchestrator is the subscriber.
Callbacks are keyed by an id so a subscriber can be replaced or removed
without holding a reference to the bound method it registered.

Usage:
    from autotranslate.services.callbacks import CallbackRegistry, CallbackPriority

    callbacks = CallbackRegistry()

    callbacks.add("afterSaveMessage", handler, CallbackPriority.MEDIUM, "deepl")
    message = await callbacks.run("afterSaveMessage", message, room)
    callbacks.remove("afterSaveMessage", "deepl")
"""

import inspect
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class CallbackPriority(IntEnum):
    HIGH = -1000
    MEDIUM = 0
    LOW = 1000


@dataclass
class _Callback:
    fn: Callable[..., Any]
    priority: int
    callback_id: str


class CallbackRegistry:
    """Registry of hooks, each an ordered list of callbacks."""

    def __init__(self):
        self._hooks: Dict[str, List[_Callback]] = {}

    def add(
        self,
        hook: str,
        fn: Callable[..., Any],
        priority: int = CallbackPriority.MEDIUM,
        callback_id: Optional[str] = None
    ) -> str:
        """
        Subscribe ``fn`` to ``hook``. A callback with the same id is replaced.

        Returns:
            The callback id
        """
        callback_id = callback_id or f"{getattr(fn, '__qualname__', 'callback')}:{id(fn)}"
        entries = [cb for cb in self._hooks.get(hook, []) if cb.callback_id != callback_id]
        entries.append(_Callback(fn=fn, priority=int(priority), callback_id=callback_id))
        # Stable sort keeps insertion order within a priority
        entries.sort(key=lambda cb: cb.priority)
        self._hooks[hook] = entries
        return callback_id

    def remove(self, hook: str, callback_id: str) -> None:
        """Unsubscribe by id. Unknown ids are ignored."""
        if hook in self._hooks:
            self._hooks[hook] = [cb for cb in self._hooks[hook] if cb.callback_id != callback_id]

    def has(self, hook: str, callback_id: str) -> bool:
        return any(cb.callback_id == callback_id for cb in self._hooks.get(hook, []))

    def ids(self, hook: str) -> List[str]:
        return [cb.callback_id for cb in self._hooks.get(hook, [])]

    async def run(self, hook: str, item: Any, *args: Any) -> Any:
        """
        Run the hook's callbacks in priority order.

        Each callback receives the current item plus ``args``; a non-None
        result becomes the item for the next callback. A failing callback is
        logged and skipped.

        Returns:
            The final item
        """
        for cb in list(self._hooks.get(hook, [])):
            try:
                result = cb.fn(item, *args)
                if inspect.isawaitable(result):
                    result = await result
            except Exception:
                logger.exception(f"[Callbacks] {hook} callback {cb.callback_id} failed")
                continue
            if result is not None:
                item = result
        return item

    def clear(self) -> None:
        self._hooks.clear()
