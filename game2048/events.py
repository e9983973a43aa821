# Game2048 - Sliding tile puzzle engine
# events.py - Event kinds emitted by the engine and a small dispatcher.

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class GameEvent(Enum):
    SLIDE = "slide"
    MERGE = "merge"
    UNLOCK = "unlock"        # a merge produced a value not reached before this game
    SPAWN = "spawn"
    WIN = "win"
    GAME_OVER = "game_over"
    NEW_BEST = "new_best"
    RESET = "reset"


@dataclass
class Event:
    kind: GameEvent
    data: Dict[str, Any] = field(default_factory=dict)


EventCallback = Callable[[Event], None]


class EventDispatcher:
    """Routes engine events to subscribed callbacks."""

    def __init__(self):
        self._subscribers: Dict[Optional[GameEvent], List[EventCallback]] = {}

    def subscribe(self, kind: GameEvent, callback: EventCallback):
        self._subscribers.setdefault(kind, []).append(callback)

    def subscribe_all(self, callback: EventCallback):
        self._subscribers.setdefault(None, []).append(callback)

    def unsubscribe(self, kind: Optional[GameEvent], callback: EventCallback):
        callbacks = self._subscribers.get(kind, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def dispatch(self, event: Event):
        """
        Call every subscriber of the event's kind, then the catch-all ones.
        A failing callback is logged and the remaining callbacks still run.
        """
        for callback in self._subscribers.get(event.kind, []) + self._subscribers.get(None, []):
            try:
                callback(event)
            except Exception:
                logger.exception("Event callback %r failed on %s", callback, event.kind.value)
