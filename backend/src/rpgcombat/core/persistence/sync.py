from __future__ import annotations

import logging
from collections import defaultdict
from typing import Callable, Dict, List, Optional, Protocol, Sequence

from rpgcombat.core.engine.commands import Command
from rpgcombat.core.engine.errors import NoActiveCombat
from rpgcombat.core.engine.rules.apply import apply_command
from rpgcombat.core.engine.state import CombatState
from rpgcombat.core.persistence.state_codec import (
    combat_state_from_dict,
    combat_state_to_dict,
)

logger = logging.getLogger(__name__)

Listener = Callable[[str, CombatState], None]
Unsubscribe = Callable[[], None]


class CombatStore(Protocol):
    def get(self, key: str) -> Optional[CombatState]: ...

    def update(
        self, key: str, state: CombatState, events: Sequence[dict] = ()
    ) -> None: ...

    def subscribe(self, key: str, callback: Listener) -> Unsubscribe: ...


class ChangeFeed:
    """Push-уведомления подписчикам ключа после каждой записи."""

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def subscribe(self, key: str, callback: Listener) -> Unsubscribe:
        self._listeners[key].append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners.get(key, []):
                self._listeners[key].remove(callback)

        return unsubscribe

    def publish(self, key: str, state: CombatState) -> None:
        for callback in list(self._listeners.get(key, [])):
            try:
                callback(key, state)
            except Exception:
                # подписчик не должен ломать запись и остальных подписчиков
                logger.exception("Combat subscriber failed for %s", key)


class InMemoryCombatStore:
    def __init__(self, feed: Optional[ChangeFeed] = None) -> None:
        self._docs: Dict[str, dict] = {}
        self.feed = feed or ChangeFeed()

    def get(self, key: str) -> Optional[CombatState]:
        doc = self._docs.get(key)
        # каждый get отдаёт свежую копию, как чтение документа из хранилища
        return combat_state_from_dict(doc) if doc is not None else None

    def update(
        self, key: str, state: CombatState, events: Sequence[dict] = ()
    ) -> None:
        self._docs[key] = combat_state_to_dict(state)
        logger.debug("Stored combat %s at seq=%s", key, state.seq)
        self.feed.publish(key, combat_state_from_dict(self._docs[key]))

    def subscribe(self, key: str, callback: Listener) -> Unsubscribe:
        return self.feed.subscribe(key, callback)


class CombatSynchronizer:
    """
    Чтение -> apply_command -> запись.
    Движок о хранилище не знает; отклонённая команда ничего не записывает.
    """

    def __init__(self, store: CombatStore) -> None:
        self.store = store

    def apply(self, key: str, command: Command) -> List[dict]:
        state = self.store.get(key)
        if state is None:
            raise NoActiveCombat(f"Combat {key!r} is not initialized", key=key)

        new_state, events = apply_command(state, command)
        if events and events[0]["type"] == "CommandRejected":
            return events

        self.store.update(key, new_state, events)
        return events
