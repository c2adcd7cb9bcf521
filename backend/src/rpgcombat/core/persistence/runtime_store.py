from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from rpgcombat.core.engine.state import CombatState
from rpgcombat.core.persistence.state_codec import (
    combat_state_from_dict,
    combat_state_to_dict,
)
from rpgcombat.core.persistence.sync import ChangeFeed, Listener, Unsubscribe
from rpgcombat.db.models import CombatSnapshot

logger = logging.getLogger(__name__)


def load_latest_snapshot(
    db: Session, party_id: str
) -> Tuple[Optional[int], Optional[CombatState], List[Dict[str, Any]]]:
    row = (
        db.query(CombatSnapshot)
        .filter(CombatSnapshot.party_id == party_id)
        .order_by(CombatSnapshot.id.desc())
        .first()
    )
    if row is None:
        return None, None, []
    return row.id, combat_state_from_dict(row.state_json), list(row.events_json or [])


def save_snapshot(
    db: Session,
    *,
    party_id: str,
    label: Optional[str],
    state: CombatState,
    events_delta: Sequence[Dict[str, Any]] = (),
) -> CombatSnapshot:
    row = CombatSnapshot(
        party_id=party_id,
        label=label,
        state_json=combat_state_to_dict(state),
        events_json=list(events_delta),
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.debug("Saved combat snapshot %s for party %s", row.id, party_id)
    return row


class SqlCombatStore:
    """CombatStore поверх таблицы combat_snapshots; ключ = party_id."""

    def __init__(
        self, db: Session, feed: Optional[ChangeFeed] = None, label: str = "cmd"
    ) -> None:
        self.db = db
        self.feed = feed or ChangeFeed()
        self.label = label
        self.last_snapshot_id: Optional[int] = None

    def get(self, key: str) -> Optional[CombatState]:
        snapshot_id, state, _events = load_latest_snapshot(self.db, key)
        self.last_snapshot_id = snapshot_id
        return state

    def update(
        self, key: str, state: CombatState, events: Sequence[dict] = ()
    ) -> None:
        row = save_snapshot(
            self.db, party_id=key, label=self.label, state=state, events_delta=events
        )
        self.last_snapshot_id = row.id
        self.feed.publish(key, state)

    def subscribe(self, key: str, callback: Listener) -> Unsubscribe:
        return self.feed.subscribe(key, callback)
