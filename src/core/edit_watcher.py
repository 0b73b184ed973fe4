"""Edit-invalidation watcher.

Remembers each entity's due instant from the previous refresh. When an
entity seen in both refreshes comes back with a different instant, its
notification and email records are cleared so the whole reminder
sequence can fire again for the new time.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.data.models import EntityType, ReminderEntity

if TYPE_CHECKING:
    from src.ports.state_store_port import ReminderStateStore

logger = logging.getLogger(__name__)


class EditInvalidationWatcher:
    """Detect due/start changes between refreshes and reset their ledgers."""

    def __init__(self, store: ReminderStateStore) -> None:
        self._store = store
        self._snapshots: dict[EntityType, dict[str, int | None]] = {}

    def observe(
        self, entity_type: EntityType, entities: list[ReminderEntity],
    ) -> list[ReminderEntity]:
        """Compare against the previous snapshot and return edited entities.

        New entities are never edits. The snapshot is replaced wholesale.
        """
        if not self._store.initialized:
            return []

        previous = self._snapshots.get(entity_type, {})
        edited = [
            entity for entity in entities
            if entity.id in previous and previous[entity.id] != entity.due
        ]

        for entity in edited:
            self._store.delete_notification_record(entity_type, entity.id)
            self._store.delete_email_record(entity_type, entity.id)

        if edited:
            logger.info(
                "Reset notification history for edited %ss: %s",
                entity_type.value, [e.title for e in edited],
            )

        self._snapshots[entity_type] = {entity.id: entity.due for entity in entities}
        return edited
