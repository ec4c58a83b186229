"""Best-effort, append-only audit trail for leads and contacts."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from leadflow.core.enums import HistoryAction, HistoryEntity
from leadflow.models import ContactHistory, LeadHistory
from leadflow.utils.validators import sanitize_text

logger = logging.getLogger(__name__)

HistoryRow = LeadHistory | ContactHistory


def _build_entry(
    entity_id: int,
    entity_kind: HistoryEntity | str,
    action: HistoryAction | str,
    description: str,
    acting_user_id: int | None,
) -> HistoryRow:
    kind = HistoryEntity(entity_kind)
    fields = {
        "action": HistoryAction(action).value,
        "description": sanitize_text(description, max_len=4000),
        "user_id": acting_user_id,
    }
    if kind is HistoryEntity.LEAD:
        return LeadHistory(lead_id=entity_id, **fields)
    return ContactHistory(contact_id=entity_id, **fields)


class HistoryRecorder:
    """Writes history rows in their own commit.

    Callers commit their primary mutation first; a failing history write is
    logged and rolled back on its own, never surfaced to the caller.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def record(
        self,
        entity_id: int,
        entity_kind: HistoryEntity | str,
        action: HistoryAction | str,
        description: str,
        acting_user_id: int | None = None,
    ) -> HistoryRow | None:
        return next(iter(self.record_many([(entity_id, entity_kind, action, description, acting_user_id)])), None)

    def record_many(
        self,
        entries: Iterable[tuple[int, HistoryEntity | str, HistoryAction | str, str, int | None]],
    ) -> list[HistoryRow]:
        rows = [_build_entry(*entry) for entry in entries]
        if not rows:
            return []
        try:
            self.db.add_all(rows)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(
                "history.write_failed",
                extra={"event": "history.write_failed", "entries": len(rows)},
            )
            return []
        return rows

    def list_for(self, entity_id: int, entity_kind: HistoryEntity | str) -> list[HistoryRow]:
        """Entries for one entity, newest first."""
        if HistoryEntity(entity_kind) is HistoryEntity.LEAD:
            model, column = LeadHistory, LeadHistory.lead_id
        else:
            model, column = ContactHistory, ContactHistory.contact_id
        return (
            self.db.query(model)
            .filter(column == entity_id)
            .order_by(model.created_at.desc(), model.id.desc())
            .all()
        )
