from __future__ import annotations

import logging
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from leadflow.core.enums import HistoryAction, HistoryEntity
from leadflow.services.history_recorder import HistoryRecorder


def test_list_for_returns_newest_first(session, tenant):
    recorder = HistoryRecorder(session)
    recorder.record(10, HistoryEntity.CONTACT, HistoryAction.CONTACT_CREATED, "primero", tenant.users.manager.id)
    recorder.record(10, HistoryEntity.CONTACT, HistoryAction.CONTACT_UPDATED, "segundo", tenant.users.manager.id)
    recorder.record(11, HistoryEntity.CONTACT, HistoryAction.CONTACT_UPDATED, "otro", None)

    entries = recorder.list_for(10, HistoryEntity.CONTACT)

    assert [entry.description for entry in entries] == ["segundo", "primero"]
    assert entries[0].user_id == tenant.users.manager.id


def test_record_many_with_no_entries_does_not_touch_session():
    db = MagicMock()

    assert HistoryRecorder(db).record_many([]) == []
    db.commit.assert_not_called()


def test_failed_write_is_logged_and_swallowed(caplog):
    db = MagicMock()
    db.commit.side_effect = OperationalError("INSERT", {}, Exception("disk I/O error"))

    with caplog.at_level(logging.ERROR, logger="leadflow.services.history_recorder"):
        entry = HistoryRecorder(db).record(1, HistoryEntity.LEAD, HistoryAction.LEAD_CREATED, "Lead creado", 5)

    assert entry is None
    db.rollback.assert_called_once()
    assert any(record.getMessage() == "history.write_failed" for record in caplog.records)
