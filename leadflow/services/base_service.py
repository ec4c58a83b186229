"""Session-owning base for the lead, contact, rule and budget services."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.orm import Session

from leadflow.auth.tenant_context import TenantContext
import leadflow.database.db as db_module
from leadflow.services.history_recorder import HistoryRecorder


class BaseService:
    """Holds one SQLAlchemy session plus its history recorder.

    Services commit their own primary mutation through `commit()`; history
    entries are appended afterwards through `self.history`.
    """

    def __init__(self, db: Session | None = None, history: HistoryRecorder | None = None) -> None:
        self.db = db or db_module.SessionLocal()
        self.history = history or HistoryRecorder(self.db)

    def commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def rollback(self) -> None:
        self.db.rollback()

    def close(self) -> None:
        self.db.close()

    @staticmethod
    def log_event(
        logger: logging.Logger,
        event: str,
        context: TenantContext | None = None,
        level: int = logging.INFO,
        **fields: Any,
    ) -> None:
        extra: dict[str, Any] = {"event": event, **fields}
        if context is not None:
            extra.setdefault("user_id", context.user_id)
            extra.setdefault("organization_id", context.organization_id)
            extra.setdefault("branch_id", context.branch_id)
        logger.log(level, event, extra=extra)

    def __enter__(self) -> "BaseService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.rollback()
        self.close()
