"""Bring the CRM schema up to date: `python -m leadflow.database.init_db`."""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig
from alembic.script import ScriptDirectory

import leadflow.database.db as db_module
from leadflow.core.startup import bootstrap
from leadflow.models import Base

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def alembic_config(database_url: str) -> AlembicConfig:
    cfg = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    # env.py must not replace the JSON handlers installed by bootstrap().
    cfg.attributes["configure_logger"] = False
    return cfg


def head_revision(cfg: AlembicConfig) -> str | None:
    return ScriptDirectory.from_config(cfg).get_current_head()


def init_db(run_migrations: bool = True) -> None:
    """Upgrade to the latest revision, then create any table the migrations do not cover."""
    bootstrap()
    database_url = db_module.get_active_database_url()
    scheme = database_url.split("://", 1)[0]

    if run_migrations:
        cfg = alembic_config(database_url)
        command.upgrade(cfg, "head")
        logger.info(
            "database.migrations.applied",
            extra={"event": "database.migrations.applied", "revision": head_revision(cfg), "database_url_scheme": scheme},
        )

    Base.metadata.create_all(bind=db_module.get_engine())
    logger.info(
        "database.schema.ready",
        extra={"event": "database.schema.ready", "tables": sorted(Base.metadata.tables), "database_url_scheme": scheme},
    )


if __name__ == "__main__":
    init_db()
