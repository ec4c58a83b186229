"""Process bootstrap: logging setup plus fail-fast checks before serving requests."""

from __future__ import annotations

import logging
from typing import Any

from leadflow.core.config import get_config
from leadflow.core.logging_config import configure_logging
from leadflow.database.db import get_active_database_url, verify_database_connection

logger = logging.getLogger(__name__)


def describe_runtime(config: Any, database_url: str) -> dict[str, Any]:
    """Settings worth one line in the startup log; never includes secrets."""
    return {
        "env": config.ENV,
        "database_url_scheme": database_url.split("://", 1)[0],
        "db_connectivity_required": config.DB_CONNECTIVITY_REQUIRED,
        "auto_assign_enabled": config.AUTO_ASSIGN_ENABLED,
        "import_max_rows": config.IMPORT_MAX_ROWS,
        "bulk_assign_max": config.BULK_ASSIGN_MAX,
    }


def validate_startup_config() -> None:
    """Refuse to start without a required database; warn about risky settings."""
    config = get_config()
    database_url = get_active_database_url()

    if not verify_database_connection():
        if config.DB_CONNECTIVITY_REQUIRED:
            raise RuntimeError("Database connectivity check failed.")
        logger.warning(
            "startup.database.unreachable",
            extra={"event": "startup.database.unreachable"},
        )

    if config.is_production and database_url.startswith("sqlite"):
        logger.warning("startup.production.sqlite_detected", extra={"event": "startup.production.sqlite_detected"})
    if not config.AUTO_ASSIGN_ENABLED:
        logger.info("startup.auto_assign.disabled", extra={"event": "startup.auto_assign.disabled"})

    logger.info(
        "startup.config.validated",
        extra={"event": "startup.config.validated", **describe_runtime(config, database_url)},
    )


def bootstrap() -> None:
    configure_logging()
    validate_startup_config()
