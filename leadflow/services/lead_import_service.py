"""All-or-nothing CSV lead import."""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass, field

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError

from leadflow.auth.tenant_context import TenantContext
from leadflow.core.enums import HistoryAction, HistoryEntity
from leadflow.core.exceptions import ImportValidationError, ValidationError
from leadflow.services.lead_service import AUTO_ASSIGN_PREFIX, LeadService
from leadflow.services.queries import query_active_rules, user_label

logger = logging.getLogger(__name__)

DEFAULT_IMPORT_ORIGIN = "Importación CSV"
REQUIRED_COLUMNS = ("full_name", "phone")
COLUMN_ALIASES = {
    "full_name": ("full_name", "nombre"),
    "phone": ("phone", "telefono", "teléfono"),
    "email": ("email", "correo"),
    "origin": ("origin", "origen"),
    "province": ("province", "provincia"),
    "pax_count": ("pax_count", "pax", "pasajeros"),
    "estimated_travel_date": ("estimated_travel_date", "fecha_viaje"),
}
_ALIAS_LOOKUP = {alias: canonical for canonical, aliases in COLUMN_ALIASES.items() for alias in aliases}


@dataclass
class ImportResult:
    created: int = 0
    auto_assigned: int = 0
    lead_ids: list[int] = field(default_factory=list)


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    """Keep known columns only, renamed to their canonical names (first alias wins)."""
    renamed: dict[str, str] = {}
    for column in df.columns:
        canonical = _ALIAS_LOOKUP.get(str(column).strip().lower())
        if canonical and canonical not in renamed.values():
            renamed[column] = canonical
    return df[list(renamed)].rename(columns=renamed)


def read_import_frame(source: str | bytes) -> pd.DataFrame:
    if isinstance(source, bytes):
        source = source.decode("utf-8-sig")
    text = source.lstrip("\ufeff")
    if not text.strip():
        raise ImportValidationError("El archivo CSV está vacío.")
    try:
        df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False, skipinitialspace=True)
    except pd.errors.EmptyDataError as exc:
        raise ImportValidationError("El archivo CSV está vacío.") from exc
    except pd.errors.ParserError as exc:
        raise ImportValidationError("No se pudo leer el archivo CSV.") from exc
    return normalize_columns(df)


class LeadImportService:
    """Validates every row before inserting any of them."""

    def __init__(self, leads: LeadService) -> None:
        self.leads = leads
        self.db = leads.db

    def import_csv(self, source: str | bytes, context: TenantContext) -> ImportResult:
        df = read_import_frame(source)

        missing_columns = [column for column in REQUIRED_COLUMNS if column not in df.columns]
        if missing_columns:
            raise ImportValidationError(
                f"Faltan columnas requeridas: {', '.join(missing_columns)}",
                invalid_rows=len(df),
            )
        if df.empty:
            raise ImportValidationError("El archivo CSV no contiene filas.")

        max_rows = self.leads.config.IMPORT_MAX_ROWS
        if len(df) > max_rows:
            raise ImportValidationError(
                f"El archivo supera el máximo de {max_rows} filas.",
                invalid_rows=len(df),
            )

        rules = None
        if context.organization_id is not None:
            rules = query_active_rules(self.db, context.organization_id).all()
        reserved_numbers: set[str] = set()
        prepared = []
        invalid_rows: list[int] = []

        # Row 1 is the header line.
        for row_number, record in enumerate(df.to_dict(orient="records"), start=2):
            if any(not str(record.get(column, "")).strip() for column in REQUIRED_COLUMNS):
                invalid_rows.append(row_number)
                continue
            if not str(record.get("origin", "")).strip():
                record["origin"] = DEFAULT_IMPORT_ORIGIN
            try:
                prepared.append(self.leads.prepare_lead(record, context, rules, reserved_numbers))
            except ValidationError:
                invalid_rows.append(row_number)

        if invalid_rows:
            logger.warning(
                "lead.import.rejected",
                extra={
                    "event": "lead.import.rejected",
                    "user_id": context.user_id,
                    "organization_id": context.organization_id,
                    "invalid_rows": len(invalid_rows),
                },
            )
            raise ImportValidationError(
                f"{len(invalid_rows)} filas inválidas (nombre o teléfono faltante o inválido); no se importó ningún lead.",
                invalid_rows=len(invalid_rows),
                row_numbers=invalid_rows,
            )

        leads = [lead for lead, _ in prepared]
        self.db.add_all(leads)
        try:
            self.leads.commit()
        except SQLAlchemyError:
            logger.exception(
                "lead.import.failed",
                extra={"event": "lead.import.failed", "user_id": context.user_id, "rows": len(leads)},
            )
            raise

        result = ImportResult()
        entries = []
        for lead, auto_assigned in prepared:
            result.created += 1
            result.lead_ids.append(lead.id)
            entries.append(
                (lead.id, HistoryEntity.LEAD, HistoryAction.LEAD_IMPORTED,
                 f"Lead importado desde CSV ({lead.inquiry_number})", context.user_id)
            )
            if auto_assigned:
                result.auto_assigned += 1
                entries.append(
                    (lead.id, HistoryEntity.LEAD, HistoryAction.ASSIGNMENT_CHANGE,
                     f"{AUTO_ASSIGN_PREFIX}: {user_label(self.db, None)} -> {user_label(self.db, lead.assigned_to)}",
                     context.user_id)
                )
        self.leads.history.record_many(entries)

        logger.info(
            "lead.import.completed",
            extra={
                "event": "lead.import.completed",
                "user_id": context.user_id,
                "organization_id": context.organization_id,
                "created_count": result.created,
                "auto_assigned": result.auto_assigned,
            },
        )
        return result
