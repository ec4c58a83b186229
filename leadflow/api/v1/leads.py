"""Lead endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Query, Request, status
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from leadflow.api.v1._authz import require_context, to_http_exception
from leadflow.core.dependencies import get_db_session
from leadflow.core.enums import LeadStatus
from leadflow.core.exceptions import LeadFlowException
from leadflow.schemas.common import ErrorResponse, ImportErrorResponse
from leadflow.schemas.history import LeadHistoryResponse
from leadflow.schemas.leads import (
    AssignmentResponse,
    BulkAssignRequest,
    BulkAssignResponse,
    LeadArchiveRequest,
    LeadAssignmentRequest,
    LeadCreateRequest,
    LeadFilterParams,
    LeadImportResponse,
    LeadResponse,
    LeadStatusUpdateRequest,
    LeadUpdateRequest,
    StatusChangeResponse,
)
from leadflow.services.lead_import_service import LeadImportService
from leadflow.services.lead_service import LeadService
from leadflow.services.queries import LeadFilters

router = APIRouter(tags=["leads"])


def _filters(params: LeadFilterParams | None) -> LeadFilters | None:
    if params is None:
        return None
    return LeadFilters(**params.model_dump())


@router.post("/leads", response_model=LeadResponse, status_code=status.HTTP_201_CREATED)
def create_lead(
    payload: LeadCreateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> LeadResponse:
    context = require_context(authorization, ["leads.create"])
    try:
        lead = LeadService(db).create_lead(payload.model_dump(exclude_unset=True), context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return LeadResponse.model_validate(lead)


@router.get("/leads", response_model=list[LeadResponse])
def list_leads(
    status_filter: LeadStatus | None = Query(default=None, alias="status"),
    assigned_to: int | None = None,
    name: str | None = None,
    phone: str | None = None,
    origin: str | None = None,
    pax: str | None = None,
    search: str | None = None,
    include_converted: bool = False,
    include_archived: bool = False,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> list[LeadResponse]:
    context = require_context(authorization, ["leads.read"])
    filters = LeadFilters(
        status=status_filter,
        assigned_to=assigned_to,
        name=name,
        phone=phone,
        origin=origin,
        pax=pax,
        search=search,
        include_converted=include_converted,
        include_archived=include_archived,
    )
    leads = LeadService(db).list_leads(context, filters)
    return [LeadResponse.model_validate(lead) for lead in leads]


@router.post(
    "/leads/import",
    response_model=LeadImportResponse,
    status_code=status.HTTP_201_CREATED,
    responses={422: {"model": ImportErrorResponse}},
)
async def import_leads(
    request: Request,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> LeadImportResponse:
    """Import leads from a CSV request body; any invalid row rejects the whole file."""
    context = require_context(authorization, ["leads.import"])
    raw = await request.body()
    importer = LeadImportService(LeadService(db))
    try:
        result = await run_in_threadpool(importer.import_csv, raw, context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return LeadImportResponse(created=result.created, auto_assigned=result.auto_assigned, lead_ids=result.lead_ids)


@router.post("/leads/bulk-assign", response_model=BulkAssignResponse)
def bulk_assign(
    payload: BulkAssignRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> BulkAssignResponse:
    context = require_context(authorization, ["leads.update"])
    try:
        result = LeadService(db).bulk_assign(payload.lead_ids, payload.assigned_to, context, _filters(payload.filters))
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return BulkAssignResponse(succeeded=result.succeeded, failed=result.failed, failed_ids=result.failed_ids)


@router.get("/leads/{lead_id}", response_model=LeadResponse)
def get_lead(
    lead_id: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> LeadResponse:
    context = require_context(authorization, ["leads.read"])
    try:
        lead = LeadService(db).get_lead(lead_id, context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return LeadResponse.model_validate(lead)


@router.patch("/leads/{lead_id}", response_model=LeadResponse)
def update_lead(
    lead_id: int,
    payload: LeadUpdateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> LeadResponse:
    context = require_context(authorization, ["leads.update"])
    try:
        lead = LeadService(db).update_lead(lead_id, payload.model_dump(exclude_unset=True), context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return LeadResponse.model_validate(lead)


@router.post(
    "/leads/{lead_id}/status",
    response_model=StatusChangeResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def update_lead_status(
    lead_id: int,
    payload: LeadStatusUpdateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> StatusChangeResponse:
    context = require_context(authorization, ["leads.update"])
    try:
        outcome = LeadService(db).update_lead_status(lead_id, payload.status, context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return StatusChangeResponse(
        lead=LeadResponse.model_validate(outcome.lead),
        previous_status=outcome.previous_status,
        contact_created=outcome.contact_created,
        contact_id=outcome.contact.id if outcome.contact is not None else None,
        notice=outcome.notice,
    )


@router.post("/leads/{lead_id}/assignment", response_model=AssignmentResponse)
def update_lead_assignment(
    lead_id: int,
    payload: LeadAssignmentRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> AssignmentResponse:
    context = require_context(authorization, ["leads.update"])
    try:
        outcome = LeadService(db).update_lead_assignment(lead_id, payload.assigned_to, context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return AssignmentResponse(
        lead=LeadResponse.model_validate(outcome.lead),
        previous_assignee=outcome.previous_assignee,
        new_assignee=outcome.new_assignee,
        changed=outcome.changed,
        contact_created=outcome.contact_created,
        contact_id=outcome.contact.id if outcome.contact is not None else None,
    )


@router.post("/leads/{lead_id}/archive", response_model=LeadResponse)
def archive_lead(
    lead_id: int,
    payload: LeadArchiveRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> LeadResponse:
    context = require_context(authorization, ["leads.update"])
    try:
        lead = LeadService(db).archive_lead(lead_id, payload.reason, context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return LeadResponse.model_validate(lead)


@router.delete(
    "/leads/{lead_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def delete_lead(
    lead_id: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> None:
    # Only super_admin passes the role check inside delete_lead.
    context = require_context(authorization, ["leads.read"])
    try:
        LeadService(db).delete_lead(lead_id, context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc


@router.get("/leads/{lead_id}/history", response_model=list[LeadHistoryResponse])
def get_lead_history(
    lead_id: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> list[LeadHistoryResponse]:
    context = require_context(authorization, ["leads.read"])
    try:
        entries = LeadService(db).get_lead_history(lead_id, context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return [LeadHistoryResponse.model_validate(entry) for entry in entries]
