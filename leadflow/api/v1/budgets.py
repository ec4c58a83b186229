"""Budget endpoints for API v1, including the public slug lookup."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Query, status
from sqlalchemy.orm import Session

from leadflow.api.v1._authz import require_context, to_http_exception
from leadflow.core.dependencies import get_db_session
from leadflow.core.enums import BudgetStatus
from leadflow.core.exceptions import LeadFlowException
from leadflow.schemas.budgets import (
    BudgetCreateRequest,
    BudgetResponse,
    BudgetStatusUpdateRequest,
    BudgetUpdateRequest,
    BudgetVersionResponse,
    PublicBudgetResponse,
)
from leadflow.schemas.common import ErrorResponse
from leadflow.services.budget_service import BudgetService

router = APIRouter(tags=["budgets"])


@router.get("/budgets", response_model=list[BudgetResponse])
def list_budgets(
    status_filter: BudgetStatus | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> list[BudgetResponse]:
    context = require_context(authorization, ["budgets.read"])
    budgets = BudgetService(db).list_budgets(context, status_filter)
    return [BudgetResponse.model_validate(budget) for budget in budgets]


@router.post("/budgets", response_model=BudgetResponse, status_code=status.HTTP_201_CREATED)
def create_budget(
    payload: BudgetCreateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> BudgetResponse:
    context = require_context(authorization, ["budgets.create"])
    try:
        budget = BudgetService(db).create_budget(payload.model_dump(), context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return BudgetResponse.model_validate(budget)


@router.patch(
    "/budgets/{budget_id}",
    response_model=BudgetResponse,
    responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
def update_budget(
    budget_id: int,
    payload: BudgetUpdateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> BudgetResponse:
    context = require_context(authorization, ["budgets.update"])
    try:
        budget = BudgetService(db).update_budget(budget_id, payload.model_dump(exclude_unset=True), context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return BudgetResponse.model_validate(budget)


@router.get(
    "/budgets/{budget_id}/history",
    response_model=list[BudgetVersionResponse],
    responses={404: {"model": ErrorResponse}},
)
def list_budget_history(
    budget_id: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> list[BudgetVersionResponse]:
    context = require_context(authorization, ["budgets.read"])
    try:
        versions = BudgetService(db).list_budget_history(budget_id, context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    hidden = {} if context.is_super_admin else {"created_by": None}
    return [BudgetVersionResponse.model_validate(version).model_copy(update=hidden) for version in versions]


@router.post(
    "/budgets/{budget_id}/history/{version_number}/restore",
    response_model=BudgetResponse,
    responses={404: {"model": ErrorResponse}},
)
def restore_budget_version(
    budget_id: int,
    version_number: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> BudgetResponse:
    context = require_context(authorization, ["budgets.update"])
    try:
        budget = BudgetService(db).restore_version(budget_id, version_number, context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return BudgetResponse.model_validate(budget)


@router.post("/budgets/{budget_id}/status", response_model=BudgetResponse)
def update_budget_status(
    budget_id: int,
    payload: BudgetStatusUpdateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> BudgetResponse:
    context = require_context(authorization, ["budgets.update"])
    try:
        budget = BudgetService(db).update_budget_status(budget_id, payload.status, context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return BudgetResponse.model_validate(budget)


@router.get("/public/budgets/{slug}", response_model=PublicBudgetResponse)
def get_public_budget(slug: str, db: Session = Depends(get_db_session)) -> PublicBudgetResponse:
    try:
        budget = BudgetService(db).get_budget_by_slug(slug)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return PublicBudgetResponse.model_validate(budget)
