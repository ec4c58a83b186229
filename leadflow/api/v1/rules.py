"""Assignment rule endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session

from leadflow.api.v1._authz import require_context, to_http_exception
from leadflow.core.dependencies import get_db_session
from leadflow.core.exceptions import LeadFlowException
from leadflow.schemas.rules import RuleCreateRequest, RuleResponse, RuleUpdateRequest
from leadflow.services.rule_service import RULES_SCOPE, RuleService

router = APIRouter(tags=["rules"])


@router.get("/rules", response_model=list[RuleResponse])
def list_rules(
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> list[RuleResponse]:
    context = require_context(authorization, RULES_SCOPE)
    rules = RuleService(db).list_rules(context)
    return [RuleResponse.model_validate(rule) for rule in rules]


@router.post("/rules", response_model=RuleResponse, status_code=status.HTTP_201_CREATED)
def create_rule(
    payload: RuleCreateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> RuleResponse:
    context = require_context(authorization, RULES_SCOPE)
    try:
        rule = RuleService(db).create_rule(payload.model_dump(), context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return RuleResponse.model_validate(rule)


@router.patch("/rules/{rule_id}", response_model=RuleResponse)
def update_rule(
    rule_id: int,
    payload: RuleUpdateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> RuleResponse:
    context = require_context(authorization, RULES_SCOPE)
    try:
        rule = RuleService(db).update_rule(rule_id, payload.model_dump(exclude_unset=True), context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return RuleResponse.model_validate(rule)


@router.delete("/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rule(
    rule_id: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> None:
    context = require_context(authorization, RULES_SCOPE)
    try:
        RuleService(db).delete_rule(rule_id, context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
