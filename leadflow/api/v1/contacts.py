"""Contact endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session

from leadflow.api.v1._authz import require_context, to_http_exception
from leadflow.core.dependencies import get_db_session
from leadflow.core.exceptions import LeadFlowException
from leadflow.schemas.contacts import ContactCreateRequest, ContactResponse, ContactUpdateRequest
from leadflow.schemas.history import ContactHistoryResponse
from leadflow.services.contact_service import ContactService

router = APIRouter(tags=["contacts"])


@router.get("/contacts", response_model=list[ContactResponse])
def list_contacts(
    tag: str | None = None,
    assigned_to: int | None = None,
    search: str | None = None,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> list[ContactResponse]:
    context = require_context(authorization, ["contacts.read"])
    contacts = ContactService(db).list_contacts(
        context, {"tag": tag, "assigned_to": assigned_to, "search": search}
    )
    return [ContactResponse.model_validate(contact) for contact in contacts]


@router.post("/contacts", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
def create_contact(
    payload: ContactCreateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> ContactResponse:
    context = require_context(authorization, ["contacts.create"])
    try:
        contact = ContactService(db).create_contact(payload.model_dump(exclude_unset=True), context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return ContactResponse.model_validate(contact)


@router.get("/contacts/{contact_id}", response_model=ContactResponse)
def get_contact(
    contact_id: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> ContactResponse:
    context = require_context(authorization, ["contacts.read"])
    try:
        contact = ContactService(db).get_contact(contact_id, context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return ContactResponse.model_validate(contact)


@router.patch("/contacts/{contact_id}", response_model=ContactResponse)
def update_contact(
    contact_id: int,
    payload: ContactUpdateRequest,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> ContactResponse:
    context = require_context(authorization, ["contacts.update"])
    try:
        contact = ContactService(db).update_contact(contact_id, payload.model_dump(exclude_unset=True), context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return ContactResponse.model_validate(contact)


@router.get("/contacts/{contact_id}/history", response_model=list[ContactHistoryResponse])
def get_contact_history(
    contact_id: int,
    db: Session = Depends(get_db_session),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> list[ContactHistoryResponse]:
    context = require_context(authorization, ["contacts.read"])
    try:
        entries = ContactService(db).get_contact_history(contact_id, context)
    except LeadFlowException as exc:
        raise to_http_exception(exc) from exc
    return [ContactHistoryResponse.model_validate(entry) for entry in entries]
