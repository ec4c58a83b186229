"""Pydantic schema package for API contracts."""

from leadflow.schemas.budgets import (
    BudgetCreateRequest,
    BudgetResponse,
    BudgetStatusUpdateRequest,
    BudgetUpdateRequest,
    BudgetVersionResponse,
    PublicBudgetResponse,
)
from leadflow.schemas.common import ErrorResponse, ImportErrorDetail, ImportErrorResponse
from leadflow.schemas.contacts import ContactCreateRequest, ContactResponse, ContactUpdateRequest
from leadflow.schemas.history import ContactHistoryResponse, LeadHistoryResponse
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
from leadflow.schemas.rules import RuleCreateRequest, RuleResponse, RuleUpdateRequest

__all__ = [
    "AssignmentResponse",
    "BudgetCreateRequest",
    "BudgetResponse",
    "BudgetStatusUpdateRequest",
    "BudgetUpdateRequest",
    "BudgetVersionResponse",
    "BulkAssignRequest",
    "BulkAssignResponse",
    "ContactCreateRequest",
    "ContactHistoryResponse",
    "ContactResponse",
    "ContactUpdateRequest",
    "ErrorResponse",
    "ImportErrorDetail",
    "ImportErrorResponse",
    "LeadArchiveRequest",
    "LeadAssignmentRequest",
    "LeadCreateRequest",
    "LeadFilterParams",
    "LeadHistoryResponse",
    "LeadImportResponse",
    "LeadResponse",
    "LeadStatusUpdateRequest",
    "LeadUpdateRequest",
    "PublicBudgetResponse",
    "RuleCreateRequest",
    "RuleResponse",
    "RuleUpdateRequest",
    "StatusChangeResponse",
]
