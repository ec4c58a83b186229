"""SQLAlchemy model package for the tenant-aware CRM schema."""

from leadflow.models.base import Base
from leadflow.models.budget import Budget, BudgetVersion
from leadflow.models.contact import Contact
from leadflow.models.history import ContactHistory, LeadHistory
from leadflow.models.lead import Lead
from leadflow.models.organization import Branch, Organization
from leadflow.models.rule import Rule
from leadflow.models.user import User

__all__ = [
    "Base",
    "Branch",
    "Budget",
    "BudgetVersion",
    "Contact",
    "ContactHistory",
    "Lead",
    "LeadHistory",
    "Organization",
    "Rule",
    "User",
]
