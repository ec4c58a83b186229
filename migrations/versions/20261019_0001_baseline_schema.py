"""baseline tenant-scoped lead, contact, rule, history and budget schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _audit_columns() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _tenant_columns() -> list[sa.Column]:
    return [
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("branch_id", sa.Integer(), nullable=False),
    ]


def _tenant_foreign_keys() -> list[sa.ForeignKeyConstraint]:
    return [
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["branch_id"], ["branches.id"], ondelete="RESTRICT"),
    ]


def upgrade() -> None:
    op.create_table(
        "organizations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("custom_name", sa.String(255), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "branches",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("city", sa.String(120), nullable=True),
        sa.Column("province", sa.String(120), nullable=True),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "name", name="uq_branches_org_name"),
    )
    op.create_index("ix_branches_organization_id", "branches", ["organization_id"])

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("role", sa.String(40), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=True),
        sa.Column("branch_id", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["branch_id"], ["branches.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("organization_id", "email", name="uq_users_org_email"),
    )
    op.create_index("ix_users_organization_id", "users", ["organization_id"])
    op.create_index("ix_users_branch_id", "users", ["branch_id"])
    op.create_index("idx_users_org_role", "users", ["organization_id", "role"])

    op.create_table(
        "leads",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("inquiry_number", sa.String(40), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(40), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("origin", sa.String(255), nullable=False, server_default=""),
        sa.Column("province", sa.String(120), nullable=False, server_default=""),
        sa.Column("pax_count", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("estimated_travel_date", sa.String(120), nullable=True),
        sa.Column("status", sa.String(40), nullable=False, server_default="new"),
        sa.Column("assigned_to", sa.Integer(), nullable=True),
        sa.Column("converted_to_contact", sa.Boolean(), nullable=True, server_default=sa.false()),
        sa.Column("archived_reason", sa.Text(), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        *_tenant_columns(),
        *_audit_columns(),
        *_tenant_foreign_keys(),
        sa.ForeignKeyConstraint(["assigned_to"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("inquiry_number"),
    )
    op.create_index("ix_leads_organization_id", "leads", ["organization_id"])
    op.create_index("ix_leads_branch_id", "leads", ["branch_id"])
    op.create_index("idx_leads_org_branch_status", "leads", ["organization_id", "branch_id", "status"])
    op.create_index("idx_leads_assigned_to", "leads", ["assigned_to"])

    op.create_table(
        "contacts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(40), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("city", sa.String(120), nullable=False, server_default=""),
        sa.Column("province", sa.String(120), nullable=False, server_default=""),
        sa.Column("tag", sa.String(60), nullable=False, server_default=""),
        sa.Column("assigned_to", sa.Integer(), nullable=True),
        sa.Column("origin", sa.String(255), nullable=True),
        sa.Column("pax_count", sa.Integer(), nullable=True),
        sa.Column("estimated_travel_date", sa.String(120), nullable=True),
        sa.Column("destination_of_interest", sa.String(255), nullable=True),
        sa.Column("estimated_budget", sa.Float(), nullable=True),
        sa.Column("additional_notes", sa.Text(), nullable=True),
        sa.Column("original_lead_id", sa.Integer(), nullable=True),
        sa.Column("original_lead_status", sa.String(40), nullable=True),
        sa.Column("original_lead_inquiry_number", sa.String(40), nullable=True),
        *_tenant_columns(),
        *_audit_columns(),
        *_tenant_foreign_keys(),
        sa.ForeignKeyConstraint(["assigned_to"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("original_lead_id", name="uq_contacts_original_lead_id"),
    )
    op.create_index("ix_contacts_organization_id", "contacts", ["organization_id"])
    op.create_index("ix_contacts_branch_id", "contacts", ["branch_id"])
    op.create_index("idx_contacts_org_branch", "contacts", ["organization_id", "branch_id"])
    op.create_index("idx_contacts_assigned_to", "contacts", ["assigned_to"])

    op.create_table(
        "rules",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("organization_id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("condition", sa.String(255), nullable=False),
        sa.Column("assigned_users", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_audit_columns(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_rules_organization_id", "rules", ["organization_id"])
    op.create_index("idx_rules_org_active", "rules", ["organization_id", "is_active"])

    op.create_table(
        "lead_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("lead_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(60), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_lead_history_lead_created", "lead_history", ["lead_id", "created_at"])

    op.create_table(
        "contact_history",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("contact_id", sa.Integer(), nullable=False),
        sa.Column("action", sa.String(60), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_contact_history_contact_created", "contact_history", ["contact_id", "created_at"])

    op.create_table(
        "budgets",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("amount", sa.Float(), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="not_sent"),
        sa.Column("contact_id", sa.Integer(), nullable=True),
        sa.Column("lead_id", sa.Integer(), nullable=True),
        sa.Column("template_id", sa.Integer(), nullable=True),
        sa.Column("slug", sa.String(80), nullable=False),
        sa.Column("assigned_to", sa.Integer(), nullable=True),
        *_tenant_columns(),
        *_audit_columns(),
        *_tenant_foreign_keys(),
        sa.ForeignKeyConstraint(["contact_id"], ["contacts.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["lead_id"], ["leads.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["assigned_to"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
        sa.CheckConstraint(
            "NOT (contact_id IS NOT NULL AND lead_id IS NOT NULL)", name="ck_budgets_single_owner"
        ),
    )
    op.create_index("ix_budgets_organization_id", "budgets", ["organization_id"])
    op.create_index("ix_budgets_branch_id", "budgets", ["branch_id"])
    op.create_index("idx_budgets_org_branch_status", "budgets", ["organization_id", "branch_id", "status"])


def downgrade() -> None:
    op.drop_table("budgets")
    op.drop_table("contact_history")
    op.drop_table("lead_history")
    op.drop_table("rules")
    op.drop_table("contacts")
    op.drop_table("leads")
    op.drop_table("users")
    op.drop_table("branches")
    op.drop_table("organizations")
