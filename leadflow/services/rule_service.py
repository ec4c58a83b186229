"""Assignment rule management."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from leadflow.auth.rbac import require_scopes
from leadflow.auth.tenant_context import TenantContext, enforce_tenant_match
from leadflow.core.enums import RuleType
from leadflow.core.exceptions import NotFoundError, ValidationError
from leadflow.models import Rule, User
from leadflow.services.base_service import BaseService
from leadflow.services.queries import query_active_rules
from leadflow.utils.validators import sanitize_text

logger = logging.getLogger(__name__)

RULES_SCOPE = ["rules.manage"]


class RuleService(BaseService):
    """CRUD over rules; only super and organization admins may manage them."""

    def _validate_candidates(self, organization_id: int, user_ids: Any) -> list[int]:
        if user_ids is None:
            return []
        candidates = list(dict.fromkeys(int(user_id) for user_id in user_ids))
        if not candidates:
            return []
        found = {
            user_id
            for (user_id,) in self.db.query(User.id)
            .filter(User.id.in_(candidates))
            .filter(User.organization_id == organization_id)
        }
        unknown = [user_id for user_id in candidates if user_id not in found]
        if unknown:
            raise ValidationError(f"Usuarios no válidos para la regla: {', '.join(map(str, unknown))}")
        return candidates

    @staticmethod
    def _clean_condition(value: Any) -> str:
        condition = sanitize_text(value, max_len=255)
        if not condition:
            raise ValidationError("La condición de la regla es requerida.")
        return condition

    @staticmethod
    def _rule_type(value: Any) -> RuleType:
        try:
            return RuleType(value)
        except ValueError as exc:
            raise ValidationError(f"Tipo de regla inválido: {value}") from exc

    def get_rule(self, rule_id: int, context: TenantContext) -> Rule:
        require_scopes(context.role, RULES_SCOPE)
        rule = self.db.get(Rule, rule_id)
        if rule is None or (not context.is_super_admin and rule.organization_id != context.organization_id):
            raise NotFoundError(f"Regla no encontrada: {rule_id}")
        return rule

    def list_rules(self, context: TenantContext) -> list[Rule]:
        require_scopes(context.role, RULES_SCOPE)
        query = self.db.query(Rule)
        if not context.is_super_admin:
            query = query.filter(Rule.organization_id == context.organization_id)
        return query.order_by(Rule.created_at.asc(), Rule.id.asc()).all()

    def list_active_rules(self, organization_id: int) -> list[Rule]:
        return query_active_rules(self.db, organization_id).all()

    def create_rule(self, data: Mapping[str, Any], context: TenantContext) -> Rule:
        require_scopes(context.role, RULES_SCOPE)
        organization_id = context.organization_id
        if context.is_super_admin and data.get("organization_id") is not None:
            organization_id = int(data["organization_id"])
        if organization_id is None:
            raise ValidationError("La regla requiere una organización.")
        enforce_tenant_match(organization_id, context)

        rule = Rule(
            organization_id=organization_id,
            type=self._rule_type(data.get("type")),
            condition=self._clean_condition(data.get("condition")),
            assigned_users=self._validate_candidates(organization_id, data.get("assigned_users")),
            is_active=bool(data.get("is_active", True)),
        )
        self.db.add(rule)
        self.commit()
        self.db.refresh(rule)
        self.log_event(logger, "rule.created", context, rule_id=rule.id, rule_type=rule.type.value)
        return rule

    def update_rule(self, rule_id: int, data: Mapping[str, Any], context: TenantContext) -> Rule:
        rule = self.get_rule(rule_id, context)
        if "type" in data:
            rule.type = self._rule_type(data["type"])
        if "condition" in data:
            rule.condition = self._clean_condition(data["condition"])
        if "assigned_users" in data:
            rule.assigned_users = self._validate_candidates(rule.organization_id, data["assigned_users"])
        if "is_active" in data and data["is_active"] is not None:
            rule.is_active = bool(data["is_active"])
        self.commit()
        self.db.refresh(rule)
        self.log_event(logger, "rule.updated", context, rule_id=rule.id)
        return rule

    def delete_rule(self, rule_id: int, context: TenantContext) -> None:
        rule = self.get_rule(rule_id, context)
        self.db.delete(rule)
        self.commit()
        self.log_event(logger, "rule.deleted", context, rule_id=rule_id)
