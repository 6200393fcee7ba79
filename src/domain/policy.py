from collections.abc import Sequence
from typing import Any

from src.domain.entities import Dashboard, User
from src.rules.models import Rules

ADMIN_ROLES = frozenset({"owner", "admin"})


class PolicyEngine:
    def __init__(self, rules: Rules):
        self.rules = rules

    def check_permission(
        self,
        user: User | None,
        user_roles: Sequence[str],
        action: str,
    ) -> bool:
        """
        Check if the user/role is allowed to perform the action.

        Order of precedence:
        1. Public Permissions (Global)
        2. Role-Based Access Control (RBAC)
        """
        if action in self.rules.rbac.public_permissions:
            return True

        if not user or user.status != "active":
            return False

        for role in user_roles:
            allowed_actions = self.rules.rbac.roles.get(role, [])
            if "*" in allowed_actions or action in allowed_actions:
                return True

            # Scoped wildcard: "tasks:*" matches "tasks:edit"
            if ":" in action:
                scope = action.split(":")[0]
                if f"{scope}:*" in allowed_actions:
                    return True

        return False

    def can(self, user: User, action: str) -> bool:
        return self.check_permission(user, user.roles, action)

    def can_manage_users(self, user: User) -> bool:
        return self.can(user, "users:manage")

    def is_admin(self, user: User) -> bool:
        return bool(ADMIN_ROLES.intersection(user.roles))

    def same_company(self, user: User, resource: Any) -> bool:
        company_id = getattr(resource, "company_id", None)
        return user.company_id is not None and str(company_id) == str(user.company_id)

    def can_view_dashboard(self, user: User, dashboard: Dashboard) -> bool:
        if not dashboard.is_active or not self.same_company(user, dashboard):
            return False
        if dashboard.is_default or dashboard.created_by == user.id:
            return True
        return any(share.user_id == user.id for share in dashboard.shared_with)

    def can_edit_dashboard(self, user: User, dashboard: Dashboard) -> bool:
        if not self.same_company(user, dashboard) or not self.can(user, "dashboards:edit"):
            return False
        if dashboard.created_by == user.id:
            return True
        return any(
            share.user_id == user.id and share.permission == "edit"
            for share in dashboard.shared_with
        )

    def can_delete_dashboard(self, user: User, dashboard: Dashboard) -> bool:
        if not self.same_company(user, dashboard):
            return False
        return dashboard.created_by == user.id or self.is_admin(user)
