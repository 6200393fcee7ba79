from uuid import UUID

from src.adapters.sqlite.base import SQLiteRepo, TableMapping
from src.domain.entities import Dashboard

DASHBOARDS = TableMapping("dashboards", Dashboard, json_fields=("widgets", "shared_with"))


class SQLiteDashboardRepo(SQLiteRepo):
    def save(self, dashboard: Dashboard) -> Dashboard:
        return self._upsert(DASHBOARDS, dashboard)

    def get_by_id(self, dashboard_id: UUID) -> Dashboard | None:
        return self._select_one(DASHBOARDS, "id = ? AND is_active = 1", (dashboard_id,))

    def list_by_project(self, project_id: UUID) -> list[Dashboard]:
        return self._select_many(
            DASHBOARDS,
            "project_id = ? AND is_active = 1",
            (project_id,),
            order_by="is_default DESC, created_at DESC",
        )

    def clear_default(self, project_id: UUID, except_id: UUID | None = None) -> int:
        if except_id is None:
            return self._execute(
                "UPDATE dashboards SET is_default = 0 WHERE project_id = ? AND is_default = 1",
                (project_id,),
            )
        return self._execute(
            "UPDATE dashboards SET is_default = 0 "
            "WHERE project_id = ? AND is_default = 1 AND id != ?",
            (project_id, except_id),
        )
