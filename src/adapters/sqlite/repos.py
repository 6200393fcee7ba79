import sqlite3
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from src.adapters.sqlite.base import SQLiteRepo, TableMapping, to_db
from src.domain.entities import (
    Company,
    Project,
    ProjectMember,
    ProjectMetric,
    ProjectPhase,
    User,
    utcnow,
)

COMPANIES = TableMapping("companies", Company)
PROJECTS = TableMapping("projects", Project, json_fields=("tags", "custom_fields"))
PHASES = TableMapping("project_phases", ProjectPhase)
MEMBERS = TableMapping("project_members", ProjectMember, json_fields=("permissions",))
METRICS = TableMapping("project_metrics", ProjectMetric)


class SQLiteCompanyRepo(SQLiteRepo):
    def save(self, company: Company) -> Company:
        return self._upsert(COMPANIES, company)

    def get_by_id(self, company_id: UUID) -> Company | None:
        return self._select_one(COMPANIES, "id = ?", (company_id,))


class SQLiteUserRepo(SQLiteRepo):
    def save(self, user: User) -> User:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO users (
                    id, email, display_name, password_hash, status,
                    company_id, last_login_at, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    email=excluded.email,
                    display_name=excluded.display_name,
                    password_hash=excluded.password_hash,
                    status=excluded.status,
                    company_id=excluded.company_id,
                    last_login_at=excluded.last_login_at,
                    updated_at=excluded.updated_at
            """,
                (
                    str(user.id),
                    user.email,
                    user.display_name,
                    user.password_hash,
                    user.status,
                    to_db(user.company_id),
                    to_db(user.last_login_at),
                    user.created_at.isoformat(),
                    user.updated_at.isoformat(),
                ),
            )

            # Roles are replaced wholesale
            conn.execute("DELETE FROM role_assignments WHERE user_id = ?", (str(user.id),))
            for role in user.roles:
                conn.execute(
                    "INSERT INTO role_assignments (id, user_id, role, created_at) "
                    "VALUES (?, ?, ?, ?)",
                    (str(uuid4()), str(user.id), role, utcnow().isoformat()),
                )

            conn.commit()
            return user
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def get_by_email(self, email: str) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT * FROM users WHERE email = ? COLLATE NOCASE", (email,)
            ).fetchone()
            if not row:
                return None
            return self._map_row_to_user(conn, row)
        finally:
            conn.close()

    def get_by_id(self, user_id: UUID) -> User | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (str(user_id),)).fetchone()
            if not row:
                return None
            return self._map_row_to_user(conn, row)
        finally:
            conn.close()

    def list_by_company(self, company_id: UUID) -> list[User]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                "SELECT * FROM users WHERE company_id = ? ORDER BY email", (str(company_id),)
            ).fetchall()
            return [self._map_row_to_user(conn, row) for row in rows]
        finally:
            conn.close()

    def _map_row_to_user(self, conn: sqlite3.Connection, row: dict[str, Any]) -> User:
        role_rows = conn.execute(
            "SELECT role FROM role_assignments WHERE user_id = ? ORDER BY created_at",
            (row["id"],),
        ).fetchall()

        return User(
            id=UUID(row["id"]),
            email=row["email"],
            display_name=row["display_name"],
            password_hash=row["password_hash"],
            roles=[r["role"] for r in role_rows],
            status=row["status"],
            company_id=UUID(row["company_id"]) if row["company_id"] else None,
            last_login_at=(
                datetime.fromisoformat(row["last_login_at"]) if row["last_login_at"] else None
            ),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )


class SQLiteProjectRepo(SQLiteRepo):
    """Projects together with their phases, members and metrics."""

    # --- projects ---

    def save(self, project: Project) -> Project:
        return self._upsert(PROJECTS, project)

    def get_by_id(self, project_id: UUID) -> Project | None:
        return self._select_one(PROJECTS, "id = ? AND is_deleted = 0", (project_id,))

    def get_by_code(self, company_id: UUID, code: str) -> Project | None:
        # Deleted projects keep their code reserved (unique index)
        return self._select_one(PROJECTS, "company_id = ? AND code = ?", (company_id, code))

    def list_by_company(self, company_id: UUID, status: str | None = None) -> list[Project]:
        where = "company_id = ? AND is_deleted = 0"
        params: tuple[Any, ...] = (company_id,)
        if status:
            where += " AND status = ?"
            params += (status,)
        return self._select_many(PROJECTS, where, params, order_by="created_at DESC")

    # --- phases ---

    def save_phase(self, phase: ProjectPhase) -> ProjectPhase:
        return self._upsert(PHASES, phase)

    def get_phase(self, phase_id: UUID) -> ProjectPhase | None:
        return self._select_one(PHASES, "id = ?", (phase_id,))

    def list_phases(self, project_id: UUID) -> list[ProjectPhase]:
        return self._select_many(PHASES, "project_id = ?", (project_id,), order_by='"order" ASC')

    def delete_phase(self, phase_id: UUID) -> None:
        self._execute("DELETE FROM project_phases WHERE id = ?", (phase_id,))

    # --- members ---

    def save_member(self, member: ProjectMember) -> ProjectMember:
        return self._upsert(MEMBERS, member)

    def get_member(self, member_id: UUID) -> ProjectMember | None:
        return self._select_one(MEMBERS, "id = ?", (member_id,))

    def get_active_member(self, project_id: UUID, user_id: UUID) -> ProjectMember | None:
        return self._select_one(
            MEMBERS,
            "project_id = ? AND user_id = ? AND removed_at IS NULL",
            (project_id, user_id),
        )

    def list_members(self, project_id: UUID) -> list[ProjectMember]:
        return self._select_many(
            MEMBERS,
            "project_id = ? AND removed_at IS NULL",
            (project_id,),
            order_by="joined_at ASC",
        )

    # --- metrics ---

    def save_metric(self, metric: ProjectMetric) -> ProjectMetric:
        return self._upsert(METRICS, metric)

    def get_metric(self, metric_id: UUID) -> ProjectMetric | None:
        return self._select_one(METRICS, "id = ?", (metric_id,))

    def list_metrics(self, project_id: UUID, category: str | None = None) -> list[ProjectMetric]:
        where = "project_id = ?"
        params: tuple[Any, ...] = (project_id,)
        if category:
            where += " AND category = ?"
            params += (category,)
        return self._select_many(METRICS, where, params, order_by="date DESC")

    def delete_metric(self, metric_id: UUID) -> None:
        self._execute("DELETE FROM project_metrics WHERE id = ?", (metric_id,))
