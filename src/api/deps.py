import os
from dataclasses import asdict
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from src.adapters.auth.crypto import JWTAuthAdapter
from src.adapters.clock import SystemClock
from src.adapters.sqlite.dashboard_repos import SQLiteDashboardRepo
from src.adapters.sqlite.financial_repos import SQLiteFinancialRepo
from src.adapters.sqlite.repos import SQLiteCompanyRepo, SQLiteProjectRepo, SQLiteUserRepo
from src.adapters.sqlite.schedule_repos import SQLiteScheduleRepo
from src.adapters.sqlite.task_repos import SQLiteTaskRepo
from src.api.auth_utils import COOKIE_NAME
from src.app_shell.rate_limit import RateLimiter
from src.components.dashboards import WidgetSources
from src.domain.entities import User
from src.domain.errors import ACCESS_DENIED, CONFLICT, NOT_FOUND, OperationError
from src.domain.policy import PolicyEngine
from src.rules.loader import load_rules
from src.rules.models import Rules

PROJECT_ROOT = Path(__file__).resolve().parents[2]


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        self.data_dir = Path(os.environ.get("CONSTRUCTX_DATA_DIR", "./data"))
        self.db_path = str(self.data_dir / "constructx.db")
        self.rules_path = Path(
            os.environ.get("CONSTRUCTX_RULES_PATH", str(self.base_dir / "rules.yaml"))
        )
        self.migrations_dir = PROJECT_ROOT / "migrations"
        origins = os.environ.get("CONSTRUCTX_CORS_ORIGINS", "http://localhost:3000")
        self.cors_origins = [o.strip() for o in origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Rules ---
@lru_cache
def get_rules(settings: Settings = Depends(get_settings)) -> Rules:
    return load_rules(settings.rules_path)


# --- Repos ---
def get_user_repo(settings: Settings = Depends(get_settings)) -> SQLiteUserRepo:
    return SQLiteUserRepo(settings.db_path)


def get_company_repo(settings: Settings = Depends(get_settings)) -> SQLiteCompanyRepo:
    return SQLiteCompanyRepo(settings.db_path)


def get_project_repo(settings: Settings = Depends(get_settings)) -> SQLiteProjectRepo:
    return SQLiteProjectRepo(settings.db_path)


def get_task_repo(settings: Settings = Depends(get_settings)) -> SQLiteTaskRepo:
    return SQLiteTaskRepo(settings.db_path)


def get_schedule_repo(settings: Settings = Depends(get_settings)) -> SQLiteScheduleRepo:
    return SQLiteScheduleRepo(settings.db_path)


def get_dashboard_repo(settings: Settings = Depends(get_settings)) -> SQLiteDashboardRepo:
    return SQLiteDashboardRepo(settings.db_path)


def get_financial_repo(settings: Settings = Depends(get_settings)) -> SQLiteFinancialRepo:
    return SQLiteFinancialRepo(settings.db_path)


# --- Services ---
def get_policy(rules: Rules = Depends(get_rules)) -> PolicyEngine:
    return PolicyEngine(rules)


def get_auth_adapter() -> JWTAuthAdapter:
    return JWTAuthAdapter()


_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


_rate_limiter_instance: RateLimiter | None = None


def get_rate_limiter(rules: Rules = Depends(get_rules)) -> RateLimiter:
    """Get the process-wide login rate limiter."""
    global _rate_limiter_instance
    if _rate_limiter_instance is None:
        _rate_limiter_instance = RateLimiter(rules.rate_limits)
    return _rate_limiter_instance


def get_widget_sources(
    rules: Rules = Depends(get_rules),
    projects: SQLiteProjectRepo = Depends(get_project_repo),
    tasks: SQLiteTaskRepo = Depends(get_task_repo),
    schedules: SQLiteScheduleRepo = Depends(get_schedule_repo),
    financials: SQLiteFinancialRepo = Depends(get_financial_repo),
    users: SQLiteUserRepo = Depends(get_user_repo),
) -> WidgetSources:
    return WidgetSources(
        projects=projects,
        tasks=tasks,
        schedules=schedules,
        financials=financials,
        users=users,
        scheduling=rules.scheduling,
    )


# --- Auth ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


async def get_current_user(
    request: Request,
    token: Annotated[str | None, Depends(oauth2_scheme)],
    user_repo: SQLiteUserRepo = Depends(get_user_repo),
    auth_adapter: JWTAuthAdapter = Depends(get_auth_adapter),
) -> User:
    # Cookie wins over the Authorization header
    cookie_token = request.cookies.get(COOKIE_NAME)
    if cookie_token and cookie_token.startswith("Bearer "):
        token = cookie_token.split(" ", 1)[1]

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = auth_adapter.validate_token(token)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = user_repo.get_by_id(user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    if user.status != "active":
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Inactive user",
        )

    return user


# --- Errors ---
STATUS_BY_CODE = {
    NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ACCESS_DENIED: status.HTTP_403_FORBIDDEN,
    CONFLICT: status.HTTP_409_CONFLICT,
}


def raise_for_errors(errors: list[OperationError]) -> None:
    """Translate component errors into an HTTPException; the first error picks the status."""
    if not errors:
        return
    status_code = STATUS_BY_CODE.get(errors[0].code, status.HTTP_400_BAD_REQUEST)
    raise HTTPException(status_code=status_code, detail=[asdict(e) for e in errors])
