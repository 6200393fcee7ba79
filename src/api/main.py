import logging
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.api.deps import get_settings
from src.app_shell.config import validate_ops_rules
from src.rules.loader import load_rules
from src.shell.http.health import (
    StartupTracker,
    create_health_router,
    get_metrics_collector,
    setup_default_health_checks,
)

VERSION = "0.1.0"

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Load rules, prepare the data directory and apply migrations (fail-fast)."""
    settings = get_settings()
    try:
        rules = load_rules(settings.rules_path)
        validate_ops_rules(rules, settings.data_dir)
        applied = SQLiteMigrator(settings.db_path, settings.migrations_dir).run_migrations()
    except Exception:
        logger.critical("Startup failed", exc_info=True)
        raise
    logger.info("Rules loaded from %s; %d migration(s) applied", settings.rules_path, len(applied))

    setup_default_health_checks(settings.db_path)
    StartupTracker.mark_started()
    yield
    StartupTracker.reset()


app = FastAPI(
    title="ConstructX API",
    version=VERSION,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


@app.middleware("http")
async def record_metrics(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    get_metrics_collector().record_request(elapsed_ms, is_error=response.status_code >= 500)
    return response


# --- Routers ---
from src.api.routes import (  # noqa: E402
    auth,
    dashboards,
    financials,
    projects,
    schedules,
    tasks,
    users,
)

app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(projects.router, prefix="/api/projects", tags=["Projects"])
app.include_router(tasks.router, prefix="/api", tags=["Tasks"])
app.include_router(schedules.router, prefix="/api", tags=["Schedules"])
app.include_router(dashboards.router, prefix="/api", tags=["Dashboards"])
app.include_router(financials.router, prefix="/api", tags=["Financials"])
app.include_router(create_health_router(version=VERSION))


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
