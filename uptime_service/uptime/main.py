import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI

from uptime_common.observability import get_logger, init_observability, shutdown_tracing

from uptime import __version__
from uptime.bootstrap import prepare_storage_async
from uptime.config import load_config
from uptime.routes import dashboard_router, health_router, status_router
from uptime.run_store import RunStore
from uptime.scheduler import check_loop

# Bootstrap logging + tracing + service-info in one call
init_observability("uptime", __version__)

logger = get_logger("uptime")

_check_task = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _check_task

    try:
        config = load_config()
        report = await prepare_storage_async(config)
    except Exception:
        logger.critical("Startup failed, not serving", exc_info=True)
        raise

    if report is not None:
        logger.info("Legacy check log migrated (%d runs)", report.runs)
    logger.info("Database initialized")

    store = RunStore(config.merge_policy)
    app.state.config = config
    app.state.store = store

    _check_task = asyncio.create_task(check_loop(config, store))
    logger.info("Background probe loop started")

    yield

    if _check_task:
        _check_task.cancel()
        try:
            await _check_task
        except asyncio.CancelledError:
            pass
        _check_task = None

    # Flush remaining traces before shutdown
    shutdown_tracing()


app = FastAPI(
    title="Uptime Monitor",
    version=__version__,
    lifespan=lifespan,
)

app.include_router(dashboard_router)
app.include_router(status_router)
app.include_router(health_router)

# Initialize telemetry at module level (before requests start)
try:
    from uptime import telemetry
    telemetry.init(app)
except Exception as e:
    logger.warning(f"Telemetry init skipped: {e}")
