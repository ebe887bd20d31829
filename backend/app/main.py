import asyncio
import logging
import random
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from config import settings
from api.units import router as units_router
from alarms.router import router as alarms_router
from alarms.demo import seed_history
from alarms.generator import AlarmGenerator
from alarms.models import GeneratorConfig
from alarms.monitor import AlarmMonitor

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("statcom.main")

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("STATCOM Backend starting... DEBUG=%s", settings.DEBUG)

    # Redis
    redis = Redis.from_url(settings.REDIS_URL, decode_responses=False)
    app.state.redis = redis
    logger.info("Redis connected: %s", settings.REDIS_URL)

    # Alarm ledger + monitor
    generator = AlarmGenerator(config=GeneratorConfig.from_settings(settings))
    monitor = AlarmMonitor(redis, generator)
    app.state.alarm_monitor = monitor

    # Health source: demo only, real telemetry publishes on the same channel
    poller = None
    poller_task = None
    if settings.DEMO_MODE:
        from services.demo_poller import DemoPoller, DEMO_UNITS
        rng = random.Random(settings.DEMO_RANDOM_SEED)
        if settings.DEMO_SEED_HISTORY:
            generator.seed(seed_history(
                [u["unit_id"] for u in DEMO_UNITS],
                generator.clock(), generator.config, rng,
            ))
        poller = DemoPoller(redis, rng)
        app.state.poller = poller
        poller_task = asyncio.create_task(poller.start())
        logger.info("DEMO_MODE enabled — using DemoPoller")
    else:
        logger.info("Production mode — waiting for health snapshots on Redis")

    monitor_task = asyncio.create_task(monitor.start())

    yield

    # Shutdown
    logger.info("STATCOM Backend shutting down...")
    await monitor.stop()
    if poller:
        await poller.stop()

    all_tasks = [monitor_task]
    if poller_task:
        all_tasks.append(poller_task)
    for t in all_tasks:
        t.cancel()
    for t in all_tasks:
        try:
            await t
        except asyncio.CancelledError:
            pass

    await redis.close()
    logger.info("Shutdown complete")


app = FastAPI(
    title="STATCOM Alarm API",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(units_router)
app.include_router(alarms_router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": VERSION}
