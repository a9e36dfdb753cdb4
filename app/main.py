import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from psycopg_pool import AsyncConnectionPool

from app.api.errors import register_exception_handlers
from app.api.routes import router
from app.infra.llm import get_llm
from app.infra.service import build_coordinator
from app.settings import settings

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format='%(asctime)s %(levelname)s %(name)s %(message)s',
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.dbpool = None

    if settings.USE_INMEMORY_REPO or settings.DISABLE_DB_POOL:
        from app.adapters.repositories.memory import InMemorySessionStore

        app.state.session_store = InMemorySessionStore()
    else:
        from app.adapters.repositories.postgres import PostgresSessionStore

        if settings.DATABASE_URL is None:
            raise RuntimeError('DATABASE_URL is required when USE_INMEMORY_REPO is off')
        app.state.dbpool = AsyncConnectionPool(
            conninfo=settings.DATABASE_URL.encoded_string(),
            min_size=settings.POOL_MIN,
            max_size=settings.POOL_MAX,
            open=False,
        )
        await app.state.dbpool.open()
        store = PostgresSessionStore(app.state.dbpool)
        await store.ensure_schema()
        app.state.session_store = store

    app.state.coordinator = build_coordinator(get_llm(), app.state.session_store)
    logger.info(
        '[app.start] provider=%s session_store=%s',
        settings.LLM_PROVIDER.value,
        type(app.state.session_store).__name__,
    )
    try:
        yield
    finally:
        await app.state.coordinator.shutdown()
        pool = getattr(app.state, 'dbpool', None)
        if pool is not None:
            await pool.close()


app = FastAPI(lifespan=lifespan)

app.include_router(router)

register_exception_handlers(app)


@app.get('/', tags=['health'])
async def healthcheck():
    return {'Welcome to speech ballot': 'POST /analysis to submit a speech'}
