import logging
from typing import Any, Dict, Optional

from psycopg.types.json import Jsonb
from psycopg_pool import AsyncConnectionPool

from app.domain.ports.session_store import SessionStorePort

logger = logging.getLogger(__name__)

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS analysis_sessions (
    session_id  TEXT PRIMARY KEY,
    payload     JSONB NOT NULL,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at  TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""

UPSERT_SQL = """
INSERT INTO analysis_sessions (session_id, payload)
VALUES (%s, %s)
ON CONFLICT (session_id)
DO UPDATE SET payload = EXCLUDED.payload, updated_at = now()
"""

SELECT_SQL = 'SELECT payload FROM analysis_sessions WHERE session_id = %s'


class PostgresSessionStore(SessionStorePort):
    def __init__(self, pool: AsyncConnectionPool):
        self.pool = pool

    async def ensure_schema(self) -> None:
        async with self.pool.connection() as conn:
            await conn.execute(CREATE_TABLE_SQL)

    async def save(self, session_id: str, payload: Dict[str, Any]) -> None:
        async with self.pool.connection() as conn:
            await conn.execute(UPSERT_SQL, (session_id, Jsonb(payload)))
        logger.info('[session_store.save] session=%s', session_id)

    async def load(self, session_id: str) -> Optional[Dict[str, Any]]:
        async with self.pool.connection() as conn:
            cur = await conn.execute(SELECT_SQL, (session_id,))
            row = await cur.fetchone()
        return row[0] if row else None
